"""Which line and word are active at a given playback time."""

from bisect import bisect_right
from typing import Optional, Sequence

from .models import LyricLine, WordTiming


def find_current_line_index(lines: Sequence[LyricLine], t: float) -> int:
    """Index of the last line starting at or before ``t``; -1 before the first.

    Lines sharing a start time resolve to the earliest of them.
    """
    starts = [line.time for line in lines]
    pos = bisect_right(starts, t) - 1
    if pos < 0:
        return -1
    while pos > 0 and starts[pos - 1] == starts[pos]:
        pos -= 1
    return pos


def find_current_word_index(line: LyricLine, t: float) -> int:
    """Index of the last word started by ``t``; -1 when none has started."""
    if not line.words:
        return -1
    index = -1
    for i, word in enumerate(line.words):
        if word.start > t:
            break
        index = i
    return index


def word_progress(word: WordTiming, t: float) -> float:
    """Fraction of ``word`` sung at ``t``, in ``[0, 1]``.

    Zero-length words count as fully sung from their start.
    """
    if t < word.start:
        return 0.0
    if word.duration <= 0:
        return 1.0
    return min(1.0, (t - word.start) / word.duration)


def line_progress(line: LyricLine, t: float, next_line: Optional[LyricLine] = None) -> float:
    """Fraction of ``line`` sung at ``t``, following word timings when present.

    Without a stated duration or words, the gap to ``next_line`` is used.
    """
    if t < line.time:
        return 0.0

    duration = line.effective_duration
    if line.duration is None and not line.words and next_line is not None:
        duration = next_line.time - line.time
    if duration <= 0:
        return 1.0

    if not line.words:
        return min(1.0, (t - line.time) / duration)

    progress = 0.0
    for word in line.words:
        if t < word.start:
            break
        start = (word.start - line.time) / duration
        end = (word.end - line.time) / duration
        if t >= word.end:
            progress = end
        else:
            progress = start + (end - start) * word_progress(word, t)
            break
    return min(1.0, max(0.0, progress))
