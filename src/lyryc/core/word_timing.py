"""Word-level timing from a line's time window.

Words share the line window in proportion to a weight built from length,
vowel count, consonant clusters and punctuation. Generated words are
contiguous and exactly span ``[line.time, line.time + duration]``.
"""

import re
from typing import List, Optional, Sequence

from ..config import DEFAULT_LINE_DURATION
from ..utils.logging import get_logger
from .lrc import close_open_words
from .models import LyricLine, WordTiming

logger = get_logger(__name__)

SHORT_WORDS = frozenset(['a', 'an', 'the', 'in', 'on', 'at', 'to', 'of', 'and', 'or', 'but'])
SHORT_WORD_DISCOUNT = 0.7
MIN_WORD_WEIGHT = 0.3

_VOWEL_RE = re.compile(r"[aeiou]", re.IGNORECASE)
_CONSONANT_CLUSTER_RE = re.compile(r"[bcdfghjklmnpqrstvwxyz]{2,}", re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^\w]", re.ASCII)


def split_words(text: str) -> List[str]:
    return [w for w in re.split(r"\s+", text or "") if w]


def word_weight(word: str) -> float:
    """Relative time a word takes to sing."""
    weight = 1.0
    weight += len(word) * 0.1

    # rough syllable estimate
    weight += len(_VOWEL_RE.findall(word)) * 0.3
    weight += len(_CONSONANT_CLUSTER_RE.findall(word)) * 0.2

    weight += len(_NON_WORD_RE.findall(word)) * 0.1

    if word.lower() in SHORT_WORDS:
        weight *= SHORT_WORD_DISCOUNT

    return max(weight, MIN_WORD_WEIGHT)


def _spread(words: Sequence[str], spans: Sequence[float], start: float, end: float) -> List[WordTiming]:
    """Lay spans end to end from ``start``; the last word absorbs float slack."""
    timings: List[WordTiming] = []
    current = start
    for i, (word, span) in enumerate(zip(words, spans)):
        word_end = end if i == len(words) - 1 else min(current + span, end)
        timings.append(WordTiming(word=word, start=current, end=word_end))
        current = word_end
    return timings


def generate_word_timings(
    line: Optional[LyricLine] = None,
    *,
    text: Optional[str] = None,
    start: Optional[float] = None,
    duration: Optional[float] = None,
) -> List[WordTiming]:
    """Distribute a line's window across its words by weight.

    Either pass a LyricLine or explicit ``text``/``start``/``duration``.
    A line without a duration uses DEFAULT_LINE_DURATION.
    """
    if line is not None:
        text = line.text if text is None else text
        start = line.time if start is None else start
        duration = line.duration if duration is None else duration
    if start is None:
        start = 0.0
    if duration is None:
        duration = DEFAULT_LINE_DURATION
    duration = max(duration, 0.0)

    words = split_words(text or "")
    if not words:
        return []

    weights = [word_weight(w) for w in words]
    total_weight = sum(weights)
    spans = [w / total_weight * duration for w in weights]
    return _spread(words, spans, start, start + duration)


def ensure_word_timings(lines: List[LyricLine]) -> List[LyricLine]:
    """Fill in words for lines without them and close open parsed words."""
    result: List[LyricLine] = []
    for i, line in enumerate(lines):
        if line.words:
            next_start = lines[i + 1].time if i + 1 < len(lines) else None
            result.append(close_open_words(line, next_start))
        else:
            result.append(line.with_words(generate_word_timings(line)))
    return result


def _fit_to_window(spans: List[float], total: float, lo: float, hi: float) -> List[float]:
    """Clamp spans into ``[lo, hi]`` while keeping their sum at ``total``.

    Bounds relax to ``total / n`` when the window cannot honour them.
    """
    n = len(spans)
    if n == 0:
        return []
    lo = min(lo, total / n)
    hi = max(hi, total / n)

    fixed = {}
    for _ in range(n):
        free = [i for i in range(n) if i not in fixed]
        if not free:
            break
        remaining = total - sum(fixed.values())
        free_weight = sum(spans[i] for i in free)
        changed = False
        for i in free:
            share = spans[i] / free_weight * remaining if free_weight > 0 else remaining / len(free)
            if share < lo - 1e-12:
                fixed[i] = lo
                changed = True
            elif share > hi + 1e-12:
                fixed[i] = hi
                changed = True
        if not changed:
            break

    free = [i for i in range(n) if i not in fixed]
    remaining = total - sum(fixed.values())
    free_weight = sum(spans[i] for i in free)
    out = []
    for i in range(n):
        if i in fixed:
            out.append(fixed[i])
        elif free_weight > 0:
            out.append(spans[i] / free_weight * remaining)
        else:
            out.append(remaining / len(free))

    # Everything pinned at a bound; scale so the window is still covered
    out_total = sum(out)
    if out_total > 0 and abs(out_total - total) > 1e-9:
        out = [s * total / out_total for s in out]
    return out


def apply_language_timing(line: LyricLine, language: str) -> LyricLine:
    """Re-weight a line's words with language-specific multipliers.

    The words keep their overall window and stay contiguous.
    """
    from .language import is_complex_word, is_punctuated_word, timing_adjustments

    if not line.words:
        return line

    adjustments = timing_adjustments(language)
    start = line.words[0].start
    end = line.words[-1].end
    total = end - start
    if total <= 0:
        return line

    texts = [w.word for w in line.words]
    spans = []
    for word in texts:
        span = word_weight(word)
        if is_complex_word(word, language):
            span *= adjustments.complex_word_multiplier
        if is_punctuated_word(word):
            span *= adjustments.punctuation_multiplier
        spans.append(span)

    weight_total = sum(spans)
    spans = [s / weight_total * total for s in spans]
    spans = _fit_to_window(spans, total, adjustments.min_word_duration, adjustments.max_word_duration)
    return line.with_words(_spread(texts, spans, start, end))
