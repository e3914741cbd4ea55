"""LRC parsing and serialization.

This module handles:
- LRC timestamp parsing (2-digit fractions are centiseconds, 3-digit milliseconds)
- Enhanced LRC word tags (``<mm:ss.xx>word``)
- Building LyricLine lists with derived durations
- Writing lines back out as LRC
"""

import re
from typing import List, Optional, Tuple

from ..config import DEFAULT_LINE_DURATION
from ..utils.logging import get_logger
from .models import AlignedLine, LyricLine, WordTiming

logger = get_logger(__name__)

# ----------------------
# LRC timestamp regex
# ----------------------
_LRC_TS_RE = re.compile(
    r"""
    \[                      # opening bracket
    (?P<min>\d+)            # minutes
    :
    (?P<sec>[0-5]?\d)       # seconds
    (?:[.:](?P<frac>\d{1,3}))?  # optional fractional seconds
    \]                      # closing bracket
    """,
    re.VERBOSE,
)

# One or more leading timestamps followed by the line text
_LRC_LINE_RE = re.compile(
    r"^(?P<stamps>(?:\[\d+:[0-5]?\d(?:[.:]\d{1,3})?\])+)(?P<text>.*)$"
)

_WORD_TAG_RE = re.compile(
    r"<(?P<min>\d+):(?P<sec>[0-5]?\d)(?:[.:](?P<frac>\d{1,3}))?>(?P<word>[^<]*)"
)
_ANY_WORD_TAG_RE = re.compile(r"<\d+:\d{1,2}(?:[.:]\d{1,3})?>")

# [ar:Artist], [ti:Title], [offset:+200], [length: 03:12] ...
_METADATA_TAG_RE = re.compile(r"^\[(?P<tag>[a-zA-Z#]+)\s*:(?P<value>.*)\]\s*$")

_HAS_TIMESTAMP_RE = re.compile(r"\[\d{1,2}:\d{2}(?:[.:]\d{2,3})?\]")


def _to_seconds(minutes: str, seconds: str, frac: Optional[str]) -> Optional[float]:
    sec = int(seconds)
    if sec >= 60:
        return None
    if not frac:
        frac_seconds = 0.0
    elif len(frac) == 3:
        frac_seconds = int(frac) / 1000.0  # milliseconds
    elif len(frac) == 2:
        frac_seconds = int(frac) / 100.0  # centiseconds
    else:
        frac_seconds = int(frac) / 10.0
    return int(minutes) * 60 + sec + frac_seconds


# ----------------------
# LRC timestamp parsing
# ----------------------
def parse_lrc_timestamp(ts: str) -> Optional[float]:
    """Parse a single LRC timestamp like [01:23.45] to seconds."""
    if not ts:
        return None
    match = _LRC_TS_RE.match(ts.strip())
    if not match:
        return None
    return _to_seconds(match.group("min"), match.group("sec"), match.group("frac"))


def strip_word_tags(text: str) -> str:
    """Remove ``<mm:ss.xx>`` word tags and collapse whitespace."""
    cleaned = _ANY_WORD_TAG_RE.sub(" ", text or "")
    return re.sub(r"\s+", " ", cleaned).strip()


def parse_word_timings(text: str) -> List[WordTiming]:
    """Extract word timings from enhanced-LRC word tags.

    Each word ends where the next tagged word starts. A trailing tag with
    no text only marks the end of the previous word. Otherwise the last
    word is left open (``end == start``) for ``close_open_words``.
    """
    words: List[WordTiming] = []
    for match in _WORD_TAG_RE.finditer(text or ""):
        start = _to_seconds(match.group("min"), match.group("sec"), match.group("frac"))
        if start is None:
            continue
        if words and words[-1].end == words[-1].start:
            words[-1].end = max(start, words[-1].start)
        word = match.group("word").strip()
        if not word:
            continue
        words.append(WordTiming(word=word, start=start, end=start))
    return words


def close_open_words(line: LyricLine, next_start: Optional[float] = None) -> LyricLine:
    """Close a dangling last word to the line end, next line or default span."""
    if not line.words:
        return line
    last = line.words[-1]
    if last.end > last.start:
        return line

    if line.duration is not None and line.time + line.duration > last.start:
        end = line.time + line.duration
    elif next_start is not None and next_start > last.start:
        end = next_start
    else:
        end = last.start + DEFAULT_LINE_DURATION

    words = list(line.words[:-1]) + [WordTiming(last.word, last.start, end)]
    return line.with_words(words)


def _is_metadata_tag(raw: str) -> bool:
    return bool(_METADATA_TAG_RE.match(raw)) and not _LRC_LINE_RE.match(raw)


def parse_lrc(lrc_text: str) -> List[LyricLine]:
    """Parse an LRC payload into timed lines sorted by start time.

    Lines without a leading timestamp or without text are skipped. A line
    carrying several timestamps (``[00:10.00][00:30.00]chorus``) yields one
    line per timestamp. Every line's duration is the gap to the next line,
    the last one gets DEFAULT_LINE_DURATION.
    """
    if not lrc_text:
        return []

    parsed: List[Tuple[float, int, LyricLine]] = []
    for order, raw in enumerate(lrc_text.splitlines()):
        raw = raw.strip()
        if not raw:
            continue
        if _is_metadata_tag(raw):
            logger.debug(f"Skipping LRC metadata tag: {raw}")
            continue

        match = _LRC_LINE_RE.match(raw)
        if not match:
            logger.debug(f"Skipping malformed LRC line: {raw!r}")
            continue

        body = match.group("text")
        text = strip_word_tags(body)
        if not text:
            continue
        words = parse_word_timings(body) or None

        stamp_times = [
            _to_seconds(s.group("min"), s.group("sec"), s.group("frac"))
            for s in _LRC_TS_RE.finditer(match.group("stamps"))
        ]
        stamp_times = [t for t in stamp_times if t is not None]
        for time in stamp_times:
            line_words = None
            if words:
                # Word tags are absolute to the first timestamp; repeats shift with it
                shift = time - stamp_times[0]
                line_words = [WordTiming(w.word, w.start + shift, w.end + shift) for w in words]
            parsed.append((time, order, LyricLine(time=time, text=text, words=line_words)))

    parsed.sort(key=lambda item: (item[0], item[1]))
    lines = [line for _, _, line in parsed]

    for i, line in enumerate(lines):
        if i + 1 < len(lines):
            line.duration = lines[i + 1].time - line.time
        else:
            line.duration = DEFAULT_LINE_DURATION

    return lines


def parse_lrc_to_aligned(lrc_text: str) -> List[AlignedLine]:
    """Parse LRC into AlignedLines for comparisons."""
    return [
        AlignedLine(time=line.time, text=line.text, duration=line.effective_duration)
        for line in parse_lrc(lrc_text)
    ]


# ----------------------
# Quality helpers
# ----------------------
def has_timestamps(lrc_text: str) -> bool:
    """Check if LRC text contains timestamps."""
    if not lrc_text:
        return False
    return bool(_HAS_TIMESTAMP_RE.search(lrc_text))


def get_lrc_duration(lrc_text: str) -> Optional[float]:
    """Get the implied duration from LRC text based on timestamp span."""
    if not lrc_text or not has_timestamps(lrc_text):
        return None

    lines = parse_lrc(lrc_text)
    if len(lines) < 2:
        return None

    lyrics_span = lines[-1].time - lines[0].time
    buffer = max(DEFAULT_LINE_DURATION, lyrics_span * 0.1)
    return lines[-1].time + buffer


# ----------------------
# Serialization
# ----------------------
def format_lrc_timestamp(seconds: float) -> str:
    """Format seconds as ``[mm:ss.cc]``."""
    centis = int(round(max(seconds, 0.0) * 100))
    minutes, centis = divmod(centis, 6000)
    secs, centis = divmod(centis, 100)
    return f"[{minutes:02d}:{secs:02d}.{centis:02d}]"


def to_lrc(lines: List[LyricLine], word_tags: bool = False) -> str:
    """Serialize lines as LRC, optionally with enhanced word tags."""
    out = []
    for line in lines:
        if word_tags and line.words:
            body = " ".join(
                f"<{format_lrc_timestamp(w.start)[1:-1]}>{w.word}" for w in line.words
            )
            body += f" <{format_lrc_timestamp(line.words[-1].end)[1:-1]}>"
        else:
            body = line.text
        out.append(f"{format_lrc_timestamp(line.time)}{body}")
    return "\n".join(out)
