"""Heuristic line timing for plain (untimed) lyrics.

Each line gets a weight from its length, punctuation and symbol density;
the track duration is shared out by weight, clamped per line, then
rescaled once so the sequence ends exactly at the track end.
"""

import math
import re
from typing import List, Optional

from ..config import MAX_LINE_DURATION, MIN_LINE_DURATION, PLACEHOLDER_LINE_DURATION
from ..exceptions import ValidationError
from ..utils.logging import get_logger
from ..utils.validation import validate_line_bounds
from .models import AlignedLine

logger = get_logger(__name__)

_SECTION_MARKER_RE = re.compile(r"^\[.*?\]$")
_PUNCT_RE = re.compile(r"[,.!?;:]")
_LONG_WORD_RE = re.compile(r"\b\w{7,}\b", re.ASCII)
_CHORUS_RE = re.compile(r"\b(chorus|hook|副歌)\b", re.IGNORECASE)
_SPECIAL_RE = re.compile(r"[^\w\s]", re.ASCII)


def split_plain_lyrics(plain: str) -> List[str]:
    """Split plain lyrics into sung lines.

    Blank lines and bracketed section headers like ``[Verse 2]`` are dropped.
    """
    if not plain:
        return []
    lines = []
    for raw in re.split(r"\r?\n", plain):
        text = raw.strip()
        if not text or _SECTION_MARKER_RE.match(text):
            continue
        lines.append(text)
    return lines


def line_weight(text: str) -> float:
    """Relative singing time of a line."""
    weight = 1.0
    weight += min(len(text) / 12, 6)
    weight += len(_PUNCT_RE.findall(text)) * 0.5
    weight += len(_LONG_WORD_RE.findall(text)) * 0.3
    if _CHORUS_RE.search(text):
        weight += 1
    weight += min(len(_SPECIAL_RE.findall(text)) * 0.1, 1)
    return max(0.5, weight)


def estimate_total_duration(line_count: int) -> float:
    """Placeholder track length when the real duration is unknown."""
    return max(line_count, 0) * PLACEHOLDER_LINE_DURATION


def align_plain_text(
    text: str,
    total_duration_sec: Optional[float],
    min_line_duration_sec: float = MIN_LINE_DURATION,
    max_line_duration_sec: float = MAX_LINE_DURATION,
) -> List[AlignedLine]:
    """Spread plain lyrics over ``total_duration_sec``.

    Returns ``[]`` for empty text or a non-positive total. Raises
    ValidationError for NaN totals or inconsistent bounds.
    """
    validate_line_bounds(min_line_duration_sec, max_line_duration_sec)
    if total_duration_sec is None:
        return []
    if math.isnan(total_duration_sec):
        raise ValidationError("total_duration_sec must not be NaN")

    lines = split_plain_lyrics(text)
    if not lines or total_duration_sec <= 0:
        return []

    weights = [line_weight(line) for line in lines]
    total_weight = sum(weights)
    allocations = [w / total_weight * total_duration_sec for w in weights]

    durations = [
        min(max_line_duration_sec, max(min_line_duration_sec, d)) for d in allocations
    ]
    clamped_total = sum(durations)
    if clamped_total <= 0:
        # Only reachable with a zero minimum; fall back to the raw shares
        durations = allocations
        clamped_total = sum(durations)

    scale = total_duration_sec / clamped_total
    if abs(scale - 1.0) > 1e-9:
        logger.debug(f"Rescaling {len(lines)} clamped line durations by {scale:.3f}")
    durations = [d * scale for d in durations]

    result: List[AlignedLine] = []
    t = 0.0
    for line, duration in zip(lines, durations):
        result.append(AlignedLine(time=t, text=line, duration=duration))
        t += duration

    # Float leftovers go onto the last line so the sequence ends on the track end
    last = result[-1]
    last.duration = total_duration_sec - last.time

    return result
