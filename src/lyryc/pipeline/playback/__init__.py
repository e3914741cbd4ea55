"""Playback subsystem facade.

Public entrypoints for the display clock, user offsets and active line lookup.
"""

from ...core.clock import ClockState, PlaybackClock
from ...core.offsets import OffsetStore, adjusted_time
from ...core.timeline import (
    find_current_line_index,
    find_current_word_index,
    line_progress,
    word_progress,
)

__all__ = [
    "ClockState",
    "OffsetStore",
    "PlaybackClock",
    "adjusted_time",
    "find_current_line_index",
    "find_current_word_index",
    "line_progress",
    "word_progress",
]
