"""Core functionality modules.

Heavy audio dependencies (librosa, scipy) are imported lazily inside the
functions that need them, so parsing and text timing work without them.
"""

from .models import (
    AlignedLine,
    AlignmentMetrics,
    LyricLine,
    LyricsRecord,
    ProcessedLyrics,
    WordTiming,
)

__all__ = [
    "AlignedLine",
    "AlignmentMetrics",
    "LyricLine",
    "LyricsRecord",
    "ProcessedLyrics",
    "WordTiming",
]
