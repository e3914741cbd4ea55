"""Lyrics subsystem facade.

Public entrypoints for lyrics acquisition, parsing and heuristic timing.
"""

from ...core.lrc import parse_lrc, to_lrc
from ...core.lrclib import LRCLibClient
from ...core.lyrics_processor import (
    CancellationToken,
    LyricsProcessor,
    LyricsSession,
    ProcessorConfig,
    RequestSequencer,
)
from ...core.text_align import align_plain_text
from ...core.word_timing import generate_word_timings

__all__ = [
    "CancellationToken",
    "LRCLibClient",
    "LyricsProcessor",
    "LyricsSession",
    "ProcessorConfig",
    "RequestSequencer",
    "align_plain_text",
    "generate_word_timings",
    "parse_lrc",
    "to_lrc",
]
