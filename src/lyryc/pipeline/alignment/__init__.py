"""Alignment subsystem facade.

Public entrypoints for audio-based refinement and timing evaluation.
"""

from ...core.alignment_dtw import LyricsAligner
from ...core.audio_analysis import extract_audio_features, load_audio
from ...core.comparison import compare_alignments, compare_lrc

__all__ = [
    "LyricsAligner",
    "compare_alignments",
    "compare_lrc",
    "extract_audio_features",
    "load_audio",
]
