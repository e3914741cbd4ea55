"""Data models for audio-based timing refinement."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .models import LyricLine


@dataclass
class AudioFeatures:
    """Frame-level audio features (one row/entry per hop)."""

    mfcc: np.ndarray  # (frames, n_mfcc) cepstral coefficients
    energy: np.ndarray  # mean square per frame
    spectral_centroid: np.ndarray  # Hz
    zero_crossing_rate: np.ndarray  # crossings per sample
    frame_rate: float  # frames per second

    @property
    def num_frames(self) -> int:
        return int(self.mfcc.shape[0])

    @property
    def duration(self) -> float:
        return self.num_frames / self.frame_rate if self.frame_rate > 0 else 0.0

    def frame_to_time(self, frame: int) -> float:
        return frame / self.frame_rate

    def time_to_frame(self, t: float) -> int:
        return int(np.floor(t * self.frame_rate))


@dataclass
class AlignmentResult:
    """Outcome of an audio alignment attempt."""

    lines: List[LyricLine]
    confidence: float = 0.0
    processing_time: float = 0.0
    success: bool = False
    error: Optional[str] = None
    path: List[Tuple[int, int]] = field(default_factory=list)  # (audio_frame, line_index)
