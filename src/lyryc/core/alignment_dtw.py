"""DTW alignment of lyric lines against audio features.

Audio frames (MFCC rows) are matched to per-line text feature vectors with
classic dynamic time warping. The first frame each line is matched to
becomes its refined start time. Words inside a refined line start from
the weighted text estimate and have their internal boundaries pulled
toward nearby energy troughs.
"""

import math
import time
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import (
    DEFAULT_CONFIDENCE,
    CONFIDENCE_DEVIATION_CAP,
    DEFAULT_LINE_DURATION,
    MIN_REFINED_LINE_DURATION,
    N_MFCC,
    WORD_SEARCH_WINDOW,
)
from ..exceptions import RefinementUnavailable, RequestCancelled
from ..utils.logging import get_logger
from .audio_analysis import extract_audio_features
from .models import LyricLine, WordTiming
from .phonetic_utils import text_features
from .timing_models import AlignmentResult, AudioFeatures
from .word_timing import generate_word_timings

logger = get_logger(__name__)

DTWPath = List[Tuple[int, int]]


# ----------------------
# Cost / accumulation
# ----------------------
def compute_cost_matrix(
    audio_feats: np.ndarray, text_feats: np.ndarray, n_dims: int = N_MFCC
) -> np.ndarray:
    """RMS distance between every audio frame and every line vector.

    Only the first ``n_dims`` dimensions shared by both sides are compared.
    Returns an ``(frames, lines)`` array.
    """
    from scipy.spatial.distance import cdist

    frames = audio_feats.shape[0]
    lines = text_feats.shape[0]
    if frames == 0 or lines == 0:
        return np.zeros((frames, lines), dtype=np.float64)

    dims = min(n_dims, audio_feats.shape[1], text_feats.shape[1])
    sq = cdist(audio_feats[:, :dims], text_feats[:, :dims], metric="sqeuclidean")
    return np.sqrt(sq / dims)


def _band_limits(i: int, frames: int, lines: int, band: Optional[float]) -> Tuple[int, int]:
    if band is None:
        return 1, lines
    # Sakoe-Chiba band around the straight diagonal, never narrower than one step
    radius = max(float(band), frames / lines)
    lo = max(1, int(math.ceil((i - radius) * lines / frames)))
    hi = min(lines, int(math.floor((i + radius) * lines / frames)))
    return lo, hi


def dtw_accumulate(
    cost: np.ndarray,
    band: Optional[float] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> np.ndarray:
    """Fill the ``(frames+1, lines+1)`` accumulated-cost table.

    ``acc[0][0] = 0`` and every other edge cell is infinite. With ``band``
    set, cells further than ``band`` frames from the diagonal stay infinite.
    """
    frames, lines = cost.shape
    inf = float("inf")
    acc = [[inf] * (lines + 1) for _ in range(frames + 1)]
    acc[0][0] = 0.0
    rows = cost.tolist()

    for i in range(1, frames + 1):
        if should_cancel is not None and i % 1024 == 0 and should_cancel():
            raise RequestCancelled("Alignment cancelled")
        prev = acc[i - 1]
        cur = acc[i]
        row = rows[i - 1]
        lo, hi = _band_limits(i, frames, lines, band)
        for j in range(lo, hi + 1):
            best = prev[j - 1]
            if prev[j] < best:
                best = prev[j]
            if cur[j - 1] < best:
                best = cur[j - 1]
            cur[j] = row[j - 1] + best

    return np.array(acc, dtype=np.float64)


def backtrack_path(acc: np.ndarray) -> DTWPath:
    """Walk back from the final cell to the origin.

    Predecessor ties resolve diagonal first, then insertion (previous
    frame, same line), then deletion (same frame, previous line).
    Returns ``(audio_frame, line_index)`` pairs in ascending order.
    """
    i = acc.shape[0] - 1
    j = acc.shape[1] - 1
    if i <= 0 or j <= 0:
        return []
    if not np.isfinite(acc[i, j]):
        raise RefinementUnavailable("No finite DTW path")

    path: DTWPath = []
    while i > 0 and j > 0:
        path.append((i - 1, j - 1))
        options = (
            (acc[i - 1, j - 1], -1, -1),  # diagonal
            (acc[i - 1, j], -1, 0),  # insertion
            (acc[i, j - 1], 0, -1),  # deletion
        )
        best_cost, di, dj = options[0]
        for cost, oi, oj in options[1:]:
            if cost < best_cost:
                best_cost, di, dj = cost, oi, oj
        i += di
        j += dj

    path.reverse()
    return path


# ----------------------
# Line / word refinement
# ----------------------
def refine_line_times(
    lines: Sequence[LyricLine], path: DTWPath, frame_rate: float
) -> List[LyricLine]:
    """Move each line to the first audio frame the path matched it with.

    Lines the path never reaches keep their time. Times are kept
    non-decreasing; durations become the gap to the next line (at least
    MIN_REFINED_LINE_DURATION) and the last line keeps its own duration.
    Existing word timings are rescaled into the new window.
    """
    first_frame = {}
    for frame, line_index in path:
        first_frame.setdefault(line_index, frame)

    times: List[float] = []
    prev: Optional[float] = None
    for j, line in enumerate(lines):
        t = first_frame[j] / frame_rate if j in first_frame else line.time
        if prev is not None and t < prev:
            t = prev
        times.append(t)
        prev = t

    refined: List[LyricLine] = []
    for j, line in enumerate(lines):
        if j + 1 < len(lines):
            duration = max(MIN_REFINED_LINE_DURATION, times[j + 1] - times[j])
        else:
            duration = line.duration if line.duration is not None else DEFAULT_LINE_DURATION
        moved = line.with_time(times[j], duration)
        if line.words:
            moved = moved.with_words(_rescale_words(line, times[j], duration))
        refined.append(moved)
    return refined


def _rescale_words(line: LyricLine, start: float, duration: float) -> List[WordTiming]:
    """Map a line's words onto ``[start, start + duration]`` keeping their proportions.

    The last word is closed at the window end. Falls back to weighted
    estimates when the old timings cannot be mapped.
    """
    words = line.words or []
    end = start + duration
    old_span = line.effective_duration
    if old_span <= 0 or duration <= 0:
        return generate_word_timings(text=" ".join(w.word for w in words), start=start, duration=duration)

    scale = duration / old_span

    def place(t: float) -> float:
        return min(end, max(start, start + (t - line.time) * scale))

    fitted = [WordTiming(w.word, place(w.start), place(w.end)) for w in words]
    fitted[0] = WordTiming(fitted[0].word, start, fitted[0].end)
    last = fitted[-1]
    if last.start >= end:
        return generate_word_timings(text=" ".join(w.word for w in words), start=start, duration=duration)
    fitted[-1] = WordTiming(last.word, last.start, end)
    return fitted


def _deepest_trough(energy: np.ndarray, center: int, radius: int) -> Optional[int]:
    from scipy.signal import find_peaks

    lo = max(0, center - radius)
    hi = min(len(energy), center + radius + 1)
    if hi - lo < 3:
        return None
    segment = energy[lo:hi]
    troughs, _ = find_peaks(-segment)
    if len(troughs) == 0:
        return None
    return lo + int(troughs[np.argmin(segment[troughs])])


def refine_words_in_line(
    line: LyricLine,
    start: float,
    duration: float,
    features: AudioFeatures,
    search_window: float = WORD_SEARCH_WINDOW,
) -> List[WordTiming]:
    """Word timings for a moved line, nudged toward energy troughs.

    The result always spans ``[start, start + duration]`` contiguously. If
    nudging would collapse a word the plain weighted estimate is kept.
    """
    texts = [w.word for w in line.words] if line.words else None
    text = " ".join(texts) if texts else line.text
    estimates = generate_word_timings(text=text, start=start, duration=duration)
    if len(estimates) <= 1 or duration <= 0:
        return estimates

    end = start + duration
    radius = max(1, int(round(search_window * features.frame_rate)))
    edges = [start]
    for word in estimates[1:]:
        boundary = word.start
        trough = _deepest_trough(features.energy, features.time_to_frame(boundary), radius)
        if trough is not None:
            boundary = features.frame_to_time(trough)
        boundary = min(max(boundary, edges[-1]), end)
        edges.append(boundary)
    edges.append(end)

    if any(edges[k + 1] <= edges[k] for k in range(len(edges) - 1)):
        return estimates

    return [
        WordTiming(word=w.word, start=edges[k], end=edges[k + 1])
        for k, w in enumerate(estimates)
    ]


def alignment_confidence(
    lines: Sequence[LyricLine], reference_times: Optional[Sequence[float]]
) -> float:
    """``max(0, 1 - mean_abs_deviation / 5s)`` against reference start times.

    Without a same-length reference the default (unverified) confidence is
    returned.
    """
    if not reference_times or len(reference_times) != len(lines) or not lines:
        return DEFAULT_CONFIDENCE
    deviation = sum(abs(line.time - ref) for line, ref in zip(lines, reference_times))
    mean_deviation = deviation / len(lines)
    return max(0.0, 1.0 - mean_deviation / CONFIDENCE_DEVIATION_CAP)


# ----------------------
# Aligner
# ----------------------
class LyricsAligner:
    """Best-effort audio alignment; failures come back as ``success=False``."""

    def __init__(
        self,
        language: str = "en",
        enable_word_level: bool = True,
        band: Optional[float] = None,
        search_window: float = WORD_SEARCH_WINDOW,
    ):
        self.language = language
        self.enable_word_level = enable_word_level
        self.band = band
        self.search_window = search_window

    def align(
        self,
        samples: np.ndarray,
        sample_rate: int,
        lines: Sequence[LyricLine],
        reference_times: Optional[Sequence[float]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> AlignmentResult:
        """Align lines against a decoded signal.

        Only RequestCancelled escapes; every other error is reported in the
        result with the input lines handed back untouched.
        """
        started = time.perf_counter()
        try:
            features = extract_audio_features(samples, sample_rate)
        except RequestCancelled:
            raise
        except Exception as e:
            logger.warning(f"Audio feature extraction failed: {e}")
            return AlignmentResult(
                lines=list(lines),
                processing_time=time.perf_counter() - started,
                error=str(e),
            )
        result = self.align_features(features, lines, reference_times, should_cancel)
        result.processing_time = time.perf_counter() - started
        return result

    def align_features(
        self,
        features: AudioFeatures,
        lines: Sequence[LyricLine],
        reference_times: Optional[Sequence[float]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> AlignmentResult:
        started = time.perf_counter()
        try:
            if not lines:
                raise RefinementUnavailable("No lyric lines to align")
            if features.num_frames == 0:
                raise RefinementUnavailable("No audio frames to align")

            text_feats = text_features(lines, self.language)
            cost = compute_cost_matrix(features.mfcc, text_feats)
            acc = dtw_accumulate(cost, band=self.band, should_cancel=should_cancel)
            if should_cancel is not None and should_cancel():
                raise RequestCancelled("Alignment cancelled")
            path = backtrack_path(acc)

            refined = refine_line_times(lines, path, features.frame_rate)
            if self.enable_word_level:
                refined = [
                    line.with_words(
                        refine_words_in_line(
                            line, line.time, line.duration, features, self.search_window
                        )
                    )
                    if line.words
                    else line
                    for line in refined
                ]

            confidence = alignment_confidence(refined, reference_times)
            logger.debug(
                f"DTW aligned {len(lines)} lines over {features.num_frames} frames "
                f"(confidence {confidence:.2f})"
            )
            return AlignmentResult(
                lines=refined,
                confidence=confidence,
                processing_time=time.perf_counter() - started,
                success=True,
                path=path,
            )
        except RequestCancelled:
            raise
        except Exception as e:
            logger.warning(f"Audio alignment failed: {e}")
            return AlignmentResult(
                lines=list(lines),
                processing_time=time.perf_counter() - started,
                error=str(e),
            )
