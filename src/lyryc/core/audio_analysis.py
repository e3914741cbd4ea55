"""Audio loading and frame-level feature extraction."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

import numpy as np
import requests  # type: ignore[import-untyped]

from ..config import FRAME_SIZE, HOP_SIZE, N_MEL_BANDS, N_MFCC, REQUEST_TIMEOUT, USER_AGENT
from ..exceptions import RefinementUnavailable
from ..utils.logging import get_logger
from .timing_models import AudioFeatures

logger = get_logger(__name__)

DEFAULT_SAMPLE_RATE = 22050


def _is_url(source: str) -> bool:
    return urlparse(str(source)).scheme in ("http", "https")


def _download_audio(
    url: str,
    timeout: float = REQUEST_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> Path:
    """Download a remote audio file to a temporary path."""
    sess = session or requests
    suffix = Path(urlparse(url).path).suffix or ".audio"
    try:
        resp = sess.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout, stream=True)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise RefinementUnavailable(f"Audio download failed: {e}") from e

    fd, tmp_name = tempfile.mkstemp(prefix="lyryc_", suffix=suffix)
    with os.fdopen(fd, "wb") as f:
        for chunk in resp.iter_content(chunk_size=1 << 16):
            if chunk:
                f.write(chunk)
    logger.debug(f"Downloaded audio to {tmp_name}")
    return Path(tmp_name)


def load_audio(
    source: str,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    session: Optional[requests.Session] = None,
) -> Tuple[np.ndarray, int]:
    """Load mono audio from a local path or an http(s) URL.

    Raises:
        RefinementUnavailable: the audio could not be fetched or decoded
    """
    import librosa

    tmp_path = None
    path = source
    if _is_url(source):
        tmp_path = _download_audio(source, session=session)
        path = str(tmp_path)
    try:
        y, sr = librosa.load(path, sr=sample_rate, mono=True)
    except Exception as e:
        raise RefinementUnavailable(f"Could not decode audio {source}: {e}") from e
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)

    logger.debug(f"Loaded audio: {len(y) / sr:.1f}s at {sr} Hz")
    return y, sr


def extract_audio_features(
    samples: np.ndarray,
    sample_rate: int,
    frame_size: int = FRAME_SIZE,
    hop_size: int = HOP_SIZE,
    n_mels: int = N_MEL_BANDS,
    n_mfcc: int = N_MFCC,
) -> AudioFeatures:
    """Compute per-frame MFCC, energy, spectral centroid and zero-crossing rate.

    Args:
        samples: mono signal; multichannel input is averaged
        sample_rate: samples per second
        frame_size: analysis window in samples
        hop_size: step between frames in samples

    Returns:
        AudioFeatures with ``frame_rate = sample_rate / hop_size``

    Raises:
        ValueError: signal shorter than one frame or invalid sample rate
    """
    import librosa
    from scipy.fft import dct

    if sample_rate <= 0:
        raise ValueError(f"Invalid sample rate: {sample_rate}")

    y = np.asarray(samples, dtype=np.float64)
    if y.ndim > 1:
        y = np.mean(y, axis=0)
    if y.shape[0] < frame_size:
        raise ValueError(
            f"Audio too short for analysis: {y.shape[0]} samples < frame size {frame_size}"
        )

    # (frame_size, n_frames) -> one row per frame
    frames = librosa.util.frame(y, frame_length=frame_size, hop_length=hop_size).T

    spectrum = np.abs(np.fft.rfft(frames, axis=1))
    mel_basis = librosa.filters.mel(sr=sample_rate, n_fft=frame_size, n_mels=n_mels)
    mel = spectrum @ mel_basis.T
    log_mel = np.log(mel + 1e-10)
    # unnormalized DCT-II is twice the plain cosine sum
    mfcc = dct(log_mel, type=2, axis=1, norm=None)[:, :n_mfcc] / 2.0

    energy = np.mean(frames ** 2, axis=1)

    freqs = np.fft.rfftfreq(frame_size, d=1.0 / sample_rate)
    magnitude_sum = spectrum.sum(axis=1)
    centroid = np.divide(
        spectrum @ freqs,
        magnitude_sum,
        out=np.zeros_like(magnitude_sum),
        where=magnitude_sum > 0,
    )

    crossings = np.sum(frames[:, 1:] * frames[:, :-1] < 0, axis=1)
    zcr = crossings / frame_size

    features = AudioFeatures(
        mfcc=mfcc,
        energy=energy,
        spectral_centroid=centroid,
        zero_crossing_rate=zcr,
        frame_rate=sample_rate / hop_size,
    )
    logger.debug(
        f"Extracted {features.num_frames} frames at {features.frame_rate:.2f} fps"
    )
    return features
