"""Lyrics processing pipeline: fetch, time, refine, fill words, localize.

The pipeline runs strictly in order:

1. fetch (cache, then lyrics database in a worker thread)
2. parse synced lyrics, or spread plain lyrics over the track
3. optional audio refinement (DTW in a worker thread), kept only when
   its confidence clears the threshold
4. word timings for lines that have none
5. language detection and language-specific touch-ups

Each stage checks the request's cancellation token first. A cancelled
request raises RequestCancelled and never writes shared state.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..config import (
    CONFIDENCE_THRESHOLD,
    ENABLE_AI_ALIGNMENT,
    MAX_LINE_DURATION,
    MIN_LINE_DURATION,
    ORIGINAL_CONFIDENCE,
    PLAIN_TEXT_CONFIDENCE,
)
from ..exceptions import (
    CacheError,
    NetworkError,
    RefinementUnavailable,
    RequestCancelled,
    ValidationError,
)
from ..utils.cache import LyricsCache
from ..utils.logging import get_logger
from ..utils.validation import validate_duration, validate_line_bounds
from .alignment_dtw import LyricsAligner
from .audio_analysis import load_audio
from .language import SUPPORTED_LANGUAGES, apply_language_enhancements, detect_language
from .lrc import parse_lrc
from .lrclib import LRCLibClient
from .models import LyricLine, LyricsRecord, ProcessedLyrics
from .text_align import align_plain_text, estimate_total_duration, split_plain_lyrics
from .timing_models import AlignmentResult
from .word_timing import ensure_word_timings

logger = get_logger(__name__)


# ----------------------
# Cancellation
# ----------------------
class RequestSequencer:
    """Hands out request ids in increasing order; only the newest is current."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current_id = 0
        self._current_token: Optional["CancellationToken"] = None

    @property
    def current_id(self) -> int:
        return self._current_id

    def issue(self) -> "CancellationToken":
        """New token for a new request; the previous one is cancelled."""
        with self._lock:
            if self._current_token is not None:
                self._current_token.cancel()
            self._current_id += 1
            token = CancellationToken(self._current_id, self)
            self._current_token = token
        logger.debug(f"Issued lyrics request #{token.request_id}")
        return token

    def is_current(self, request_id: int) -> bool:
        return request_id == self._current_id


class CancellationToken:
    """Cancellation signal threaded through every pipeline stage.

    A token is cancelled explicitly or when its sequencer has moved on to
    a newer request. Safe to poll from worker threads.
    """

    def __init__(self, request_id: int = 0, sequencer: Optional[RequestSequencer] = None):
        self.request_id = request_id
        self._sequencer = sequencer
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._sequencer is not None and not self._sequencer.is_current(self.request_id)

    @property
    def is_current(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_cancelled(self, stage: str = "") -> None:
        if self.cancelled:
            where = f" before {stage}" if stage else ""
            logger.debug(f"Lyrics request #{self.request_id} cancelled{where}")
            raise RequestCancelled(f"Request #{self.request_id} superseded{where}")


# ----------------------
# Processor
# ----------------------
@dataclass
class ProcessorConfig:
    enable_ai_alignment: bool = ENABLE_AI_ALIGNMENT
    enable_word_level: bool = True
    language: str = "auto"  # "auto" or a fixed language code
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    min_line_duration: float = MIN_LINE_DURATION
    max_line_duration: float = MAX_LINE_DURATION


AudioLoader = Callable[[str], Tuple[object, int]]


class LyricsProcessor:
    """Turns ``(title, artist)`` into timed lyrics.

    Collaborators are injectable: ``client`` needs a
    ``fetch(track, artist, album, duration, should_cancel)`` method,
    ``cache`` follows the LyricsCache contract, ``audio_loader`` maps a
    path or URL to ``(samples, sample_rate)``.
    """

    def __init__(
        self,
        client: Optional[LRCLibClient] = None,
        cache: Optional[LyricsCache] = None,
        aligner: Optional[LyricsAligner] = None,
        audio_loader: Optional[AudioLoader] = None,
        config: Optional[ProcessorConfig] = None,
    ):
        self.client = client or LRCLibClient()
        self.cache = cache
        self.aligner = aligner
        self.audio_loader = audio_loader or load_audio
        self.config = config or ProcessorConfig()
        validate_line_bounds(self.config.min_line_duration, self.config.max_line_duration)

    async def process_track_lyrics(
        self,
        title: str,
        artist: str,
        audio_url: Optional[str] = None,
        token: Optional[CancellationToken] = None,
        duration_sec: Optional[float] = None,
    ) -> ProcessedLyrics:
        """Run the full pipeline for one track.

        Returns ``status="not_found"`` when no lyrics exist and
        ``status="error"`` when the database could not be reached.

        Raises:
            RequestCancelled: the token was cancelled at any stage
            ValidationError: ``duration_sec`` is negative or NaN, or the
                configured language is not supported
        """
        started = time.perf_counter()
        token = token or CancellationToken()
        duration_sec = validate_duration(duration_sec, "duration_sec")
        if self.config.language != "auto" and self.config.language not in SUPPORTED_LANGUAGES:
            raise ValidationError(f"Unsupported language: {self.config.language}")

        token.raise_if_cancelled("fetch")
        try:
            record, source = await self._fetch(title, artist, duration_sec, token)
        except NetworkError as e:
            token.raise_if_cancelled("reporting")
            logger.warning(f"Lyrics lookup failed for {title} - {artist}: {e}")
            return ProcessedLyrics(
                status="error",
                error="Could not reach the lyrics database. Try again.",
                processing_time=time.perf_counter() - started,
            )

        token.raise_if_cancelled("timing")
        lines, confidence, method = self._initial_timing(record, duration_sec)
        if not lines:
            logger.info(f"No usable lyrics for {title} - {artist}")
            return ProcessedLyrics(
                status="not_found",
                source=source,
                processing_time=time.perf_counter() - started,
            )

        language = self.config.language
        if language == "auto":
            language = detect_language(lines, title, artist)

        if audio_url and self.config.enable_ai_alignment:
            token.raise_if_cancelled("refinement")
            result = await self._refine(lines, audio_url, language, token)
            if result is not None:
                lines, confidence, method = result.lines, result.confidence, "ai-aligned"

        token.raise_if_cancelled("word timing")
        retime = {i for i, line in enumerate(lines) if not line.words}
        lines = ensure_word_timings(lines)

        token.raise_if_cancelled("language processing")
        lines = apply_language_enhancements(lines, language, retime)

        processed = ProcessedLyrics(
            lyrics=lines,
            confidence=confidence,
            method=method,
            processing_time=time.perf_counter() - started,
            has_word_timings=any(line.has_words for line in lines),
            language=language,
            status="found",
            source=source,
        )
        logger.info(
            f"Processed {len(lines)} lines for {title} - {artist} "
            f"({method}, confidence {confidence:.2f}, {language})"
        )
        return processed

    async def _fetch(
        self,
        title: str,
        artist: str,
        duration_sec: Optional[float],
        token: CancellationToken,
    ) -> Tuple[Optional[LyricsRecord], Optional[str]]:
        if self.cache is not None:
            cached = self.cache.get(title, artist)
            if cached is not None:
                logger.debug(f"Using cached lyrics for {title} - {artist}")
                return LyricsRecord.from_dict(cached), "cache"

        record = await asyncio.to_thread(
            self.client.fetch, title, artist, None, duration_sec, lambda: token.cancelled
        )
        # a response that arrives after supersession is dropped here
        token.raise_if_cancelled("caching")

        if record is not None and self.cache is not None:
            try:
                self.cache.set(title, artist, record.to_dict())
            except CacheError as e:
                logger.warning(f"Could not cache lyrics for {title} - {artist}: {e}")
        return record, "lrclib" if record is not None else None

    def _initial_timing(
        self, record: Optional[LyricsRecord], duration_sec: Optional[float]
    ) -> Tuple[List[LyricLine], float, str]:
        if record is None:
            return [], 0.0, "fallback"

        if record.has_synced:
            lines = parse_lrc(record.synced_lyrics or "")
            if lines:
                return lines, ORIGINAL_CONFIDENCE, "original"
            logger.debug("Synced lyrics had no timed lines; trying plain text")

        if record.has_plain:
            plain = record.plain_lyrics or ""
            total = record.duration or duration_sec
            if not total:
                total = estimate_total_duration(len(split_plain_lyrics(plain)))
                logger.debug(f"Track length unknown, assuming {total:.0f}s")
            aligned = align_plain_text(
                plain,
                total,
                self.config.min_line_duration,
                self.config.max_line_duration,
            )
            return [line.to_lyric_line() for line in aligned], PLAIN_TEXT_CONFIDENCE, "fallback"

        return [], 0.0, "fallback"

    async def _refine(
        self,
        lines: List[LyricLine],
        audio_url: str,
        language: str,
        token: CancellationToken,
    ) -> Optional[AlignmentResult]:
        """Audio refinement, or None when it is unavailable or untrusted."""
        try:
            samples, sample_rate = await asyncio.to_thread(self.audio_loader, audio_url)
        except (RefinementUnavailable, OSError) as e:
            logger.warning(f"Audio refinement unavailable: {e}")
            return None

        token.raise_if_cancelled("alignment")
        aligner = self.aligner or LyricsAligner(
            language=language, enable_word_level=self.config.enable_word_level
        )
        reference = [line.time for line in lines]
        result = await asyncio.to_thread(
            aligner.align, samples, sample_rate, lines, reference, lambda: token.cancelled
        )
        token.raise_if_cancelled("alignment review")

        if not result.success:
            logger.debug(f"Audio alignment unsuccessful: {result.error}")
            return None
        if result.confidence < self.config.confidence_threshold:
            logger.info(
                f"Discarding audio alignment: confidence {result.confidence:.2f} "
                f"< {self.config.confidence_threshold:.2f}"
            )
            return None
        return result


class LyricsSession:
    """Visible lyrics state for one caller (e.g. one player window).

    Each ``request()`` supersedes the previous one; a result is committed
    only if its request is still the newest when it finishes.
    """

    def __init__(self, processor: LyricsProcessor):
        self.processor = processor
        self.sequencer = RequestSequencer()
        self.current: Optional[ProcessedLyrics] = None
        self.current_track: Optional[Tuple[str, str]] = None

    async def request(
        self,
        title: str,
        artist: str,
        audio_url: Optional[str] = None,
        duration_sec: Optional[float] = None,
    ) -> Optional[ProcessedLyrics]:
        """Process a track; returns None if a newer request superseded it."""
        token = self.sequencer.issue()
        try:
            result = await self.processor.process_track_lyrics(
                title, artist, audio_url=audio_url, token=token, duration_sec=duration_sec
            )
        except RequestCancelled:
            return None

        if not token.is_current:
            logger.debug(f"Dropping stale result for request #{token.request_id}")
            return None
        self.current = result
        self.current_track = (title, artist)
        return result
