"""Client for the LRCLIB lyrics database.

A lookup runs through an ordered list of search strategies, from the most
specific (title, artist, album and duration) to loose wildcard queries,
and stops at the first strategy that yields lyrics.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from ..config import (
    LRCLIB_BASE_URL,
    REQUEST_TIMEOUT,
    STRATEGY_DELAY,
    STRATEGY_MAX_RETRIES,
    STRATEGY_RETRY_DELAY,
    USER_AGENT,
)
from ..exceptions import NetworkError, RequestCancelled
from ..utils.logging import get_logger
from ..utils.retry import linear_backoff, retry_request
from .models import LyricsRecord
from .track_cleaning import clean_track_name, remove_artist_from_track

logger = get_logger(__name__)

# Transport problems worth another attempt; ValueError covers bad JSON bodies
TRANSIENT_ERRORS = (requests.RequestException, ValueError)


@dataclass
class SearchStrategy:
    """One search attempt: either structured ``params`` or a free-text ``query``."""

    description: str
    params: Optional[Dict[str, Any]] = None
    query: Optional[str] = None

    def key(self) -> tuple:
        if self.query is not None:
            return ("q", self.query.lower())
        return tuple(sorted((k, str(v).lower()) for k, v in (self.params or {}).items()))


def _params(track: str, artist: str, album: Optional[str] = None,
            duration: Optional[float] = None) -> Dict[str, Any]:
    params: Dict[str, Any] = {"track_name": track}
    if artist:
        params["artist_name"] = artist
    if album:
        params["album_name"] = album
    if duration:
        params["duration"] = int(round(duration))
    return params


def build_search_strategies(
    track: str,
    artist: str,
    album: Optional[str] = None,
    duration: Optional[float] = None,
) -> List[SearchStrategy]:
    """Ordered, de-duplicated strategies for one track.

    Exact match first, then progressively looser parameter sets, then
    title variants, then wildcard text queries.
    """
    track = (track or "").strip()
    artist = (artist or "").strip()
    if not track:
        return []

    cleaned = clean_track_name(track)
    without_artist = remove_artist_from_track(track, artist)

    candidates = [
        SearchStrategy("exact match", params=_params(track, artist, album, duration)),
        SearchStrategy("without album", params=_params(track, artist, None, duration)),
        SearchStrategy("without duration", params=_params(track, artist, album, None)),
        SearchStrategy("title and artist", params=_params(track, artist)),
    ]
    if cleaned:
        candidates.append(SearchStrategy("cleaned title", params=_params(cleaned, artist)))
    if without_artist:
        candidates.append(
            SearchStrategy("title without artist", params=_params(without_artist, artist))
        )
    if artist:
        candidates.append(SearchStrategy("swapped title/artist", params=_params(artist, track)))
        candidates.append(SearchStrategy("wildcard title artist", query=f"{track} {artist}"))
    candidates.append(SearchStrategy("wildcard title", query=track))
    if cleaned and artist:
        candidates.append(SearchStrategy("wildcard cleaned title artist", query=f"{cleaned} {artist}"))
    if cleaned:
        candidates.append(SearchStrategy("wildcard cleaned title", query=cleaned))

    strategies: List[SearchStrategy] = []
    seen = set()
    for strategy in candidates:
        key = strategy.key()
        if key in seen:
            continue
        seen.add(key)
        strategies.append(strategy)
    return strategies


def pick_best(results: List[Dict[str, Any]]) -> Optional[LyricsRecord]:
    """Prefer the first record with synced lyrics, then the first with plain text."""
    records = [LyricsRecord.from_api(r) for r in results if isinstance(r, dict)]
    for record in records:
        if record.has_synced:
            return record
    for record in records:
        if record.has_plain:
            return record
    return None


class LRCLibClient:
    """Thin requests wrapper around the ``/search`` endpoint."""

    def __init__(
        self,
        base_url: str = LRCLIB_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
        max_retries: int = STRATEGY_MAX_RETRIES,
        retry_delay: float = STRATEGY_RETRY_DELAY,
        strategy_delay: float = STRATEGY_DELAY,
        sleep_fn: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.strategy_delay = strategy_delay
        self._sleep = sleep_fn

    def _get(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        sess = self.session or requests
        resp = sess.get(
            f"{self.base_url}/search",
            params=params,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, list) else []

    def search(
        self,
        track: str,
        artist: str,
        album: Optional[str] = None,
        duration: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """Structured search; raw records in database order."""
        return self._get(_params(track, artist, album, duration))

    def search_query(self, query: str) -> List[Dict[str, Any]]:
        """Free-text search across title, artist and album."""
        return self._get({"q": query})

    def run_strategy(
        self,
        strategy: SearchStrategy,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Optional[LyricsRecord]:
        """Run one strategy with retries on transport errors."""
        if strategy.query is not None:
            func, arg = self.search_query, strategy.query
        else:
            func, arg = self._get, strategy.params or {}
        results = retry_request(
            func, arg,
            max_retries=self.max_retries,
            delay_for=linear_backoff(self.retry_delay),
            exceptions=TRANSIENT_ERRORS,
            sleep=self._sleep,
            should_cancel=should_cancel,
        )
        return pick_best(results)

    def fetch(
        self,
        track: str,
        artist: str,
        album: Optional[str] = None,
        duration: Optional[float] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Optional[LyricsRecord]:
        """Walk the strategies until one returns lyrics.

        Returns None when every strategy answered but none had lyrics.

        Raises:
            NetworkError: every strategy failed on transport
            RequestCancelled: ``should_cancel`` fired between strategies or
                between retries
        """
        strategies = build_search_strategies(track, artist, album, duration)
        failures = 0
        last_error: Optional[Exception] = None

        for index, strategy in enumerate(strategies):
            if should_cancel is not None and should_cancel():
                raise RequestCancelled(f"Lyrics lookup cancelled: {track} - {artist}")
            if index > 0:
                self._sleep(self.strategy_delay)

            logger.debug(f"LRCLIB strategy '{strategy.description}' for {track} - {artist}")
            try:
                record = self.run_strategy(strategy, should_cancel)
            except TRANSIENT_ERRORS as e:
                failures += 1
                last_error = e
                logger.debug(f"Strategy '{strategy.description}' failed: {e}")
                continue

            if record is not None:
                kind = "synced" if record.has_synced else "plain"
                logger.info(
                    f"Found {kind} lyrics for {track} - {artist} via '{strategy.description}'"
                )
                return record

        if strategies and failures == len(strategies):
            raise NetworkError(f"Lyrics database unreachable: {last_error}")
        logger.info(f"No lyrics found for {track} - {artist}")
        return None
