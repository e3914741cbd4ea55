"""Lyrics cache stores.

Both stores honour the same ``get/set/delete`` contract keyed by the
normalized ``(track, artist)`` pair; the orchestrator only talks to that
contract.
"""

import hashlib
import json
import re
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..config import CACHE_TTL_SECONDS, MAX_CACHE_ENTRIES, get_cache_dir
from ..exceptions import CacheError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def normalize_cache_key(track: str, artist: str) -> str:
    """Case-fold, trim and squash whitespace in ``track|artist``."""
    def _norm(value: str) -> str:
        return re.sub(r"\s+", " ", (value or "").strip().lower())

    return f"{_norm(track)}|{_norm(artist)}"


class LyricsCache:
    """Key-value store for fetched lyrics payloads."""

    def get(self, track: str, artist: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, track: str, artist: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, track: str, artist: str) -> None:
        raise NotImplementedError


class MemoryLyricsCache(LyricsCache):
    """In-process cache, mostly used by tests and short-lived sessions.

    Holds at most ``max_entries`` payloads; the oldest entry is evicted first.
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        time_fn: Callable[[], float] = time.time,
        max_entries: int = MAX_CACHE_ENTRIES,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._time = time_fn
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, track: str, artist: str) -> Optional[Dict[str, Any]]:
        key = normalize_cache_key(track, artist)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.ttl is not None and self._time() - entry["stored_at"] > self.ttl:
                del self._entries[key]
                return None
            return dict(entry["payload"])

    def set(self, track: str, artist: str, payload: Dict[str, Any]) -> None:
        key = normalize_cache_key(track, artist)
        with self._lock:
            # re-insert so dict order stays oldest-first
            self._entries.pop(key, None)
            self._entries[key] = {"stored_at": self._time(), "payload": dict(payload)}
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug(f"Evicted cached lyrics for {oldest}")

    def delete(self, track: str, artist: str) -> None:
        with self._lock:
            self._entries.pop(normalize_cache_key(track, artist), None)

    def __len__(self) -> int:
        return len(self._entries)


class DiskLyricsCache(LyricsCache):
    """One JSON file per track under the cache directory, expired by TTL."""

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        ttl: float = CACHE_TTL_SECONDS,
        time_fn: Callable[[], float] = time.time,
    ):
        self.cache_dir = (cache_dir or get_cache_dir()) / "lyrics"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.ttl = ttl
        self._time = time_fn
        self._lock = threading.Lock()

    def _entry_path(self, track: str, artist: str) -> Path:
        key = normalize_cache_key(track, artist)
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"{digest}.json"

    def get(self, track: str, artist: str) -> Optional[Dict[str, Any]]:
        path = self._entry_path(track, artist)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                entry = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load cached lyrics for {track} - {artist}: {e}")
            return None

        if self._time() - entry.get("stored_at", 0) > self.ttl:
            logger.debug(f"Cached lyrics expired for {track} - {artist}")
            self.delete(track, artist)
            return None

        logger.debug(f"Loaded cached lyrics for {track} - {artist}")
        return entry.get("payload")

    def set(self, track: str, artist: str, payload: Dict[str, Any]) -> None:
        path = self._entry_path(track, artist)
        entry = {
            "key": normalize_cache_key(track, artist),
            "stored_at": self._time(),
            "payload": payload,
        }
        tmp_path = path.with_suffix(".tmp")
        with self._lock:
            try:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    json.dump(entry, f, indent=2, ensure_ascii=False)
                tmp_path.replace(path)
            except (OSError, TypeError) as e:
                raise CacheError(f"Failed to save lyrics cache entry: {e}")
        logger.debug(f"Saved lyrics cache entry for {track} - {artist}")

    def delete(self, track: str, artist: str) -> None:
        path = self._entry_path(track, artist)
        with self._lock:
            if path.exists():
                path.unlink()

    def clear(self) -> int:
        """Remove every cached entry; returns how many were removed."""
        removed = 0
        with self._lock:
            for path in self.cache_dir.glob("*.json"):
                path.unlink()
                removed += 1
        logger.info(f"Cleared {removed} cached lyrics entries")
        return removed

    def cleanup_expired(self) -> int:
        """Drop entries older than the TTL."""
        removed = 0
        now = self._time()
        for path in list(self.cache_dir.glob("*.json")):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    stored_at = json.load(f).get("stored_at", 0)
            except (OSError, ValueError):
                stored_at = 0
            if now - stored_at > self.ttl:
                path.unlink()
                removed += 1
        if removed:
            logger.info(f"Cleaned up {removed} expired lyrics entries")
        return removed

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_size = 0
        entry_count = 0
        for path in self.cache_dir.glob("*.json"):
            total_size += path.stat().st_size
            entry_count += 1

        return {
            'entries': entry_count,
            'total_size_kb': total_size / 1024,
            'ttl_days': self.ttl / 86400,
            'cache_dir': str(self.cache_dir),
        }
