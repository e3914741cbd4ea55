"""Manual timing offsets, per track and global."""

import json
import threading
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import CacheError
from ..utils.logging import get_logger
from ..utils.validation import validate_offset

logger = get_logger(__name__)


def track_key(artist: str, title: str) -> str:
    """Case-folded, trimmed ``artist - title`` lookup key."""
    return f"{(artist or '').strip().lower()} - {(title or '').strip().lower()}"


class OffsetStore:
    """User offsets in seconds; positive values delay the lyrics.

    Unknown tracks have a zero offset. With a ``path`` the store can be
    persisted as JSON via ``load()`` / ``save()``.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self.track_offsets: Dict[str, float] = {}
        self.global_offset = 0.0
        self._lock = threading.Lock()

    def set_track_offset(self, artist: str, title: str, offset: float) -> None:
        validate_offset(offset)
        with self._lock:
            self.track_offsets[track_key(artist, title)] = float(offset)

    def get_track_offset(self, artist: str, title: str) -> float:
        return self.track_offsets.get(track_key(artist, title), 0.0)

    def set_global_offset(self, offset: float) -> None:
        validate_offset(offset)
        with self._lock:
            self.global_offset = float(offset)

    def get_total_offset(self, artist: str, title: str) -> float:
        return self.get_track_offset(artist, title) + self.global_offset

    def clear_track_offset(self, artist: str, title: str) -> None:
        with self._lock:
            self.track_offsets.pop(track_key(artist, title), None)

    def clear_all(self) -> None:
        with self._lock:
            self.track_offsets = {}
            self.global_offset = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {"track_offsets": dict(self.track_offsets), "global_offset": self.global_offset}

    def load(self) -> None:
        """Replace the current offsets with the saved ones, if any."""
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load offsets from {self.path}: {e}")
            return

        with self._lock:
            self.track_offsets = {
                str(k): float(v) for k, v in (data.get("track_offsets") or {}).items()
            }
            self.global_offset = float(data.get("global_offset", 0.0))
        logger.debug(f"Loaded {len(self.track_offsets)} track offsets")

    def save(self) -> None:
        if self.path is None:
            raise CacheError("Offset store has no path to save to")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise CacheError(f"Failed to save offsets: {e}")


def adjusted_time(clock_time: float, store: OffsetStore, artist: str, title: str) -> float:
    """Clock time shifted by the track and global offsets."""
    return clock_time + store.get_total_offset(artist, title)
