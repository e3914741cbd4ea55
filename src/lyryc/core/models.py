"""Data models for timed lyrics.

All times are seconds from the start of the track.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_LINE_DURATION


@dataclass
class WordTiming:
    """A single word with timing information."""

    word: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def validate(self) -> None:
        if self.start < 0 or self.end < 0:
            raise ValueError("Word timing must be non-negative")
        if self.end < self.start:
            raise ValueError("Word end must be >= start")

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "start": self.start, "end": self.end}


@dataclass
class LyricLine:
    """One sung phrase, optionally broken down into words."""

    time: float
    text: str
    duration: Optional[float] = None
    words: Optional[List[WordTiming]] = None

    @property
    def effective_duration(self) -> float:
        """Word-derived span when it is longer than the stated duration."""
        word_span = None
        if self.words:
            word_span = self.words[-1].end - self.time
            if word_span <= 0:
                word_span = None

        if self.duration is not None:
            if word_span is not None and word_span > self.duration:
                return word_span
            return self.duration
        if word_span is not None:
            return word_span
        return DEFAULT_LINE_DURATION

    @property
    def end_time(self) -> float:
        return self.time + self.effective_duration

    @property
    def has_words(self) -> bool:
        return bool(self.words)

    def with_words(self, words: List[WordTiming]) -> "LyricLine":
        return replace(self, words=list(words))

    def with_time(self, time: float, duration: Optional[float] = None) -> "LyricLine":
        """Move the line, shifting any word timings along with it."""
        shift = time - self.time
        words = None
        if self.words is not None:
            words = [WordTiming(w.word, w.start + shift, w.end + shift) for w in self.words]
        return LyricLine(
            time=time,
            text=self.text,
            duration=self.duration if duration is None else duration,
            words=words,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"time": self.time, "text": self.text, "duration": self.duration}
        if self.words is not None:
            data["words"] = [w.to_dict() for w in self.words]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LyricLine":
        words = data.get("words")
        return cls(
            time=float(data["time"]),
            text=data.get("text", ""),
            duration=data.get("duration"),
            words=[WordTiming(w["word"], w["start"], w["end"]) for w in words]
            if words is not None
            else None,
        )


@dataclass
class AlignedLine:
    """Derived line timing; duration is always filled."""

    time: float
    text: str
    duration: float

    def to_lyric_line(self) -> LyricLine:
        return LyricLine(time=self.time, text=self.text, duration=self.duration)


@dataclass(frozen=True)
class AlignmentMetrics:
    """Error metrics between a produced and a reference alignment."""

    mae: float
    rmse: float
    mean_offset: float  # positive = produced lines are late
    matched: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mae": self.mae,
            "rmse": self.rmse,
            "mean_offset": self.mean_offset,
            "matched": self.matched,
        }


@dataclass
class LyricsRecord:
    """A lyrics database entry."""

    track_name: str = ""
    artist_name: str = ""
    album_name: Optional[str] = None
    duration: Optional[float] = None
    plain_lyrics: Optional[str] = None
    synced_lyrics: Optional[str] = None
    instrumental: bool = False

    @property
    def has_synced(self) -> bool:
        return bool(self.synced_lyrics and self.synced_lyrics.strip())

    @property
    def has_plain(self) -> bool:
        return bool(self.plain_lyrics and self.plain_lyrics.strip())

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LyricsRecord":
        """Build from the database's camelCase JSON."""
        duration = data.get("duration")
        return cls(
            track_name=data.get("trackName") or "",
            artist_name=data.get("artistName") or "",
            album_name=data.get("albumName"),
            duration=float(duration) if duration else None,
            plain_lyrics=data.get("plainLyrics"),
            synced_lyrics=data.get("syncedLyrics"),
            instrumental=bool(data.get("instrumental", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "track_name": self.track_name,
            "artist_name": self.artist_name,
            "album_name": self.album_name,
            "duration": self.duration,
            "plain_lyrics": self.plain_lyrics,
            "synced_lyrics": self.synced_lyrics,
            "instrumental": self.instrumental,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LyricsRecord":
        return cls(**{k: data.get(k) for k in (
            "track_name", "artist_name", "album_name", "duration",
            "plain_lyrics", "synced_lyrics",
        )}, instrumental=bool(data.get("instrumental", False)))


@dataclass
class ProcessedLyrics:
    """Result handed back to callers of the lyrics processor."""

    lyrics: List[LyricLine] = field(default_factory=list)
    confidence: float = 0.0
    method: str = "fallback"  # "original", "ai-aligned", "fallback"
    processing_time: float = 0.0
    has_word_timings: bool = False
    language: str = "en"
    status: str = "found"  # "found", "not_found", "error"
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == "found" and bool(self.lyrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lyrics": [line.to_dict() for line in self.lyrics],
            "confidence": self.confidence,
            "method": self.method,
            "processing_time": self.processing_time,
            "has_word_timings": self.has_word_timings,
            "language": self.language,
            "status": self.status,
            "source": self.source,
            "error": self.error,
        }
