"""Record types shared by the verse and audio caches.

Architecture:
    GroupKey ("version:book:chapter")
    ├── verse_key(n) -> "version:book:chapter:n"  (bounded verse cache items)
    └── str(key)                                   (expiring audio cache groups)

    VerseRecord     - one cached verse plus access metadata
    VerseCacheIndex - global occupancy count + LRU queue (oldest first)
    AudioRecord     - resolved audio location with its own expiry instant
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

KEY_DELIMITER = ":"


class StoreStatus(Enum):
    """Outcome of a cache operation against the persistent store.

    Cache operations never raise on store failures; they degrade to an empty
    cache and report what happened through this value instead.
    """

    OK = "ok"
    READ_FAILED = "read_failed"  # slot unreadable or corrupt, empty default used
    WRITE_FAILED = "write_failed"  # quota / serialization failure, nothing written


_SEVERITY = {StoreStatus.OK: 0, StoreStatus.READ_FAILED: 1, StoreStatus.WRITE_FAILED: 2}


def worst_status(*statuses: StoreStatus) -> StoreStatus:
    """Most severe of several statuses."""
    return max(statuses, key=_SEVERITY.__getitem__)


@dataclass(frozen=True)
class GroupKey:
    """Composite identifier of one chapter of one translation.

    Attributes:
        version: Translation tag (e.g. 'KJV', 'ESV')
        book: Book identifier (e.g. 'Genesis')
        chapter: Chapter number
    """

    version: str
    book: str
    chapter: int

    def __post_init__(self) -> None:
        for part in (self.version, self.book, str(self.chapter)):
            if KEY_DELIMITER in part:
                raise ValueError(
                    f"Cache key component {part!r} must not contain {KEY_DELIMITER!r}"
                )

    def __str__(self) -> str:
        return f"{self.version}{KEY_DELIMITER}{self.book}{KEY_DELIMITER}{self.chapter}"

    @property
    def prefix(self) -> str:
        """Prefix shared by every verse key of this chapter."""
        return f"{self}{KEY_DELIMITER}"

    def verse_key(self, verse: int) -> str:
        """Build the bounded-cache key for a single verse of this chapter."""
        return f"{self.prefix}{verse}"


@dataclass(frozen=True)
class Verse:
    """Verse number and text, as returned to content consumers."""

    verse: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"verse": self.verse, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Verse":
        return cls(verse=int(data["verse"]), text=str(data["text"]))


@dataclass
class VerseRecord:
    """Cached verse with access tracking for LRU bookkeeping.

    Attributes:
        verse: Verse number (>= 1)
        text: Verse text
        timestamp: Last access instant, epoch seconds
        access_count: Number of writes + hits (>= 1)
    """

    verse: int
    text: str
    timestamp: float
    access_count: int = 1

    def touch(self, now: float) -> None:
        """Record a cache hit."""
        self.timestamp = now
        self.access_count += 1

    def to_verse(self) -> Verse:
        return Verse(verse=self.verse, text=self.text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verse": self.verse,
            "text": self.text,
            "timestamp": self.timestamp,
            "access_count": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerseRecord":
        return cls(
            verse=int(data["verse"]),
            text=str(data["text"]),
            timestamp=float(data["timestamp"]),
            access_count=int(data["access_count"]),
        )


@dataclass
class VerseCacheIndex:
    """Global occupancy of the verse cache.

    Invariant: total_verses == len(lru_queue) == number of live records.

    Attributes:
        total_verses: Number of verses currently cached
        lru_queue: Verse keys ordered oldest-first, no duplicates
    """

    total_verses: int = 0
    lru_queue: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"total_verses": self.total_verses, "lru_queue": list(self.lru_queue)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerseCacheIndex":
        queue = data["lru_queue"]
        if not isinstance(queue, list):
            raise ValueError("lru_queue must be a list")
        return cls(total_verses=int(data["total_verses"]), lru_queue=[str(k) for k in queue])


@dataclass
class AudioRecord:
    """Resolved audio location for one chapter.

    Attributes:
        audio_url: Playable location URL
        expires_at: Expiry instant, epoch seconds
        duration: Audio length in seconds (0 if unknown)
        file_size: Size in bytes (0 if unknown)
    """

    audio_url: str
    expires_at: float
    duration: float = 0
    file_size: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audio_url": self.audio_url,
            "expires_at": self.expires_at,
            "duration": self.duration,
            "file_size": self.file_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioRecord":
        return cls(
            audio_url=str(data["audio_url"]),
            expires_at=float(data["expires_at"]),
            duration=float(data.get("duration", 0)),
            file_size=int(data.get("file_size", 0)),
        )
