"""Read-only statistics over both caches, for diagnostics surfaces."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from .audio_cache import AudioCache
from .verse_cache import VerseCache


@dataclass
class CacheStats:
    """Cache statistics."""

    verses_used: int = 0
    verses_capacity: int = 0
    audio_group_count: int = 0
    audio_expired_count: int = 0

    @property
    def percentage_used(self) -> float:
        """Verse cache occupancy as a percentage of capacity."""
        if self.verses_capacity == 0:
            return 0.0
        return (self.verses_used / self.verses_capacity) * 100

    @property
    def usage(self) -> str:
        return f"{self.verses_used}/{self.verses_capacity}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Stats dictionary
        """
        return {
            "verses": {
                "total": self.verses_used,
                "limit": self.verses_capacity,
                "usage": self.usage,
                "percentage": self.percentage_used,
            },
            "audio": {
                "total": self.audio_group_count,
                "expired": self.audio_expired_count,
            },
        }


class CacheStatsReporter:
    """Aggregates occupancy figures from the verse and audio caches.

    Nothing is written to the store: expired audio records are counted,
    not removed.
    """

    def __init__(
        self,
        verses: VerseCache,
        audio: AudioCache,
        clock: Callable[[], float] = time.time,
    ):
        self.verses = verses
        self.audio = audio
        self._clock = clock

    def collect(self) -> CacheStats:
        index = self.verses.index()
        records = self.audio.records()
        now = self._clock()

        return CacheStats(
            verses_used=index.total_verses,
            verses_capacity=self.verses.capacity,
            audio_group_count=len(records),
            audio_expired_count=sum(1 for record in records.values() if record.expires_at < now),
        )
