"""Unbounded, time-expiring cache for resolved audio locations.

Each chapter maps to at most one AudioRecord; every record carries its own
expiry instant, taken from the signed URL's `Expires` parameter when present
and otherwise 24 hours after it was stored. Expired records are removed
lazily by lookup() and eagerly by sweep_expired().
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .common import DEFAULT_AUDIO_TTL_SECONDS, SlotSerializer, TTLManager, parse_mapping
from .records import AudioRecord, GroupKey, StoreStatus, worst_status
from .store import AUDIO_CACHE_SLOT, PersistentStore

logger = logging.getLogger(__name__)


class AudioCache:
    """Expiring audio location cache over a persistent store.

    Attributes:
        backend: Backing persistent store
        default_ttl: Lifetime in seconds for URLs without an Expires parameter
        last_status: StoreStatus of the most recent operation
    """

    def __init__(
        self,
        store: PersistentStore,
        default_ttl: float = DEFAULT_AUDIO_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = store
        self.default_ttl = default_ttl
        self._clock = clock
        self.last_status = StoreStatus.OK

    def lookup(self, version: str, book: str, chapter: int) -> Optional[str]:
        """Get the cached audio URL of a chapter.

        An expired record is deleted (and the slot persisted) before None is
        returned. Hits do not touch any access metadata.

        Returns:
            Audio URL, or None if absent or expired
        """
        key = str(GroupKey(version, book, chapter))
        cache, self.last_status = self._load()

        record = cache.get(key)
        if record is None:
            logger.debug(f"Audio cache miss for {key}")
            return None

        if record.is_expired(self._clock()):
            del cache[key]
            self.last_status = self._save(cache)
            logger.debug(f"Audio cache entry for {key} expired")
            return None

        logger.debug(f"Audio cache hit for {key}")
        return record.audio_url

    def store(
        self,
        version: str,
        book: str,
        chapter: int,
        audio_url: str,
        duration: float = 0,
        file_size: int = 0,
    ) -> StoreStatus:
        """Cache the audio URL of a chapter, replacing any previous one.

        Args:
            version: Translation tag
            book: Book identifier
            chapter: Chapter number
            audio_url: Playable location URL
            duration: Audio length in seconds
            file_size: Size in bytes

        Returns:
            StoreStatus of the write (also stored in last_status)
        """
        key = str(GroupKey(version, book, chapter))
        cache, read_status = self._load()

        expires_at = TTLManager.expiry_for(audio_url, self._clock(), self.default_ttl)
        cache[key] = AudioRecord(
            audio_url=audio_url,
            expires_at=expires_at,
            duration=duration,
            file_size=file_size,
        )

        self.last_status = worst_status(read_status, self._save(cache))
        logger.debug(f"Cached audio URL for {key} (expires at {expires_at:.0f})")
        return self.last_status

    def sweep_expired(self) -> int:
        """Delete every expired record, persisting once if anything changed.

        Meant to run once per session at startup.

        Returns:
            Number of records removed
        """
        cache, self.last_status = self._load()
        now = self._clock()

        expired = [key for key, record in cache.items() if record.expires_at < now]
        if not expired:
            return 0

        for key in expired:
            del cache[key]
        self.last_status = self._save(cache)
        logger.info(f"Swept {len(expired)} expired audio URL(s)")
        return len(expired)

    def clear(self) -> StoreStatus:
        """Remove the audio slot unconditionally."""
        self.last_status = SlotSerializer.remove(self.backend, AUDIO_CACHE_SLOT)
        logger.info("Cleared audio cache")
        return self.last_status

    def records(self) -> Dict[str, AudioRecord]:
        """Read-only snapshot of every record, expired ones included."""
        cache, self.last_status = self._load()
        return cache

    def _load(self) -> Tuple[Dict[str, AudioRecord], StoreStatus]:
        return SlotSerializer.load(
            self.backend,
            AUDIO_CACHE_SLOT,
            lambda value: parse_mapping(value, AudioRecord.from_dict),
            dict,
        )

    def _save(self, cache: Dict[str, AudioRecord]) -> StoreStatus:
        return SlotSerializer.save(
            self.backend, {AUDIO_CACHE_SLOT: {key: record.to_dict() for key, record in cache.items()}}
        )
