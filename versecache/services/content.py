"""Read-through access to chapter text and audio locations.

Fetch layers use ContentService to put the caches in front of their own
retrieval code: query the cache, call the supplied fetch function on a miss,
write the result back, return it. Fetching itself (local datasets, remote
APIs) stays with the caller; errors raised by it propagate unchanged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Union

from ..cache.records import StoreStatus, Verse
from ..cache.session import CacheSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioLocation:
    """Resolved audio location as returned by an audio API."""

    url: str
    duration: float = 0
    file_size: int = 0


class ContentService:
    """Cache-first access to verses and audio URLs."""

    def __init__(self, session: CacheSession):
        self.session = session

    def get_chapter_verses(
        self,
        version: str,
        book: str,
        chapter: int,
        fetch: Callable[[], Sequence[Verse]],
    ) -> List[Verse]:
        """Get the verses of a chapter, fetching them on a cache miss.

        Args:
            version: Translation tag
            book: Book identifier
            chapter: Chapter number
            fetch: Retrieves the chapter when it is not cached

        Returns:
            Verses sorted by verse number
        """
        cached = self.session.verses.lookup_group(version, book, chapter)
        if cached is not None:
            logger.debug(f"{version} {book} {chapter} loaded from cache")
            return cached

        verses = sorted(fetch(), key=lambda v: v.verse)
        if verses:
            status = self.session.verses.store_group(version, book, chapter, verses)
            if status is not StoreStatus.OK:
                logger.warning(f"{version} {book} {chapter} served uncached: {status.value}")
        return verses

    def get_audio_url(
        self,
        version: str,
        book: str,
        chapter: int,
        resolve: Callable[[], Union[AudioLocation, str]],
    ) -> str:
        """Get the audio URL of a chapter, resolving it on a cache miss.

        Args:
            version: Translation tag
            book: Book identifier
            chapter: Chapter number
            resolve: Resolves a playable location when none is cached

        Returns:
            Playable audio URL
        """
        cached = self.session.audio.lookup(version, book, chapter)
        if cached is not None:
            logger.debug(f"Audio URL for {version} {book} {chapter} loaded from cache")
            return cached

        location = resolve()
        if isinstance(location, str):
            location = AudioLocation(url=location)

        self.session.audio.store(
            version,
            book,
            chapter,
            location.url,
            duration=location.duration,
            file_size=location.file_size,
        )
        return location.url
