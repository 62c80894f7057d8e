"""Bounded, access-ordered cache for verse text.

Licensing caps the number of verses that may be retained at any time, so this
cache enforces a global ceiling (500 by default) across every translation and
book rather than a per-chapter limit.

Storage layout (two slots of the injected PersistentStore):
    bible_verse_cache           {verse_key: VerseRecord}
    bible_verse_cache_metadata  VerseCacheIndex (total + LRU queue)

Both slots are always written together through write_many(), so a backend
with transactions never exposes one without the other.

Example:
    ```python
    cache = VerseCache(InMemoryStore())
    verses = cache.lookup_group("KJV", "Genesis", 1)
    if verses is None:
        verses = fetch_chapter(...)
        cache.store_group("KJV", "Genesis", 1, verses)
    ```
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .common import SlotSerializer, parse_mapping
from .eviction import pop_oldest, reconcile_index, touch_key, withdraw_key
from .records import GroupKey, StoreStatus, Verse, VerseCacheIndex, VerseRecord, worst_status
from .store import VERSE_CACHE_SLOT, VERSE_INDEX_SLOT, PersistentStore

logger = logging.getLogger(__name__)

DEFAULT_VERSE_CAPACITY = 500


class VerseCache:
    """LRU-bounded verse cache over a persistent store.

    Every public operation is an independent read-modify-write cycle against
    the store; no state is kept in memory between calls apart from
    `last_status`.

    Attributes:
        backend: Backing persistent store
        capacity: Maximum number of verses retained
        last_status: StoreStatus of the most recent operation
    """

    def __init__(
        self,
        store: PersistentStore,
        capacity: int = DEFAULT_VERSE_CAPACITY,
        clock: Callable[[], float] = time.time,
    ):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.backend = store
        self.capacity = capacity
        self._clock = clock
        self.last_status = StoreStatus.OK

    def lookup_group(self, version: str, book: str, chapter: int) -> Optional[List[Verse]]:
        """Get every cached verse of a chapter.

        A chapter that is only partially cached still counts as a hit: all
        matching verses are returned, no completeness check is made.

        Side effects:
            Each returned verse becomes most recently used and has its
            access count and timestamp refreshed. Both slots are persisted.

        Args:
            version: Translation tag
            book: Book identifier
            chapter: Chapter number

        Returns:
            Verses sorted by verse number, or None if none are cached
        """
        group = GroupKey(version, book, chapter)
        records, index, read_status = self._load()

        matches = [key for key in records if key.startswith(group.prefix)]
        if not matches:
            self.last_status = read_status
            logger.debug(f"Verse cache miss for {group}")
            return None

        now = self._clock()
        for key in matches:
            touch_key(index, key)
            records[key].touch(now)

        self.last_status = worst_status(read_status, self._save(records, index))
        logger.debug(f"Verse cache hit for {group} ({len(matches)} verses)")
        return sorted((records[key].to_verse() for key in matches), key=lambda v: v.verse)

    def store_group(
        self, version: str, book: str, chapter: int, verses: Iterable[Verse]
    ) -> StoreStatus:
        """Cache the verses of a chapter, evicting the globally oldest verses.

        Eviction is sized to the whole batch and happens before insertion:
        when total + len(batch) exceeds capacity, that many keys are popped
        off the front of the LRU queue whatever chapter they belong to. A
        batch larger than the capacity keeps only its last `capacity` verses.

        Verses already cached are replaced rather than duplicated.

        Args:
            version: Translation tag
            book: Book identifier
            chapter: Chapter number
            verses: Verses to cache

        Returns:
            StoreStatus of the operation (also stored in last_status)
        """
        group = GroupKey(version, book, chapter)
        batch: Dict[int, str] = {}
        for verse in verses:
            if verse.verse < 1:
                raise ValueError(f"verse numbers start at 1, got {verse.verse}")
            batch[verse.verse] = verse.text

        if not batch:
            self.last_status = StoreStatus.OK
            return self.last_status

        records, index, read_status = self._load()
        for number in batch:
            withdraw_key(index, records, group.verse_key(number))

        new_total = index.total_verses + len(batch)
        if new_total > self.capacity:
            evicted = pop_oldest(index, records, new_total - self.capacity)
            if evicted:
                logger.info(f"Evicted {len(evicted)} verse(s) to make room for {group}")

        now = self._clock()
        for number, text in batch.items():
            key = group.verse_key(number)
            records[key] = VerseRecord(verse=number, text=text, timestamp=now, access_count=1)
            index.lru_queue.append(key)
            index.total_verses += 1

        # Only reachable when the batch alone is larger than the capacity
        if index.total_verses > self.capacity:
            trimmed = pop_oldest(index, records, index.total_verses - self.capacity)
            logger.warning(
                f"Batch for {group} exceeds capacity {self.capacity}; "
                f"dropped its {len(trimmed)} oldest verse(s)"
            )

        self.last_status = worst_status(read_status, self._save(records, index))
        logger.debug(f"Cached {len(batch)} verse(s) for {group}")
        return self.last_status

    def clear(self) -> StoreStatus:
        """Remove both verse slots unconditionally."""
        self.last_status = SlotSerializer.remove(self.backend, VERSE_CACHE_SLOT, VERSE_INDEX_SLOT)
        logger.info("Cleared verse cache")
        return self.last_status

    def index(self) -> VerseCacheIndex:
        """Read-only snapshot of the occupancy index."""
        _, index, self.last_status = self._load()
        return index

    def records(self) -> Dict[str, VerseRecord]:
        """Read-only snapshot of the record mapping."""
        records, _, self.last_status = self._load()
        return records

    def _load(self) -> Tuple[Dict[str, VerseRecord], VerseCacheIndex, StoreStatus]:
        """Read both slots and make sure they agree with each other."""
        records, records_status = SlotSerializer.load(
            self.backend,
            VERSE_CACHE_SLOT,
            lambda value: parse_mapping(value, VerseRecord.from_dict),
            dict,
        )
        index, index_status = SlotSerializer.load(
            self.backend, VERSE_INDEX_SLOT, VerseCacheIndex.from_dict, VerseCacheIndex
        )
        if reconcile_index(index, records):
            logger.warning(
                f"Verse cache index disagreed with its records; rebuilt with {index.total_verses} verse(s)"
            )
        return records, index, worst_status(records_status, index_status)

    def _save(self, records: Dict[str, VerseRecord], index: VerseCacheIndex) -> StoreStatus:
        return SlotSerializer.save(
            self.backend,
            {
                VERSE_CACHE_SLOT: {key: record.to_dict() for key, record in records.items()},
                VERSE_INDEX_SLOT: index.to_dict(),
            },
        )
