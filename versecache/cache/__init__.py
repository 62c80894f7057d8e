"""Caching layer for scripture text and narrated-audio locations.

This package mediates access to externally-fetched content through a slow,
quota-limited persistent key/text store. Two independent caches share one
store handle:

Components:
    Store Backends:
        - InMemoryStore: dict-backed store with an optional byte quota
        - SqliteStore: persistent store, transactional multi-slot writes

    Caches:
        - VerseCache: LRU-bounded (500 verses) cache of verse text
        - AudioCache: unbounded cache of audio URLs with per-entry expiry

    Support:
        - CacheStatsReporter: read-only occupancy statistics
        - CacheSession: one store + both caches, built once per process
        - StoreStatus: fail-soft outcome reported by every cache operation

Usage:
    Read-through caching of a chapter::

        from versecache.cache import open_session

        session = open_session()

        verses = session.verses.lookup_group("KJV", "Genesis", 1)
        if verses is None:
            verses = fetch_chapter("KJV", "Genesis", 1)
            session.verses.store_group("KJV", "Genesis", 1, verses)

Store failures never propagate: they are logged, the cache behaves as empty,
and the failure is reported through StoreStatus.
"""

from .audio_cache import AudioCache
from .records import AudioRecord, GroupKey, StoreStatus, Verse, VerseCacheIndex, VerseRecord
from .session import CacheSession, create_store, open_session
from .stats import CacheStats, CacheStatsReporter
from .store import (
    AUDIO_CACHE_SLOT,
    VERSE_CACHE_SLOT,
    VERSE_INDEX_SLOT,
    InMemoryStore,
    PersistentStore,
    SqliteStore,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from .verse_cache import DEFAULT_VERSE_CAPACITY, VerseCache

__all__ = [
    "AUDIO_CACHE_SLOT",
    "AudioCache",           # Expiring audio URL cache
    "AudioRecord",
    "CacheSession",         # Store + both caches for one process
    "CacheStats",
    "CacheStatsReporter",   # Read-only diagnostics
    "DEFAULT_VERSE_CAPACITY",
    "GroupKey",             # version:book:chapter identifier
    "InMemoryStore",
    "PersistentStore",      # Abstract store contract
    "SqliteStore",
    "StoreError",
    "StoreReadError",
    "StoreStatus",
    "StoreWriteError",
    "VERSE_CACHE_SLOT",
    "VERSE_INDEX_SLOT",
    "Verse",
    "VerseCache",           # LRU-bounded verse cache
    "VerseCacheIndex",
    "VerseRecord",
    "create_store",
    "open_session",
]
