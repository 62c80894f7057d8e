"""Per-process cache session.

A CacheSession owns the one PersistentStore handle of the process and the two
caches built on top of it. It is constructed once (usually through
open_session()) and handed by reference to the fetch layers and diagnostics,
so there is no module-level cache state to patch in tests.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import Config, get_config
from .audio_cache import AudioCache
from .stats import CacheStatsReporter
from .store import InMemoryStore, PersistentStore, SqliteStore
from .verse_cache import VerseCache

logger = logging.getLogger(__name__)


def create_store(config: Config) -> PersistentStore:
    """Build the store backend selected by the configuration.

    Args:
        config: Application configuration

    Returns:
        SqliteStore under config.cache_dir, or an InMemoryStore

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = config.store_backend
    if backend == "sqlite":
        return SqliteStore(cache_dir=config.cache_dir, db_name=config.store_db_name)
    if backend == "memory":
        return InMemoryStore(quota_bytes=config.store_quota_bytes)
    raise ValueError(f"Unknown store backend: {backend}")


@dataclass
class CacheSession:
    """Store handle plus the caches sharing it."""

    store: PersistentStore
    verses: VerseCache
    audio: AudioCache
    clock: Callable[[], float] = time.time
    stats: CacheStatsReporter = field(init=False)

    def __post_init__(self) -> None:
        self.stats = CacheStatsReporter(self.verses, self.audio, clock=self.clock)

    def clear(self) -> None:
        """Clear both caches."""
        self.verses.clear()
        self.audio.clear()

    def close(self) -> None:
        self.store.close()


def open_session(
    config: Optional[Config] = None,
    store: Optional[PersistentStore] = None,
    clock: Callable[[], float] = time.time,
    sweep: Optional[bool] = None,
) -> CacheSession:
    """Create the session for this process.

    Expired audio URLs are swept once here, at startup, unless disabled.

    Args:
        config: Configuration (defaults to the global config)
        store: Store to use instead of the configured backend
        clock: Time source shared by both caches, epoch seconds
        sweep: Override config.sweep_on_start

    Returns:
        Ready-to-use CacheSession
    """
    config = config or get_config()
    store = store if store is not None else create_store(config)

    session = CacheSession(
        store=store,
        verses=VerseCache(store, capacity=config.verse_cache_capacity, clock=clock),
        audio=AudioCache(store, default_ttl=config.audio_cache_default_ttl, clock=clock),
        clock=clock,
    )

    if config.sweep_on_start if sweep is None else sweep:
        removed = session.audio.sweep_expired()
        logger.debug(f"Startup sweep removed {removed} expired audio URL(s)")

    logger.info(
        f"Opened cache session ({type(store).__name__}, verse capacity={config.verse_cache_capacity})"
    )
    return session
