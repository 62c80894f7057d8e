"""Persistent key/text store backends.

This module provides the leaf storage abstraction used by both caches:

- InMemoryStore: dict-backed store with an optional byte quota.
  Best for: tests, ephemeral sessions, emulating a browser storage quota.

- SqliteStore: persistent SQLite-backed store with WAL mode.
  Best for: persistence across sessions; multi-slot writes are transactional.

Backends raise StoreReadError / StoreWriteError on failure. They never swallow
errors themselves; the caches calling them do that and fall back to empty
defaults.
"""
from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from threading import local
from typing import Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

# Fixed slot names shared with previously persisted data
VERSE_CACHE_SLOT = "bible_verse_cache"
VERSE_INDEX_SLOT = "bible_verse_cache_metadata"
AUDIO_CACHE_SLOT = "bible_audio_cache"


class StoreError(Exception):
    """Base class for persistent store failures."""


class StoreReadError(StoreError):
    """A slot could not be read."""


class StoreWriteError(StoreError):
    """A slot could not be written (quota exceeded, backend failure)."""


class PersistentStore(ABC):
    """Abstract base class for slot-oriented text stores.

    A store holds a handful of named text slots. All operations are
    synchronous. Implementations raise StoreError subclasses on failure.
    """

    @abstractmethod
    def read(self, name: str) -> Optional[str]:
        """Read a slot.

        Args:
            name: Slot name

        Returns:
            Stored text, or None if the slot is empty

        Raises:
            StoreReadError: If the backend cannot be read
        """

    @abstractmethod
    def write(self, name: str, text: str) -> bool:
        """Write a slot, replacing its previous text.

        Args:
            name: Slot name
            text: Text to store

        Returns:
            True once written

        Raises:
            StoreWriteError: If the text could not be stored
        """

    @abstractmethod
    def remove(self, name: str) -> None:
        """Remove a slot. Removing an empty slot is not an error."""

    def write_many(self, slots: Mapping[str, str]) -> bool:
        """Write several slots as one unit.

        The default writes slots one after another, so a failure part way
        through can leave them inconsistent. Backends with a transactional
        primitive override this.
        """
        for name, text in slots.items():
            self.write(name, text)
        return True

    def close(self) -> None:
        """Release backend resources."""


class InMemoryStore(PersistentStore):
    """Dict-backed store with an optional total size quota.

    Attributes:
        quota_bytes: Maximum UTF-8 size of all slots together (None = unlimited)
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._slots: Dict[str, str] = {}
        self.write_count = 0

    def read(self, name: str) -> Optional[str]:
        return self._slots.get(name)

    def write(self, name: str, text: str) -> bool:
        return self.write_many({name: text})

    def write_many(self, slots: Mapping[str, str]) -> bool:
        # Validate the quota against the combined result so nothing half-applies
        self._check_quota(slots)
        self._slots.update(slots)
        self.write_count += len(slots)
        return True

    def remove(self, name: str) -> None:
        self._slots.pop(name, None)

    def slot_names(self) -> set:
        return set(self._slots)

    def size(self) -> int:
        """Total UTF-8 size of all slots in bytes."""
        return sum(len(text.encode("utf-8")) for text in self._slots.values())

    def _check_quota(self, slots: Mapping[str, str]) -> None:
        if self.quota_bytes is None:
            return

        pending = dict(self._slots)
        pending.update(slots)
        total = sum(len(text.encode("utf-8")) for text in pending.values())
        if total > self.quota_bytes:
            raise StoreWriteError(
                f"Quota exceeded: {total} bytes > {self.quota_bytes} bytes"
            )


class SqliteStore(PersistentStore):
    """Persistent store keeping each slot as a row in a SQLite table.

    WAL mode is enabled so readers never block on a writer. write_many()
    commits all slots in a single transaction, which keeps the verse records
    and their index consistent even if the process dies mid-write.

    Attributes:
        cache_dir (Path): Directory containing the database
        db_path (Path): Path to the SQLite database file
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None, db_name: str = "store.db"):
        """Initialize the store, creating the database if needed.

        Args:
            cache_dir: Directory for the database file
            db_name: Database file name

        Raises:
            OSError: If the directory cannot be created
            StoreError: If the database cannot be opened
        """
        if cache_dir is None:
            self.cache_dir = Path.home() / ".versecache"
        else:
            self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.cache_dir / db_name

        # Thread-local storage for connections (SQLite connections aren't thread-safe)
        self._local = local()

        self._init_database()
        logger.info(f"Initialized SqliteStore at {self.db_path} (WAL mode)")

    def _get_connection(self) -> sqlite3.Connection:
        """Get or lazily create this thread's connection."""
        if not hasattr(self._local, "conn"):
            conn = sqlite3.connect(str(self.db_path))
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn = conn
        return self._local.conn

    def _init_database(self) -> None:
        try:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    name TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open database {self.db_path}: {e}") from e

    def read(self, name: str) -> Optional[str]:
        try:
            cursor = self._get_connection().execute(
                "SELECT value FROM slots WHERE name = ?", (name,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreReadError(f"Failed to read slot {name!r}: {e}") from e
        return row[0] if row else None

    def write(self, name: str, text: str) -> bool:
        return self.write_many({name: text})

    def write_many(self, slots: Mapping[str, str]) -> bool:
        try:
            conn = self._get_connection()
            # Connection context manager commits on success, rolls back on error
            with conn:
                conn.executemany(
                    "INSERT OR REPLACE INTO slots (name, value) VALUES (?, ?)",
                    list(slots.items()),
                )
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to write slots {sorted(slots)}: {e}") from e
        return True

    def remove(self, name: str) -> None:
        try:
            conn = self._get_connection()
            with conn:
                conn.execute("DELETE FROM slots WHERE name = ?", (name,))
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to remove slot {name!r}: {e}") from e

    def close(self) -> None:
        """Close this thread's database connection. Safe to call twice."""
        if hasattr(self._local, "conn"):
            try:
                self._local.conn.close()
                delattr(self._local, "conn")
            except sqlite3.Error as e:
                logger.error(f"Failed to close database connection: {e}")
