"""Tests for the persistent store backends.

Covers the contract shared by InMemoryStore and SqliteStore (read/write/remove
of named slots, multi-slot writes) plus backend specifics: the byte quota of
the in-memory store and persistence across SqliteStore instances.
"""
from __future__ import annotations

import sqlite3
from unittest.mock import Mock

import pytest

from versecache.cache.common import SlotSerializer
from versecache.cache.records import StoreStatus
from versecache.cache.store import (
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


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each backend in turn."""
    if request.param == "memory":
        backend = InMemoryStore()
    else:
        backend = SqliteStore(cache_dir=tmp_path / "contract")
    yield backend
    backend.close()


class TestStoreContract:
    """Behavior every backend must share."""

    def test_missing_slot_reads_none(self, store: PersistentStore):
        assert store.read("missing") is None

    def test_write_then_read(self, store: PersistentStore):
        assert store.write(AUDIO_CACHE_SLOT, '{"a": 1}') is True
        assert store.read(AUDIO_CACHE_SLOT) == '{"a": 1}'

    def test_write_replaces_previous_text(self, store: PersistentStore):
        store.write("slot", "first")
        store.write("slot", "second")
        assert store.read("slot") == "second"

    def test_write_many_writes_every_slot(self, store: PersistentStore):
        store.write_many({VERSE_CACHE_SLOT: "{}", VERSE_INDEX_SLOT: '{"total_verses": 0}'})

        assert store.read(VERSE_CACHE_SLOT) == "{}"
        assert store.read(VERSE_INDEX_SLOT) == '{"total_verses": 0}'

    def test_remove_slot(self, store: PersistentStore):
        store.write("slot", "text")
        store.remove("slot")
        assert store.read("slot") is None

    def test_remove_missing_slot_is_not_an_error(self, store: PersistentStore):
        store.remove("never-written")

    def test_non_ascii_text_survives(self, store: PersistentStore):
        store.write("slot", "Au commencement, Dieu créa les cieux et la terre.")
        assert store.read("slot") == "Au commencement, Dieu créa les cieux et la terre."


class TestInMemoryStore:
    """Tests for the quota-enforcing in-memory backend."""

    def test_write_count_tracks_slot_writes(self):
        store = InMemoryStore()
        store.write("a", "1")
        store.write_many({"b": "2", "c": "3"})
        assert store.write_count == 3

    def test_size_counts_utf8_bytes(self):
        store = InMemoryStore()
        store.write("slot", "é")
        assert store.size() == 2

    def test_quota_exceeded_raises(self):
        store = InMemoryStore(quota_bytes=10)
        with pytest.raises(StoreWriteError, match="Quota exceeded"):
            store.write("slot", "x" * 11)

    def test_quota_failure_leaves_store_untouched(self):
        store = InMemoryStore(quota_bytes=10)
        store.write("a", "12345")

        with pytest.raises(StoreWriteError):
            store.write_many({"a": "1", "b": "x" * 20})

        assert store.read("a") == "12345"
        assert store.read("b") is None
        assert store.slot_names() == {"a"}
        assert store.write_count == 1

    def test_quota_counts_replaced_slots_once(self):
        store = InMemoryStore(quota_bytes=10)
        store.write("slot", "x" * 10)
        # Replacing the slot frees its previous text
        store.write("slot", "y" * 10)
        assert store.read("slot") == "y" * 10


class TestSqliteStore:
    """Tests for the SQLite backend."""

    def test_creates_database_file(self, tmp_path):
        store = SqliteStore(cache_dir=tmp_path / "nested" / "dir", db_name="custom.db")
        try:
            assert store.db_path == tmp_path / "nested" / "dir" / "custom.db"
            assert store.db_path.exists()
        finally:
            store.close()

    def test_wal_mode_enabled(self, sqlite_store: SqliteStore):
        mode = sqlite_store._get_connection().execute("PRAGMA journal_mode").fetchone()[0]
        assert mode.lower() == "wal"

    def test_data_persists_across_instances(self, tmp_path):
        first = SqliteStore(cache_dir=tmp_path)
        first.write_many({VERSE_CACHE_SLOT: "records", VERSE_INDEX_SLOT: "index"})
        first.close()

        second = SqliteStore(cache_dir=tmp_path)
        try:
            assert second.read(VERSE_CACHE_SLOT) == "records"
            assert second.read(VERSE_INDEX_SLOT) == "index"
        finally:
            second.close()

    def test_close_twice_is_safe(self, tmp_path):
        store = SqliteStore(cache_dir=tmp_path)
        store.close()
        store.close()

    def test_read_error_is_wrapped(self, sqlite_store: SqliteStore):
        sqlite_store._get_connection().execute("DROP TABLE slots")
        with pytest.raises(StoreReadError):
            sqlite_store.read("slot")

    def test_write_error_is_wrapped_and_rolled_back(self, sqlite_store: SqliteStore):
        sqlite_store.write("a", "before")
        conn = sqlite_store._get_connection()
        conn.execute(
            "CREATE TRIGGER reject_b BEFORE INSERT ON slots WHEN NEW.name = 'b' "
            "BEGIN SELECT RAISE(ABORT, 'rejected'); END"
        )
        conn.commit()

        with pytest.raises(StoreWriteError):
            sqlite_store.write_many({"a": "after", "b": "text"})

        # Transaction rolled back: neither slot changed
        assert sqlite_store.read("a") == "before"
        assert sqlite_store.read("b") is None

    def test_write_error_chains_sqlite_error(self, sqlite_store: SqliteStore):
        sqlite_store._get_connection().execute("DROP TABLE slots")
        with pytest.raises(StoreWriteError) as exc_info:
            sqlite_store.write("slot", "text")
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_connection_failure_on_write_is_wrapped(self, sqlite_store: SqliteStore, monkeypatch):
        sqlite_store.close()
        monkeypatch.setattr(sqlite3, "connect", Mock(side_effect=sqlite3.OperationalError("database is locked")))

        with pytest.raises(StoreWriteError, match="database is locked"):
            sqlite_store.write_many({"a": "text"})
        with pytest.raises(StoreWriteError):
            sqlite_store.remove("a")

    def test_connection_failure_is_a_write_failed_status(self, sqlite_store: SqliteStore, monkeypatch):
        sqlite_store.close()
        monkeypatch.setattr(sqlite3, "connect", Mock(side_effect=sqlite3.OperationalError("database is locked")))

        assert SlotSerializer.save(sqlite_store, {AUDIO_CACHE_SLOT: {}}) is StoreStatus.WRITE_FAILED

    def test_unopenable_database_raises_store_error(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sqlite3, "connect", Mock(side_effect=sqlite3.OperationalError("unable to open")))

        with pytest.raises(StoreError, match="Failed to open database"):
            SqliteStore(cache_dir=tmp_path)
