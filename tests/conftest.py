"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A controllable clock shared by the caches
- Store backends (in-memory and SQLite under tmp_path)
- Cache instances wired to those stores
- An isolated environment for configuration tests
"""
from __future__ import annotations

from pathlib import Path
import pytest

from versecache.cache.audio_cache import AudioCache
from versecache.cache.session import CacheSession
from versecache.cache.store import InMemoryStore, SqliteStore
from versecache.cache.verse_cache import VerseCache
from versecache.config import reset_config

# 2025-06-15, well after the Expires value used in scenario tests
T0 = 1_750_000_000.0


class FakeClock:
    """Manually advanced time source (epoch seconds)."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """Point every configurable path at tmp_path and drop the global config."""
    for key in (
        "STORE_BACKEND",
        "STORE_DB_NAME",
        "STORE_QUOTA_BYTES",
        "VERSE_CACHE_CAPACITY",
        "AUDIO_CACHE_DEFAULT_TTL",
        "SWEEP_ON_START",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path: Path):
    store = SqliteStore(cache_dir=tmp_path / "sqlite")
    yield store
    store.close()


@pytest.fixture
def verse_cache(memory_store: InMemoryStore, clock: FakeClock) -> VerseCache:
    return VerseCache(memory_store, clock=clock)


@pytest.fixture
def audio_cache(memory_store: InMemoryStore, clock: FakeClock) -> AudioCache:
    return AudioCache(memory_store, clock=clock)


@pytest.fixture
def session(memory_store: InMemoryStore, verse_cache: VerseCache, audio_cache: AudioCache, clock: FakeClock) -> CacheSession:
    return CacheSession(store=memory_store, verses=verse_cache, audio=audio_cache, clock=clock)
