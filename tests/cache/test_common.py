"""Tests for slot serialization and audio URL expiry parsing."""
from __future__ import annotations

import json
import logging

import pytest

from versecache.cache.common import (
    DEFAULT_AUDIO_TTL_SECONDS,
    SlotSerializer,
    TTLManager,
    parse_mapping,
)
from versecache.cache.records import StoreStatus
from versecache.cache.store import InMemoryStore, StoreReadError, StoreWriteError


class FailingStore(InMemoryStore):
    """In-memory store whose operations can be made to fail."""

    def __init__(self, fail_read=False, fail_write=False, fail_remove=()):
        super().__init__()
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.fail_remove = set(fail_remove)
        self.removed = []

    def read(self, name):
        if self.fail_read:
            raise StoreReadError("backend unavailable")
        return super().read(name)

    def write_many(self, slots):
        if self.fail_write:
            raise StoreWriteError("Quota exceeded")
        return super().write_many(slots)

    def remove(self, name):
        self.removed.append(name)
        if name in self.fail_remove:
            raise StoreWriteError("cannot remove")
        super().remove(name)


class TestSlotSerializerLoad:
    """Tests for SlotSerializer.load."""

    def test_missing_slot_returns_default(self):
        value, status = SlotSerializer.load(InMemoryStore(), "slot", dict, dict)
        assert value == {}
        assert status is StoreStatus.OK

    def test_parses_json(self):
        store = InMemoryStore()
        store.write("slot", json.dumps({"a": 1}))

        value, status = SlotSerializer.load(store, "slot", dict, dict)
        assert value == {"a": 1}
        assert status is StoreStatus.OK

    def test_invalid_json_is_read_failure(self, caplog):
        store = InMemoryStore()
        store.write("slot", "{not json")

        with caplog.at_level(logging.ERROR):
            value, status = SlotSerializer.load(store, "slot", dict, dict)

        assert value == {}
        assert status is StoreStatus.READ_FAILED
        assert "Corrupt data in slot slot" in caplog.text

    def test_ill_shaped_value_is_read_failure(self):
        store = InMemoryStore()
        store.write("slot", "[1, 2, 3]")

        value, status = SlotSerializer.load(
            store, "slot", lambda v: parse_mapping(v, dict), dict
        )
        assert value == {}
        assert status is StoreStatus.READ_FAILED

    def test_store_error_is_read_failure(self):
        value, status = SlotSerializer.load(FailingStore(fail_read=True), "slot", dict, list)
        assert value == []
        assert status is StoreStatus.READ_FAILED


class TestSlotSerializerSave:
    """Tests for SlotSerializer.save and remove."""

    def test_save_writes_json(self):
        store = InMemoryStore()
        status = SlotSerializer.save(store, {"a": {"text": "é"}, "b": [1]})

        assert status is StoreStatus.OK
        assert store.read("a") == '{"text": "é"}'
        assert store.read("b") == "[1]"

    def test_store_error_is_write_failure(self, caplog):
        with caplog.at_level(logging.ERROR):
            status = SlotSerializer.save(FailingStore(fail_write=True), {"a": 1})
        assert status is StoreStatus.WRITE_FAILED
        assert "Quota exceeded" in caplog.text

    def test_unserializable_value_is_write_failure(self):
        store = InMemoryStore()
        status = SlotSerializer.save(store, {"a": object()})

        assert status is StoreStatus.WRITE_FAILED
        assert store.read("a") is None

    def test_remove_attempts_every_slot(self):
        store = FailingStore(fail_remove={"a"})
        store.write("b", "text")

        status = SlotSerializer.remove(store, "a", "b")

        assert status is StoreStatus.WRITE_FAILED
        assert store.removed == ["a", "b"]
        assert store.read("b") is None


class TestTTLManager:
    """Tests for Expires parameter handling."""

    def test_parse_expires_parameter(self):
        url = "https://cdn.example.com/kjv/gen1.mp3?Expires=1700000000&Signature=abc"
        assert TTLManager.parse_url_expiry(url) == 1_700_000_000.0

    def test_missing_expires_parameter(self):
        assert TTLManager.parse_url_expiry("https://cdn.example.com/gen1.mp3?sig=abc") is None

    def test_url_without_query(self):
        assert TTLManager.parse_url_expiry("https://cdn.example.com/gen1.mp3") is None

    @pytest.mark.parametrize("value", ["soon", "17e8", "1.5", "", "1_700_000_000", "-5", "\uff11\uff17"])
    def test_unparsable_expires_is_ignored(self, value):
        url = f"https://cdn.example.com/gen1.mp3?Expires={value}"
        assert TTLManager.parse_url_expiry(url) is None

    def test_expires_too_large_for_a_float_is_ignored(self, caplog):
        url = "https://cdn.example.com/gen1.mp3?Expires=" + "9" * 400

        assert TTLManager.parse_url_expiry(url) is None
        assert "unparsable Expires" in caplog.text

    def test_expiry_for_prefers_url(self):
        url = "https://cdn.example.com/gen1.mp3?Expires=1700000000"
        assert TTLManager.expiry_for(url, now=5.0) == 1_700_000_000.0

    def test_expiry_for_falls_back_to_default_ttl(self):
        assert TTLManager.expiry_for("https://cdn.example.com/gen1.mp3", now=100.0) == (
            100.0 + DEFAULT_AUDIO_TTL_SECONDS
        )

    def test_expiry_for_custom_ttl(self):
        assert TTLManager.expiry_for("https://cdn.example.com/a.mp3?Expires=x", now=10.0, default_ttl=60) == 70.0


def test_parse_mapping_rejects_non_objects():
    with pytest.raises(TypeError):
        parse_mapping(["a"], dict)
