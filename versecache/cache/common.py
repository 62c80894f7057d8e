"""
Common cache utilities.

This module provides shared functionality for the verse and audio caches:

Components:
    - SlotSerializer: JSON load/save of store slots with fail-soft semantics
    - TTLManager: expiry instant derivation from signed audio URLs

Both caches go through SlotSerializer so that store failures and corrupt slot
text are handled in exactly one place: logged, converted to a StoreStatus, and
replaced by an empty default.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TypeVar
from urllib.parse import parse_qs, urlsplit

from .records import StoreStatus
from .store import PersistentStore, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_AUDIO_TTL_SECONDS = 24 * 60 * 60


class SlotSerializer:
    """JSON serialization of store slots.

    All methods catch store and decoding errors, log them and report them via
    StoreStatus. They never raise for a failing or corrupt store.
    """

    @staticmethod
    def load(
        store: PersistentStore,
        name: str,
        parse: Callable[[Any], T],
        default: Callable[[], T],
    ) -> Tuple[T, StoreStatus]:
        """Read a slot and parse its JSON content.

        Args:
            store: Backing store
            name: Slot name
            parse: Converts the decoded JSON value into the slot's shape;
                may raise KeyError/TypeError/ValueError on an ill-shaped value
            default: Factory for the empty default

        Returns:
            (value, status). A missing slot is (default(), OK); an unreadable
            or corrupt slot is (default(), READ_FAILED).
        """
        try:
            text = store.read(name)
        except StoreError as e:
            logger.error(f"Error reading slot {name}: {e}")
            return default(), StoreStatus.READ_FAILED

        if text is None:
            return default(), StoreStatus.OK

        try:
            return parse(json.loads(text)), StoreStatus.OK
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Corrupt data in slot {name}, treating as empty: {e}")
            return default(), StoreStatus.READ_FAILED

    @staticmethod
    def save(store: PersistentStore, slots: Mapping[str, Any]) -> StoreStatus:
        """Serialize values to JSON and write them as one unit.

        Args:
            store: Backing store
            slots: Slot name -> JSON-serializable value

        Returns:
            OK, or WRITE_FAILED if serialization or the store write failed
        """
        try:
            payload = {name: json.dumps(value, ensure_ascii=False) for name, value in slots.items()}
            store.write_many(payload)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize slots {sorted(slots)}: {e}")
            return StoreStatus.WRITE_FAILED
        except StoreError as e:
            logger.error(f"Error writing slots {sorted(slots)}: {e}")
            return StoreStatus.WRITE_FAILED
        return StoreStatus.OK

    @staticmethod
    def remove(store: PersistentStore, *names: str) -> StoreStatus:
        """Remove slots, attempting every one even if an earlier removal fails."""
        status = StoreStatus.OK
        for name in names:
            try:
                store.remove(name)
            except StoreError as e:
                logger.error(f"Error removing slot {name}: {e}")
                status = StoreStatus.WRITE_FAILED
        return status


def parse_mapping(value: Any, parse_item: Callable[[Dict[str, Any]], T]) -> Dict[str, T]:
    """Parse a JSON object of key -> record dict."""
    if not isinstance(value, dict):
        raise TypeError(f"expected a JSON object, got {type(value).__name__}")
    return {str(key): parse_item(item) for key, item in value.items()}


class TTLManager:
    """Expiry handling for audio locations."""

    @staticmethod
    def parse_url_expiry(url: str) -> Optional[float]:
        """Extract the `Expires` query parameter of a signed URL.

        Args:
            url: Location URL, e.g. a CDN URL signed with `Expires=<epoch>`

        Returns:
            Expiry as epoch seconds, or None if absent or not an integer
        """
        try:
            params = parse_qs(urlsplit(url).query)
        except ValueError as e:
            logger.warning(f"Error parsing audio URL expiration: {e}")
            return None

        values = params.get("Expires")
        if not values:
            return None

        # ASCII digits only; int() would also accept signs and underscores
        if not (values[0].isascii() and values[0].isdecimal()):
            logger.warning(f"Ignoring unparsable Expires parameter: {values[0]!r}")
            return None

        try:
            return float(int(values[0]))
        except (ValueError, OverflowError):
            logger.warning(f"Ignoring unparsable Expires parameter: {values[0]!r}")
            return None

    @staticmethod
    def expiry_for(url: str, now: float, default_ttl: float = DEFAULT_AUDIO_TTL_SECONDS) -> float:
        """Expiry instant for a URL: its Expires parameter, else now + default_ttl."""
        expires_at = TTLManager.parse_url_expiry(url)
        if expires_at is None:
            return now + default_ttl
        return expires_at
