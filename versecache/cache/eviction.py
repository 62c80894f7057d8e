"""LRU queue helpers for the bounded verse cache.

This module provides pure helper functions operating on a VerseCacheIndex and
its record mapping. The LRU queue is a plain list ordered oldest-first: the
front holds the next eviction victims, the tail the most recently used keys.

Performance characteristics:
- touch_key: O(n) list removal, n bounded by the cache capacity (500)
- pop_oldest: O(k) for k victims
- reconcile_index: O(n log n), only does work when the slots disagree
"""
from __future__ import annotations

from typing import Dict, List

from .records import VerseCacheIndex, VerseRecord


def touch_key(index: VerseCacheIndex, key: str) -> None:
    """Mark a key as most recently used by moving it to the tail of the queue."""
    try:
        index.lru_queue.remove(key)
    except ValueError:
        pass
    index.lru_queue.append(key)


def withdraw_key(index: VerseCacheIndex, records: Dict[str, VerseRecord], key: str) -> bool:
    """Remove a key from both the queue and the records.

    Returns:
        True if the key was cached
    """
    if key not in records:
        return False
    del records[key]
    if key in index.lru_queue:
        index.lru_queue.remove(key)
    index.total_verses -= 1
    return True


def pop_oldest(index: VerseCacheIndex, records: Dict[str, VerseRecord], count: int) -> List[str]:
    """Evict up to `count` keys from the front of the LRU queue.

    Victims are chosen globally, across every translation and chapter.
    total_verses is decremented by the number of keys actually evicted.

    Args:
        index: Cache index to mutate
        records: Record mapping to mutate
        count: Number of victims wanted

    Returns:
        Evicted keys, oldest first
    """
    if count <= 0:
        return []

    victims = index.lru_queue[:count]
    del index.lru_queue[:count]
    for key in victims:
        records.pop(key, None)
    index.total_verses -= len(victims)
    return victims


def reconcile_index(index: VerseCacheIndex, records: Dict[str, VerseRecord]) -> bool:
    """Restore the index/records bijection after a partial or lost write.

    Queue keys without a record are dropped, duplicate queue keys collapse to
    their most recent position, and records missing from the queue are placed
    at the front ordered by last access (they are the least known-recent).

    Returns:
        True if the index had to be repaired
    """
    seen = set()
    queue: List[str] = []
    for key in reversed(index.lru_queue):
        if key in records and key not in seen:
            seen.add(key)
            queue.append(key)
    queue.reverse()

    orphans = sorted(
        (key for key in records if key not in seen),
        key=lambda k: (records[k].timestamp, k),
    )
    queue = orphans + queue

    repaired = queue != index.lru_queue or index.total_verses != len(queue)
    index.lru_queue = queue
    index.total_verses = len(queue)
    return repaired
