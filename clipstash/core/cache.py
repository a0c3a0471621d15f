"""Bounded least-recently-used cache.

Used to memoize derived values that are expensive to recompute (compiled
regex patterns, placeholder lists, search keys).

Example:
    cache: LRUCache[str, re.Pattern[str]] = LRUCache(capacity=64)
    pattern = cache.get(source)
    if pattern is None:
        pattern = re.compile(source)
        cache.set(source, pattern)

Threading model:
    Every operation takes the same lock, so a concurrent caller never sees
    an eviction or update half applied.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Generic, TypeVar, overload

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
D = TypeVar("D")


class LRUCache(Generic[K, V]):
    """Fixed-capacity map that evicts the least recently used key."""

    def __init__(self, capacity: int) -> None:
        """Initialize the cache.

        Args:
            capacity: Maximum number of entries. Must be at least 1.

        Raises:
            ValueError: If capacity is less than 1.
        """
        if capacity < 1:
            raise ValueError(f"LRUCache capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        # Oldest first, most recently used last
        self._data: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @overload
    def get(self, key: K) -> V | None: ...

    @overload
    def get(self, key: K, default: D) -> V | D: ...

    def get(self, key: K, default: object = None) -> object:
        """Return the cached value and mark the key most recently used."""
        with self._lock:
            if key not in self._data:
                return default
            self._data.move_to_end(key)
            return self._data[key]

    def set(self, key: K, value: V) -> None:
        """Insert or update a value and mark it most recently used.

        Inserting a new key at capacity evicts the single least recently
        used key first. Updating an existing key never evicts.
        """
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            elif len(self._data) >= self._capacity:
                self._data.popitem(last=False)
            self._data[key] = value

    def remove(self, key: K) -> None:
        """Delete a key. Missing keys are ignored."""
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> list[K]:
        """Snapshot of keys, least recently used first."""
        with self._lock:
            return list(self._data)

    def __contains__(self, key: object) -> bool:
        # Membership does not count as a use
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
