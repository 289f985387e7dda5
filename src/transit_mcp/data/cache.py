"""Time and size bounded cache for parsed shapes."""

import time
from collections import OrderedDict
from typing import Generic, TypeVar

K = TypeVar("K")
T = TypeVar("T")


class ShapeCache(Generic[K, T]):
    """Keyed TTL cache with least-recently-used eviction.

    Each entry expires ``ttl`` seconds after it was stored. When more than
    ``max_entries`` are held, the least recently read entry is dropped.
    """

    def __init__(self, ttl: float = 300.0, max_entries: int = 16):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
            max_entries: Maximum number of values held at once.
        """
        self._ttl = ttl
        self._max_entries = max(1, max_entries)
        self._entries: OrderedDict[K, tuple[float, T]] = OrderedDict()

    def get(self, key: K) -> T | None:
        """Get the cached value for ``key`` if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: K, value: T) -> None:
        """Store a value with TTL, evicting the oldest entry if full."""
        self._entries[key] = (time.monotonic() + self._ttl, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every cached value."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
