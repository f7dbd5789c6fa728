"""
TTL cache implementation for Watchkeeper.

Each entry carries its own expiry time, checked lazily on read. An optional
size bound evicts the least recently used entry.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..logging_config import get_logger

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    expiry: float


class TTLCache(Generic[K, V]):
    """
    Thread-safe key/value cache with a per-entry time-to-live.

    get() returns None for a missing or expired entry, so cached values
    must never be None themselves.
    """

    def __init__(self, name: str, max_size: int | None = None, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the TTL cache.

        Args:
            name: Cache name used in logs and stats
            max_size: Maximum number of entries (None for unbounded)
            clock: Monotonic time source in seconds; injectable for tests
        """
        self.name = name
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[K, CacheEntry[V]] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

        logger.debug("TTL cache initialized", cache_name=name, max_size=max_size)

    def get(self, key: K) -> V | None:
        """
        Get a value if present and not expired.

        An expired entry is evicted on access.

        Args:
            key: The key to look up

        Returns:
            The cached value, or None on a miss
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() >= entry.expiry:
                del self._entries[key]
                self._misses += 1
                logger.debug("Cache miss due to TTL expiration", cache_name=self.name, cache_key=key)
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: K, value: V, ttl_seconds: float) -> None:
        """
        Store value under key, overwriting any previous entry.

        Args:
            key: The key to store
            value: The value to store
            ttl_seconds: Lifetime of the entry; 0 stores an already-expired entry
        """
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expiry=self._clock() + ttl_seconds)
            self._entries.move_to_end(key)

            if self.max_size is not None and len(self._entries) > self.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Cache eviction", cache_name=self.name, evicted_key=evicted_key)

    def delete(self, key: K) -> bool:
        """Remove key; returns True if an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.info("Cache cleared", cache_name=self.name, dropped=dropped)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self._hits / total if total else 0.0,
            }
