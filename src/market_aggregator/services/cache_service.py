# src/market_aggregator/services/cache_service.py
"""
TTL Cache
In-memory key/value store shared by adapters and the aggregator

- Expiry checked on read: older than ttl -> miss, entry evicted
- Capacity bound: oldest *inserted* entry goes first (not LRU)
- Overwriting a key counts as a fresh insertion
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from src.market_aggregator.schemas.results import CacheStats
from src.utils.logger.custom_logging import LoggerMixin


@dataclass
class CacheEntry:
    """Single cache entry"""
    key: str
    payload: Any
    stored_at: float

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.stored_at > ttl_seconds


class TTLCache(LoggerMixin):
    """
    Insertion-ordered TTL cache.

    Single event loop, no awaits inside operations, so no lock is needed.
    Concurrent writers to the same key: last writer wins.
    """

    DEFAULT_TTL_SECONDS = 300
    MAX_CACHE_SIZE = 50

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = MAX_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock

        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }

    # ========================================================================
    # CORE OPERATIONS
    # ========================================================================

    def get(self, key: str) -> Optional[Any]:
        """Return the payload or None when absent/expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if entry.is_expired(self._clock(), self.ttl_seconds):
            del self._entries[key]
            self._stats["misses"] += 1
            self.logger.debug(f"[Cache] Expired: {key}")
            return None

        self._stats["hits"] += 1
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        if key in self._entries:
            del self._entries[key]

        while len(self._entries) >= self.max_entries:
            oldest_key, _ = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            self.logger.debug(f"[Cache] Evicted oldest entry: {oldest_key}")

        self._entries[key] = CacheEntry(key=key, payload=payload, stored_at=self._clock())

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        for stat in self._stats:
            self._stats[stat] = 0
        self.logger.info(f"[Cache] Cleared {count} entries")

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock(), self.ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)

    # ========================================================================
    # STATS
    # ========================================================================

    def get_stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            capacity=self.max_entries,
            ttl_seconds=self.ttl_seconds,
            keys=list(self._entries.keys()),
            hits=self._stats["hits"],
            misses=self._stats["misses"],
            evictions=self._stats["evictions"],
        )
