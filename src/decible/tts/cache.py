"""
In-memory LRU cache with optional TTL.

Used for voice previews: one short data-URL sample per voice. Features:
    - LRU eviction once ``max_items`` is reached (oldest entry first)
    - Optional TTL (``ttl_seconds=0`` keeps entries until evicted)
    - Thread-safe operations
    - Hit / miss / eviction counters

Example:
    >>> cache = TinyLRUCache(max_items=100)
    >>> cache.set("brian", "data:audio/mpeg;base64,...")
    >>> cache.get("brian")
    'data:audio/mpeg;base64,...'
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Generic, Optional, TypeVar

from decible.core.config import Defaults
from decible.core.logging import get_logger, verbose

_LOG = get_logger("decible.cache")

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    created_at: float = field(default_factory=time.time)


class TinyLRUCache(Generic[V]):
    """
    Thread-safe LRU cache with TTL support.

    Attributes:
        max_items: Maximum number of entries kept.
        ttl_seconds: Entry lifetime in seconds (0 = no TTL).
    """

    def __init__(
        self,
        max_items: int = Defaults.PREVIEW_CACHE_MAX_ITEMS,
        ttl_seconds: int = Defaults.PREVIEW_CACHE_TTL_SECONDS,
    ):
        self.max_items = int(max_items)
        self.ttl_seconds = int(ttl_seconds)
        self._d: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._d)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._d

    def _expired(self, entry: CacheEntry[V]) -> bool:
        return self.ttl_seconds > 0 and time.time() - entry.created_at > self.ttl_seconds

    def get(self, key: str) -> Optional[V]:
        """Return the cached value and mark it recently used, or None."""
        with self._lock:
            entry = self._d.get(key)
            if entry is not None and self._expired(entry):
                del self._d[key]
                entry = None
                verbose(_LOG, "cache_expired", key=key)
            if entry is None:
                self._misses += 1
                return None
            self._d.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: str, value: V) -> None:
        """Store ``value``, evicting the least recently used entries beyond capacity."""
        with self._lock:
            self._d[key] = CacheEntry(value, created_at=time.time())
            self._d.move_to_end(key)
            while len(self._d) > self.max_items:
                evicted, _ = self._d.popitem(last=False)
                self._evictions += 1
                verbose(_LOG, "cache_evicted", key=evicted)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._d.pop(key, None) is not None

    def clear(self) -> int:
        """Drop every entry; returns how many were removed."""
        with self._lock:
            count = len(self._d)
            self._d.clear()
            return count

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "size": len(self._d),
                "max_items": self.max_items,
                "ttl_seconds": self.ttl_seconds,
            }
