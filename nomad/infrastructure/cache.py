"""In-process TTL caches for generated destination chunks and tool lookups.

Entries are kept in insertion order; once ``max_size`` is reached the least
recently used entry is evicted. Expired entries are dropped lazily on read.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional


class MemoryCache:
    def __init__(
        self,
        default_ttl: float = 300.0,
        max_size: int = 500,
        clock: Callable[[], float] = time.time,
    ):
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._ttl = default_ttl
        self._capacity = max(1, max_size)
        self._clock = clock
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] < now:
                del self._entries[key]
                entry = None
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[1]

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + (self._ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = (expires_at, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = self.misses = 0


def make_cache_key(*parts: Any) -> str:
    raw = json.dumps(parts, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def city_cache_key(city: str, days: int, start_day: int, interests: list[str], budget: Optional[str]) -> str:
    """Cache key for one generated destination chunk."""
    return "city:" + make_cache_key(city.strip().lower(), days, start_day, sorted(interests), budget or "")


city_cache = MemoryCache(default_ttl=1800.0, max_size=200)
place_cache = MemoryCache(default_ttl=3600.0, max_size=1000)
weather_cache = MemoryCache(default_ttl=3600.0, max_size=100)
