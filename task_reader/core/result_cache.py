"""
Time-bounded result cache for location lookups, active markers and parsed
message queries.

Entries expire ``ttl_seconds`` after they were stored and are evicted lazily
on the next lookup of the same key. Nothing runs in the background. Values
are replaced wholesale, so concurrent writers race benignly (last writer wins).
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from task_reader.config.constants import CACHE_TTL_SECONDS
from task_reader.utils.logger import log_debug

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value with the time it was stored."""

    value: T
    cached_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.cached_at >= self.ttl_seconds


class TTLCache:
    """Thread-safe TTL cache with an optional LRU size bound."""

    def __init__(
        self,
        name: str = "cache",
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_items: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            name: Label used in log messages and statistics
            ttl_seconds: Default lifetime of an entry
            max_items: Evict least recently used entries above this count
            clock: Source of the current time in seconds
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items
        self._clock = clock
        self._entries: OrderedDict[Hashable, CacheEntry[Any]] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = {"hits": 0, "misses": 0, "expired": 0, "evictions": 0}

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Get a live value, evicting it first if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return default

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats["expired"] += 1
                self._stats["misses"] += 1
                log_debug(f"{self.name}: expired entry evicted", {"key": repr(key)})
                return default

            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return entry.value

    def put(self, key: Hashable, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, replacing any previous entry for the key."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock(), ttl)
            self._entries.move_to_end(key)

            if self.max_items is not None:
                while len(self._entries) > self.max_items:
                    self._entries.popitem(last=False)
                    self._stats["evictions"] += 1

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], T],
        ttl_seconds: float | None = None,
    ) -> T:
        """Return the cached value for key, computing and storing it on a miss.

        The lock is not held while computing, so two callers missing at the
        same time both compute and the later store wins. Exceptions from
        ``compute`` propagate and nothing is stored.
        """
        sentinel = _MISSING
        cached = self.get(key, sentinel)
        if cached is not sentinel:
            return cached

        value = compute()
        self.put(key, value, ttl_seconds)
        return value

    def invalidate(self, key: Hashable) -> bool:
        """Remove one key. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                "name": self.name,
                "items": len(self._entries),
                "ttl_seconds": self.ttl_seconds,
                "hit_rate": self._stats["hits"] / total if total else 0.0,
                **self._stats,
            }


_MISSING = object()


@dataclass
class CacheSet:
    """The independent caches owned by one conversation store."""

    locations: TTLCache
    active_markers: TTLCache
    messages: TTLCache

    @classmethod
    def create(
        cls,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        max_message_entries: int | None = 256,
    ) -> "CacheSet":
        return cls(
            locations=TTLCache("locations", ttl_seconds, clock=clock),
            active_markers=TTLCache("active_markers", ttl_seconds, clock=clock),
            messages=TTLCache(
                "messages", ttl_seconds, max_items=max_message_entries, clock=clock
            ),
        )

    def clear(self) -> None:
        self.locations.clear()
        self.active_markers.clear()
        self.messages.clear()

    def get_stats(self) -> dict[str, Any]:
        return {
            "locations": self.locations.get_stats(),
            "active_markers": self.active_markers.get_stats(),
            "messages": self.messages.get_stats(),
        }
