"""Response caching with TTL and insertion-order eviction.

Entries are keyed by ``PromptContext.cache_key()`` and carry the backend's
usage figures alongside the result, so a cache hit reports the usage of the
call that produced it.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from intentcall.adapters.base import UsageInfo

DEFAULT_TTL_MS: int = 300_000
DEFAULT_MAX_ENTRIES: int = 100

Clock = Callable[[], float]


@dataclass(slots=True)
class CacheEntry:
    """A cached response with expiration tracking."""
    result: Any
    usage: UsageInfo | None
    insert_order: int
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class ResponseCache:
    """Thread-safe in-memory response store.

    Before every insert all expired entries are removed; if the store is
    still full, the entry inserted earliest is evicted. Reads never change
    eviction order.

    Args:
        ttl_ms: Entry lifetime in milliseconds
        max_entries: Capacity before eviction
        clock: Monotonic clock in seconds

    Example:
        >>> cache = ResponseCache(ttl_ms=60_000, max_entries=2)
        >>> cache.put("k", "result")
        >>> cache.get("k").result
        'result'
    """

    __slots__ = ("_entries", "_ttl", "_max_entries", "_clock", "_counter", "_lock", "_hits", "_misses")

    def __init__(
        self,
        ttl_ms: float = DEFAULT_TTL_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be > 0")
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl_ms / 1000.0
        self._max_entries = max_entries
        self._clock = clock
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expired(self._clock()):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def put(self, key: str, result: Any, usage: UsageInfo | None = None) -> None:
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)
            self._evict_unlocked(now)
            self._entries[key] = CacheEntry(
                result=result,
                usage=usage,
                insert_order=next(self._counter),
                expires_at=now + self._ttl,
            )

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_unlocked(self, now: float) -> None:
        """Drop expired entries, then the oldest insert if still full. Caller must hold lock."""
        for key in [k for k, v in self._entries.items() if v.expired(now)]:
            del self._entries[key]
        if len(self._entries) >= self._max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].insert_order)
            del self._entries[oldest]

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> dict[str, object]:
        """Cache statistics for monitoring."""
        with self._lock:
            now = self._clock()
            expired = sum(1 for v in self._entries.values() if v.expired(now))
            return {
                "total_entries": len(self._entries),
                "expired_entries": expired,
                "active_entries": len(self._entries) - expired,
                "hits": self._hits,
                "misses": self._misses,
                "ttl_ms": self._ttl * 1000.0,
                "max_entries": self._max_entries,
            }
