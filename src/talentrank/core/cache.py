"""
Bounded cache with TTL and LRU eviction.

Generic key -> value store used for embeddings. Bounded both by entry
count and by an approximate byte budget; expired entries are treated as
absent even while still resident.
"""

import json
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypedDict, TypeVar

from talentrank.core.logging import logger
from talentrank.core.utils.datetime_utils import epoch_seconds

T = TypeVar("T")

DEFAULT_ENTRY_SIZE = 1024


class CacheStats(TypedDict):
    """Cache statistics."""

    name: str
    entries: int
    size_bytes: int
    max_entries: int
    max_size_bytes: int
    ttl_seconds: float
    hits: int
    misses: int
    hit_rate: float
    evictions: int
    expirations: int
    total_accesses: int
    oldest_entry_age: float
    newest_entry_age: float


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry.

    Attributes:
        key: Cache key
        value: Stored value
        created_at: Insertion time (for TTL), seconds
        last_accessed_at: Last read or write, seconds (for LRU)
        access_count: Number of reads plus the initial write
        size_bytes: Approximate serialized size
    """

    key: str
    value: T
    created_at: float
    last_accessed_at: float
    access_count: int
    size_bytes: int


def estimate_size(value: Any) -> int:
    """Approximate serialized size of a value in bytes.

    numpy-backed values report ``nbytes``; anything else is measured as
    JSON. Values that cannot be serialized count as 1KB.
    """
    nbytes = getattr(value, "nbytes", None)
    if isinstance(nbytes, int):
        return nbytes

    try:
        return len(json.dumps(value).encode("utf-8"))
    except (TypeError, ValueError):
        return DEFAULT_ENTRY_SIZE


class BoundedCache(Generic[T]):
    """LRU cache with TTL and a byte budget.

    Entries are kept in an OrderedDict ordered by last access, so the
    first item is always the least recently accessed one and eviction is
    O(1). Reads are O(1).

    Invariants:
        - sum(entry.size_bytes) <= max_size_bytes
        - len(entries) <= max_entries
        - entries older than ttl_seconds are never returned

    Each instance has its own lock; caches never share one.
    """

    def __init__(
        self,
        max_entries: int = 100,
        max_size_bytes: int = 10 * 1024 * 1024,
        ttl_seconds: float = 900,
        clock: Optional[Callable[[], float]] = None,
        sizer: Callable[[Any], int] = estimate_size,
        name: str = "cache",
    ):
        """Initialize the cache with configurable limits.

        Args:
            max_entries: Maximum number of entries
            max_size_bytes: Maximum total approximate size
            ttl_seconds: Time to live of each entry
            clock: Callable returning the current time in seconds
            sizer: Callable estimating the size of a value
            name: Name used in logs and stats
        """
        if max_entries <= 0 or max_size_bytes <= 0 or ttl_seconds <= 0:
            raise ValueError("Cache limits must be positive")

        self.max_entries = max_entries
        self.max_size_bytes = max_size_bytes
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock or epoch_seconds
        self._sizer = sizer
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._size_bytes = 0
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        # Periodic cleanup every N set() operations
        self._operations_count = 0
        self._cleanup_interval = 100

        logger.info(
            "BoundedCache initialized",
            cache=name,
            max_entries=max_entries,
            max_size_bytes=max_size_bytes,
            ttl_seconds=ttl_seconds,
        )

    def _is_expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def _remove(self, key: str) -> CacheEntry[T]:
        entry = self._entries.pop(key)
        self._size_bytes -= entry.size_bytes
        return entry

    def get(self, key: str) -> Optional[T]:
        """Return the value if present and not expired, None otherwise."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, now):
                self._remove(key)
                self._expirations += 1
                self._misses += 1
                return None

            entry.access_count += 1
            entry.last_accessed_at = now
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """True if a live entry exists. Does not count as an access."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry, now)

    def set(self, key: str, value: T) -> bool:
        """Store a value, evicting least recently accessed entries to make room.

        Returns:
            False if the value alone exceeds the byte budget and was not stored.
            Any previous value for ``key`` is dropped in that case.
        """
        size = self._sizer(value)
        if size > self.max_size_bytes:
            with self._lock:
                if key in self._entries:
                    self._remove(key)
            logger.warning(
                "Value larger than cache budget, not cached",
                cache=self.name,
                size_bytes=size,
                max_size_bytes=self.max_size_bytes,
            )
            return False

        now = self._clock()
        with self._lock:
            if key in self._entries:
                self._remove(key)

            evicted = 0
            while self._entries and (
                len(self._entries) >= self.max_entries
                or self._size_bytes + size > self.max_size_bytes
            ):
                _, lru_entry = self._entries.popitem(last=False)
                self._size_bytes -= lru_entry.size_bytes
                evicted += 1
            self._evictions += evicted

            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                last_accessed_at=now,
                access_count=1,
                size_bytes=size,
            )
            self._size_bytes += size

            self._operations_count += 1
            run_cleanup = self._operations_count >= self._cleanup_interval
            if run_cleanup:
                self._operations_count = 0

        if evicted:
            logger.debug("Evicted least recently used entries", cache=self.name, count=evicted)
        if run_cleanup:
            self.cleanup_expired()
        return True

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    def clear(self) -> None:
        """Drop every entry. Only costs performance, never correctness."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
            self._size_bytes = 0
        logger.info("Cache cleared", cache=self.name, entries_removed=size)

    def cleanup_expired(self) -> int:
        """Remove expired entries.

        Called automatically every ``_cleanup_interval`` set() operations.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        with self._lock:
            expired_keys = [
                key for key, entry in self._entries.items() if self._is_expired(entry, now)
            ]
            for key in expired_keys:
                self._remove(key)
            self._expirations += len(expired_keys)

        if expired_keys:
            logger.info("Cleaned up expired cache entries", cache=self.name, count=len(expired_keys))

        return len(expired_keys)

    @property
    def size(self) -> int:
        """Number of resident entries (expired ones included until swept)."""
        with self._lock:
            return len(self._entries)

    @property
    def size_bytes(self) -> int:
        with self._lock:
            return self._size_bytes

    def stats(self) -> CacheStats:
        """Return cache statistics."""
        now = self._clock()
        with self._lock:
            ages = [now - entry.created_at for entry in self._entries.values()]
            lookups = self._hits + self._misses
            return {
                "name": self.name,
                "entries": len(self._entries),
                "size_bytes": self._size_bytes,
                "max_entries": self.max_entries,
                "max_size_bytes": self.max_size_bytes,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / lookups if lookups else 0.0,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "total_accesses": sum(e.access_count for e in self._entries.values()),
                "oldest_entry_age": max(ages) if ages else 0.0,
                "newest_entry_age": min(ages) if ages else 0.0,
            }
