"""In-memory TTL cache with lazy expiry and an optional LRU bound."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Generic, TypeVar

from esports_connect.models import CacheStats, InvalidCacheKeyError, InvalidCacheTTLError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_MS = 5 * 60 * 1000


class CacheTTL(IntEnum):
    """TTL presets in milliseconds."""

    SHORT = 1 * 60 * 1000
    MEDIUM = 5 * 60 * 1000
    LONG = 15 * 60 * 1000
    VERY_LONG = 60 * 60 * 1000


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: int  # ms, from the owning cache's clock
    ttl: int  # ms

    def is_live(self, now: int) -> bool:
        return now - self.timestamp <= self.ttl


class CacheManager:
    """Key/value store where every entry carries its own TTL.

    Stale entries are never returned. They are dropped when ``get``/``has``
    run into them, or in bulk by ``clean_expired``; the cache never
    schedules a sweep on its own.

    ``max_entries`` bounds the store with least-recently-used eviction.
    ``None`` keeps it unbounded, which is the default.
    """

    def __init__(
        self,
        default_ttl: int = DEFAULT_TTL_MS,
        max_entries: int | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self._default_ttl = int(validate_ttl(default_ttl))
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1 or None, got {max_entries}")
        self._max_entries = max_entries
        self._clock = clock or monotonic_ms
        self._store: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._lock = threading.RLock()

        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._evictions = 0

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    @property
    def max_entries(self) -> int | None:
        return self._max_entries

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for ``key``, or ``default``."""
        entry = self.get_entry(key)
        if entry is None:
            return default
        return entry.data

    def get_entry(self, key: str) -> CacheEntry[Any] | None:
        """Return the live entry for ``key`` (with its timestamp and TTL)."""
        _validate_key(key)
        with self._lock:
            entry = self._lookup(key)
            if entry is None:
                self._misses += 1
                logger.debug("Cache miss: %s", key)
                return None
            self._hits += 1
            logger.debug("Cache hit: %s", key)
            return entry

    def has(self, key: str) -> bool:
        _validate_key(key)
        with self._lock:
            return self._lookup(key) is not None

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def size(self) -> int:
        """Number of stored entries, including stale ones not yet swept."""
        with self._lock:
            return len(self._store)

    def __len__(self) -> int:
        return self.size()

    def keys(self) -> list[str]:
        """Stored keys, including stale ones not yet swept."""
        with self._lock:
            return list(self._store.keys())

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._store),
                hits=self._hits,
                misses=self._misses,
                expirations=self._expirations,
                evictions=self._evictions,
                max_entries=self._max_entries,
                default_ttl_ms=self._default_ttl,
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, key: str, data: Any, ttl: int | None = None) -> None:
        """Insert or overwrite ``key``. The previous entry is discarded."""
        _validate_key(key)
        ttl = self._default_ttl if ttl is None else validate_ttl(ttl)
        with self._lock:
            self._store[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=int(ttl))
            self._store.move_to_end(key)
            self._enforce_bound()

    def delete(self, key: str) -> bool:
        """Remove ``key`` whether live or stale. Returns True if it was present."""
        _validate_key(key)
        with self._lock:
            return self._store.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. Returns the number removed."""
        _validate_key(prefix)
        with self._lock:
            doomed = [k for k in self._store if k.startswith(prefix)]
            for k in doomed:
                del self._store[k]
        if doomed:
            logger.debug("Invalidated %d cache entries under %r", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def clean_expired(self) -> int:
        """Remove every stale entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._store.items() if not e.is_live(now)]
            for k in stale:
                del self._store[k]
            self._expirations += len(stale)
        if stale:
            logger.info("Swept %d expired cache entries", len(stale))
        return len(stale)

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> CacheEntry[Any] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if not entry.is_live(self._clock()):
            del self._store[key]
            self._expirations += 1
            logger.debug("Cache entry expired: %s", key)
            return None
        if self._max_entries is not None:
            self._store.move_to_end(key)
        return entry

    def _enforce_bound(self) -> None:
        if self._max_entries is None:
            return
        while len(self._store) > self._max_entries:
            evicted, _ = self._store.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted least recently used cache entry: %s", evicted)


def _validate_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise InvalidCacheKeyError(f"Cache key must be a non-empty string, got {key!r}")


def validate_ttl(ttl: int) -> int:
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
        raise InvalidCacheTTLError(f"TTL must be a positive number of milliseconds, got {ttl!r}")
    return ttl
