"""In-memory TTL cache with insertion-ordered eviction."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

from paperless_ocr.cache.stats import CacheEntry, CacheStats
from paperless_ocr.errors.exceptions import CacheError, ConfigurationError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """Size- and time-bounded key/value store.

    Entries live in insertion order. On insert, expired entries are dropped
    first, then the oldest-inserted ones until the cache fits ``max_entries``.
    Overwriting a key refreshes its insertion time. A single lock guards the
    store and is only held for in-memory work.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        *,
        name: str = "cache",
        value_type: type | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ConfigurationError(f"{name}: ttl must be positive")
        if max_entries < 1:
            raise ConfigurationError(f"{name}: max_entries must be >= 1")
        self._name = name
        self._ttl = float(ttl_seconds)
        self._max_entries = max_entries
        self._value_type = value_type
        self._clock = clock
        self._store: OrderedDict[K, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats(max_entries=max_entries)

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: K) -> V | None:
        """Return the cached value, or None on a miss or an expired entry."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._store[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                return None
            if self._value_type is not None and not isinstance(entry.value, self._value_type):
                del self._store[key]
                self._stats.misses += 1
                raise CacheError(
                    f"{self._name}: entry holds {type(entry.value).__name__}, "
                    f"expected {self._value_type.__name__}"
                )
            self._stats.hits += 1
            return entry.value

    def put(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        entry = CacheEntry(
            value=value,
            inserted_at=self._clock(),
            ttl_seconds=self._ttl if ttl_seconds is None else ttl_seconds,
        )
        with self._lock:
            self._store.pop(key, None)
            if len(self._store) >= self._max_entries:
                self._evict_expired(entry.inserted_at)
            while len(self._store) >= self._max_entries:
                oldest, _ = self._store.popitem(last=False)
                self._stats.evictions += 1
                logger.debug("%s: evicted oldest entry %r", self._name, oldest)
            self._store[key] = entry

    def remove(self, key: K) -> V | None:
        with self._lock:
            entry = self._store.pop(key, None)
        return entry.value if entry is not None else None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return self._stats.model_copy(update={"entries": len(self._store)})

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._store.get(key)  # type: ignore[call-overload]
            return entry is not None and not entry.is_expired(self._clock())

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, e in self._store.items() if e.is_expired(now)]
        for key in expired:
            del self._store[key]
        if expired:
            self._stats.evictions += len(expired)
            self._stats.expirations += len(expired)
