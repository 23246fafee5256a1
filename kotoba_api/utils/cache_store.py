"""In-memory TTL cache used to avoid repeated external calls.

Expiry is lazy: stale entries stay in the store until the next housekeeping
pass, and callers decide freshness with ``is_fresh``. Housekeeping runs on
writes only; the TTL sweep is throttled by a cleanup interval and size
overflow is handled by batch eviction down to half the capacity.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

# Bump to invalidate every key when the cached payload shape changes
KEY_VERSION = "v1"

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Cached value with its insertion timestamp."""

    key: str
    value: V
    created_at: float


class TTLCacheStore(Generic[V]):
    """Thread-safe, in-memory cache with soft TTL and batch eviction.

    Attributes:
        ttl_seconds: Staleness bound used by ``is_fresh`` and the TTL sweep.
        max_entries: Size above which the oldest entries are evicted in bulk.
        cleanup_interval_seconds: Minimum time between two TTL sweeps.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int,
        cleanup_interval_seconds: float = 300,
        name: str = "cache",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 2:
            raise ValueError("max_entries must be >= 2")

        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval_seconds
        self._name = name
        self._clock = clock
        self._store: dict[str, CacheEntry[V]] = {}
        self._lock = threading.RLock()
        self._last_cleanup = 0.0
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TTLCacheStore(name={self._name!r}, ttl_seconds={self._ttl}, "
            f"max_entries={self._max_entries}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> CacheEntry[V] | None:
        """Return the entry stored under ``key``, fresh or stale.

        Args:
            key: Cache key.

        Returns:
            The stored entry or None if absent.
        """

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(
                    "cache.miss",
                    extra={"cache": self._name, "cache_key": key[:16], "reason": "not_found"},
                )
                return None

            self._hits += 1
            logger.debug(
                "cache.hit",
                extra={"cache": self._name, "cache_key": key[:16]},
            )
            return entry

    def is_fresh(self, entry: CacheEntry[Any]) -> bool:
        """Whether ``entry`` is younger than the TTL."""

        return self._clock() - entry.created_at < self._ttl

    def get_fresh(self, key: str) -> CacheEntry[V] | None:
        """Return the entry only if it is still fresh."""

        entry = self.get(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def put(self, key: str, value: V) -> None:
        """Store ``value`` unconditionally, then run housekeeping.

        Args:
            key: Cache key.
            value: Value to store; treated as opaque.
        """

        with self._lock:
            now = self._clock()
            self._store[key] = CacheEntry(key=key, value=value, created_at=now)
            self._sweep_expired_if_due_locked(now)
            self.evict_if_needed()

            logger.debug(
                "cache.set",
                extra={
                    "cache": self._name,
                    "cache_key": key[:16],
                    "size": len(self._store),
                    "ttl_s": self._ttl,
                },
            )

    def evict_if_needed(self) -> int:
        """Evict oldest entries down to half the capacity when over capacity.

        Returns:
            Number of evicted entries.
        """

        with self._lock:
            if len(self._store) <= self._max_entries:
                return 0

            target = self._max_entries // 2
            oldest_first = sorted(self._store.values(), key=lambda e: e.created_at)
            victims = oldest_first[: len(oldest_first) - target]
            for entry in victims:
                del self._store[entry.key]
            self._evictions += len(victims)

            logger.info(
                "cache.evicted",
                extra={
                    "cache": self._name,
                    "evicted": len(victims),
                    "size": len(self._store),
                    "reason": "capacity",
                },
            )
            return len(victims)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._last_cleanup = 0.0
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | str]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "name": self._name,
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _sweep_expired_if_due_locked(self, now: float) -> None:
        if now - self._last_cleanup <= self._cleanup_interval:
            return
        self._last_cleanup = now

        expired_keys = [k for k, e in self._store.items() if now - e.created_at > self._ttl]
        for key in expired_keys:
            del self._store[key]
        if expired_keys:
            self._evictions += len(expired_keys)
            logger.debug(
                "cache.evicted",
                extra={
                    "cache": self._name,
                    "evicted": len(expired_keys),
                    "size": len(self._store),
                    "reason": "expired",
                },
            )


def build_cache_key(kind: str, *params: str, text: str) -> str:
    """Build a stable cache key from the operation, its parameters and the text.

    The text is trimmed of surrounding whitespace; no other normalization is
    applied, so keys are equal iff the composites are equal.

    Args:
        kind: Operation kind (e.g., "translate", "analyze").
        *params: Operation parameters (e.g., source and target language).
        text: Input text.

    Returns:
        Hex-encoded SHA-256 digest string.
    """

    composite = ":".join((KEY_VERSION, kind, *params, text.strip()))
    return sha256(composite.encode("utf-8")).hexdigest()
