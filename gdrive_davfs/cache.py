"""
Time-bounded lookup cache for path resolutions and directory listings.

Two namespaces share one cache: ``path-lookup:<path>`` entries hold a single
RemoteObject, ``dir-listing:<container id>`` entries hold a tuple of them.
Failed lookups are never stored.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from cachetools import TLRUCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 10000


class Namespace(Enum):
    PATH_LOOKUP = "path-lookup"
    DIR_LISTING = "dir-listing"


@dataclass(frozen=True)
class CacheKey:
    namespace: Namespace
    name: str

    def __str__(self) -> str:
        return f"{self.namespace.value}:{self.name}"


def path_key(path: str) -> CacheKey:
    return CacheKey(Namespace.PATH_LOOKUP, path)


def listing_key(container_id: str) -> CacheKey:
    return CacheKey(Namespace.DIR_LISTING, container_id)


@dataclass(frozen=True)
class Found(Generic[T]):
    """A cache hit. A miss is reported as ``None``."""

    value: T


@dataclass(frozen=True)
class _Stored:
    found: Found
    ttl: float


def _time_to_use(key: CacheKey, stored: _Stored, now: float) -> float:
    return now + stored.ttl


class LookupCache:
    """
    Thread-safe key -> result cache with a TTL per entry.

    Entries expire on their own TTL or are dropped by an explicit
    ``invalidate*`` call. Resolution functions run outside the lock, so two
    workers missing on the same key may both query the store; whichever
    finishes last wins the slot.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._lock = threading.Lock()
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_time_to_use, timer=timer)

    def get(self, key: CacheKey) -> Found | None:
        """Return the live entry for ``key``, or None on a miss."""
        with self._lock:
            stored = self._cache.get(key)
        if stored is None:
            return None
        return stored.found

    def put(self, key: CacheKey, value, ttl: float) -> None:
        """Store a successful result for ``ttl`` seconds."""
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        with self._lock:
            self._cache[key] = _Stored(Found(value), ttl)

    def get_or_resolve(self, key: CacheKey, ttl: float, resolve_fn: Callable[[], T]) -> T:
        """
        Return the cached value for ``key`` or compute and cache it.

        Args:
            key: Namespaced cache key.
            ttl: Lifetime in seconds for a freshly resolved value.
            resolve_fn: Called on a miss. Any exception it raises propagates
                and leaves the cache untouched.
        """
        hit = self.get(key)
        if hit is not None:
            logger.debug("Cache hit: %s", key)
            return hit.value

        logger.debug("Cache miss: %s", key)
        value = resolve_fn()
        self.put(key, value, ttl)
        return value

    def invalidate(self, path: str) -> None:
        """Remove exactly the path-lookup entry for ``path``."""
        self._discard(path_key(path))

    def invalidate_listing(self, container_id: str) -> None:
        """Remove the directory-listing entry for a container."""
        self._discard(listing_key(container_id))

    def invalidate_tree(self, path: str) -> None:
        """Remove the path-lookup entry for ``path`` and every path beneath it."""
        prefix = path.rstrip("/") + "/"
        with self._lock:
            to_remove = [
                k
                for k in self._cache
                if k.namespace is Namespace.PATH_LOOKUP
                and (k.name == path or k.name.startswith(prefix))
            ]
            for k in to_remove:
                self._cache.pop(k, None)
        logger.debug("Invalidated %d entries under %s", len(to_remove), path)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def _discard(self, key: CacheKey) -> None:
        logger.debug("Invalidate %s", key)
        with self._lock:
            self._cache.pop(key, None)
