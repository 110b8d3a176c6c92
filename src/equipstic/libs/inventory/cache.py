"""Read-through cache for lookup results.

The cache is an injected key/value store keyed by operation name and
arguments. Only successful outcomes are stored (entities, lists and "not
found"); failures always propagate and leave the cache untouched.

Entries expire only through the store's own policy. Creating, updating or
deleting an equipment record does not purge cached reads.
"""

import logging
from collections.abc import Hashable
from typing import Final, Protocol

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_CACHE_MAXSIZE: Final[int] = 1024

# Stored in place of None so that a cached "not found" differs from a miss
_ABSENT_MARKER: Final[object] = object()
_MISSING: Final[object] = object()


class CacheStore(Protocol):
    """Minimal mapping interface the client needs from a cache backend.

    ``cachetools`` caches and plain dicts both satisfy it.
    """

    def get(self, key: Hashable, default: object = None) -> object:
        """Return the value stored under key, or default."""
        ...

    def __setitem__(self, key: Hashable, value: object) -> None:
        """Store value under key."""
        ...


def create_ttl_cache(ttl_seconds: float, maxsize: int = DEFAULT_CACHE_MAXSIZE) -> CacheStore:
    """Build the default in-memory store with time-based expiry."""
    logger.debug("Creating in-memory TTL cache", extra={"ttl": ttl_seconds, "maxsize": maxsize})
    cache: TTLCache[Hashable, object] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
    return cache


class LookupCache:
    """Wraps a :class:`CacheStore` with hit/miss semantics for lookups."""

    def __init__(self, store: CacheStore) -> None:
        """Initialize the cache around a store."""
        self._store = store

    def lookup(self, key: Hashable) -> tuple[bool, object]:
        """Return ``(hit, value)``; a cached "not found" comes back as None."""
        value = self._store.get(key, _MISSING)
        if value is _MISSING:
            logger.debug("Cache miss", extra={"cache_key": repr(key)})
            return False, None
        logger.debug("Cache hit", extra={"cache_key": repr(key)})
        if value is _ABSENT_MARKER:
            return True, None
        return True, value

    def store(self, key: Hashable, value: object) -> None:
        """Remember a successful outcome; None records "not found"."""
        self._store[key] = _ABSENT_MARKER if value is None else value
