"""In-memory user lookup caching for iterableapi.

This package provides :class:`LookupCache`, a bounded LRU cache with a
time-to-live built on :mod:`cachetools`, and :class:`UserLookupCaches`,
which pairs one instance per key space (email, userId).

The caches are consumed by :class:`~iterableapi.lookup.UserLookup` and
sized by :class:`~iterableapi.models.CacheConfig`. Nothing is persisted;
a cache lives exactly as long as the object that owns it.
"""

from iterableapi.cache.lookup_cache import LookupCache, UserLookupCaches

__all__ = ["LookupCache", "UserLookupCaches"]
