"""In-memory LRU caches with a time-to-live for user lookups.

Uses :class:`cachetools.TTLCache` for storage. An entry set at time *T* is
visible to :meth:`LookupCache.has` and :meth:`LookupCache.get` while
``now - T < ttl``; after that it reads as absent, whatever the capacity
pressure. Expiry is checked lazily on access. Stale entries are only
reclaimed when they are overwritten, evicted, or swept by the next insert.

Capacity eviction removes the least *recently used* entry: a successful
:meth:`~LookupCache.get` promotes the entry, :meth:`~LookupCache.has` does
not.

Each :class:`LookupCache` covers one key space. :class:`UserLookupCaches`
bundles the email-keyed and userId-keyed instances so that a string cached
under one space is never visible from the other.

See Also:
    :class:`~iterableapi.models.CacheConfig` -- ``max_entries`` and
    ``ttl_seconds``.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

import cachetools

from iterableapi.exceptions import ConfigError, InvalidUsageError
from iterableapi.models import CacheConfig

Timer = Callable[[], float]


class LookupCache:
    """Bounded, time-expiring cache for one key space.

    All operations run under a single lock, so an instance can be shared
    by coroutines and by threads alike.

    Args:
        name: Label used in stats and log messages (e.g. ``"by_email"``).
        max_entries: Maximum number of live entries. Must be >= 1.
        ttl_seconds: Seconds an entry stays visible after it is set.
            Must be > 0.
        timer: Clock returning seconds as a float. Defaults to
            :func:`time.monotonic`; tests inject a fake clock.

    Raises:
        ConfigError: If ``max_entries`` or ``ttl_seconds`` is missing or
            not positive.

    Example::

        cache = LookupCache("by_email", max_entries=1000, ttl_seconds=300)
        cache.set("someone@example.com", {"userId": "u-1"})
        cache.get("someone@example.com")
    """

    def __init__(
        self,
        name: str,
        max_entries: int,
        ttl_seconds: float,
        timer: Timer = time.monotonic,
    ) -> None:
        if max_entries is None or isinstance(max_entries, bool) or max_entries < 1:
            raise ConfigError(f"Cache '{name}' needs max_entries >= 1, got {max_entries!r}")
        if ttl_seconds is None or ttl_seconds <= 0:
            raise ConfigError(f"Cache '{name}' needs ttl_seconds > 0, got {ttl_seconds!r}")
        self._name = name
        self._max_entries = int(max_entries)
        self._ttl_seconds = float(ttl_seconds)
        self._cache: cachetools.TTLCache = cachetools.TTLCache(
            maxsize=self._max_entries, ttl=self._ttl_seconds, timer=timer
        )
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls, name: str, config: CacheConfig, timer: Timer = time.monotonic
    ) -> LookupCache:
        """Build a cache with the limits from *config*."""
        return cls(name, config.max_entries, config.ttl_seconds, timer=timer)

    @property
    def name(self) -> str:
        return self._name

    def has(self, key: str) -> bool:
        """Return True if an unexpired entry exists for *key*.

        Does not change the entry's position in LRU order.
        """
        self._check_key(key)
        with self._lock:
            return key in self._cache

    def get(self, key: str) -> Optional[Any]:
        """Return the unexpired value for *key*, or ``None``.

        A hit counts as a use and promotes the entry in LRU order.
        """
        self._check_key(key)
        with self._lock:
            return self._cache.get(key)

    def lookup(self, key: str) -> tuple[bool, Optional[Any]]:
        """Check and read *key* in one critical section.

        Returns:
            ``(True, value)`` on a hit (the entry is promoted), otherwise
            ``(False, None)``.
        """
        self._check_key(key)
        with self._lock:
            try:
                # TTLCache raises KeyError for expired entries too.
                return True, self._cache[key]
            except KeyError:
                return False, None

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite *key*, stamping it with the current time.

        When *key* is new and the cache is full, the least-recently-used
        entry is evicted first.
        """
        self._check_key(key)
        with self._lock:
            self._cache[key] = value

    def __len__(self) -> int:
        """Number of live (unexpired) entries."""
        with self._lock:
            return int(self._cache.currsize)

    def stats(self) -> dict[str, Any]:
        """Return a summary of the cache.

        Returns:
            A ``dict`` with ``name``, ``size`` (live entries),
            ``max_entries`` and ``ttl_seconds``.
        """
        return {
            "name": self._name,
            "size": len(self),
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl_seconds,
        }

    def _check_key(self, key: Any) -> None:
        if not isinstance(key, str):
            raise InvalidUsageError(
                f"Cache '{self._name}' keys must be str, got {type(key).__name__}"
            )
        if not key:
            raise InvalidUsageError(f"Cache '{self._name}' keys must not be empty")


class UserLookupCaches:
    """The two independent key spaces used by user lookups.

    Args:
        by_email: Cache keyed by email address.
        by_user_id: Cache keyed by Iterable userId.
    """

    def __init__(self, by_email: LookupCache, by_user_id: LookupCache) -> None:
        if by_email is by_user_id:
            raise ConfigError("by_email and by_user_id must be separate caches")
        self.by_email = by_email
        self.by_user_id = by_user_id

    @classmethod
    def from_config(
        cls, config: Optional[CacheConfig] = None, timer: Timer = time.monotonic
    ) -> UserLookupCaches:
        """Create both caches with the same limits (1000 entries / 300 s by default)."""
        config = config or CacheConfig()
        return cls(
            by_email=LookupCache.from_config("by_email", config, timer=timer),
            by_user_id=LookupCache.from_config("by_user_id", config, timer=timer),
        )

    def stats(self) -> dict[str, dict[str, Any]]:
        return {
            self.by_email.name: self.by_email.stats(),
            self.by_user_id.name: self.by_user_id.stats(),
        }
