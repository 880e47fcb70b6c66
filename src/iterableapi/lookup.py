"""Read-through user lookup: validate, consult the cache, then the directory.

The calling convention is fixed:

1. A non-``str`` key is a programmer error and raises
   :class:`~iterableapi.exceptions.InvalidUsageError`.
2. A malformed key (bad email, empty userId) returns an ``INVALID`` result
   without touching the cache or the network.
3. A live cache entry is returned as a ``HIT`` with no network call.
4. Otherwise the :class:`~iterableapi.directory.RemoteDirectory` is asked.
5. Only a ``FETCHED`` record is written back, as a deep copy. ``ABSENT``
   and ``FAILED`` results are never cached, so the next lookup for the same
   key tries the remote again.

Concurrent lookups for the same missing key are not coalesced: each one
calls the directory and the last ``set`` wins.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Awaitable, Callable

from iterableapi.cache import LookupCache, UserLookupCaches
from iterableapi.directory import RemoteDirectory
from iterableapi.exceptions import InvalidUsageError
from iterableapi.models import LookupOutcome, LookupResult
from iterableapi.validators import is_non_empty_string, is_valid_email

logger = logging.getLogger(__name__)


class UserLookup:
    """Cached user lookups over a :class:`RemoteDirectory`.

    Args:
        directory: Remote source of user records.
        caches: Email-keyed and userId-keyed caches. The owner decides
            their lifetime; pass the same instance to several lookups to
            share them.
    """

    def __init__(self, directory: RemoteDirectory, caches: UserLookupCaches) -> None:
        self._directory = directory
        self._caches = caches

    @property
    def caches(self) -> UserLookupCaches:
        return self._caches

    async def by_email(self, email: str) -> LookupResult:
        """Look up a user by email address."""
        if not isinstance(email, str):
            raise InvalidUsageError(f"email must be str, got {type(email).__name__}")
        if not is_valid_email(email):
            logger.warning("by_email: %r is not a valid email address", email)
            return LookupResult.invalid()
        return await self._read_through(
            self._caches.by_email, email, self._directory.fetch_by_email
        )

    async def by_user_id(self, user_id: str) -> LookupResult:
        """Look up a user by Iterable userId."""
        if not isinstance(user_id, str):
            raise InvalidUsageError(f"user_id must be str, got {type(user_id).__name__}")
        if not is_non_empty_string(user_id):
            logger.warning("by_user_id: userId is empty")
            return LookupResult.invalid()
        return await self._read_through(
            self._caches.by_user_id, user_id, self._directory.fetch_by_user_id
        )

    async def _read_through(
        self,
        cache: LookupCache,
        key: str,
        fetch: Callable[[str], Awaitable[LookupResult]],
    ) -> LookupResult:
        found, record = cache.lookup(key)
        if found:
            logger.debug("Cache hit: %s[%s]", cache.name, key)
            return LookupResult.hit(copy.deepcopy(record))

        result = await fetch(key)
        if result.outcome is LookupOutcome.FETCHED and result.record:
            stored: dict[str, Any] = copy.deepcopy(result.record)
            cache.set(key, stored)
        return result
