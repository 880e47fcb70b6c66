"""iterableapi -- typed async client for the Iterable marketing-automation API.

This package wraps the Iterable REST API with validated, typed methods for
user lookup, list management, event tracking, templates, catalogs, and
in-app messaging. The two hottest reads (user by email, user by userId) go
through an in-memory read-through cache with LRU eviction and a TTL.

Typical usage::

    from iterableapi import IterableService

    async with IterableService("my-api-key") as service:
        user = await service.fetch_user_by_email("someone@example.com")

An ``iterable`` console script exposes the same operations from the shell.

Modules:
    service: :class:`IterableService`, the public client surface.
    lookup: Read-through user lookup over the remote directory.
    cache: Bounded, time-expiring LRU caches per key space.
    directory: Single-round-trip user fetches.
    validators: Pure input checks used before any network call.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting for the CLI.
"""

__version__ = "0.1.6"

from iterableapi.cache import LookupCache, UserLookupCaches
from iterableapi.models import LookupOutcome, LookupResult, ServiceConfig
from iterableapi.service import IterableService

__all__ = [
    "IterableService",
    "LookupCache",
    "LookupOutcome",
    "LookupResult",
    "ServiceConfig",
    "UserLookupCaches",
    "__version__",
]
