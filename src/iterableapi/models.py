"""Canonical Pydantic models shared across all iterableapi modules.

The models fall into two groups:

**Configuration models** -- persisted as JSON in the user's config directory
or built in code by library users:
    :class:`RequestConfig`, :class:`CacheConfig`, :class:`OutputConfig`,
    :class:`GlobalConfig`, and :class:`ServiceConfig`.

**Lookup models** -- returned by the read-through user lookup:
    :class:`LookupOutcome` and :class:`LookupResult`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.iterable.com"
DEFAULT_API_KEY_SOURCE = "env:ITERABLE_API_KEY"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every API call."""

    timeout: float = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Limits for the per-key-space user lookup caches.

    Both values are fixed when the caches are constructed; changing the
    config afterwards has no effect on caches that already exist.
    """

    max_entries: int = Field(
        default=1000, ge=1, description="Maximum live entries per key space"
    )
    ttl_seconds: float = Field(
        default=300, gt=0, description="Seconds an entry stays visible after insertion"
    )


class OutputConfig(BaseModel):
    """Default output format for the CLI."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/iterableapi/config.json``.

    Loaded and saved by :func:`~iterableapi.config.load_global_config` and
    :func:`~iterableapi.config.save_global_config`. The API key itself is
    never stored here, only the *source* it is read from (see
    :func:`~iterableapi.config.resolve_credential`).
    """

    api_key_source: str = Field(
        default=DEFAULT_API_KEY_SOURCE,
        description="Credential source: env:VAR, file:/path, prompt",
    )
    base_url: str = DEFAULT_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


class ServiceConfig(BaseModel):
    """Everything :class:`~iterableapi.service.IterableService` needs to run.

    Example::

        ServiceConfig(api_key="abc123", cache=CacheConfig(ttl_seconds=60))

    Mappings may spell the key ``iterable_key``.
    """

    api_key: str = Field(min_length=1, validation_alias=AliasChoices("api_key", "iterable_key"))
    base_url: str = DEFAULT_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Lookup results ---


class LookupOutcome(str, enum.Enum):
    """How a user lookup was resolved.

    ``HIT`` and ``FETCHED`` carry a record; the rest do not. Only
    ``FETCHED`` results are ever written to a cache.
    """

    HIT = "hit"
    FETCHED = "fetched"
    ABSENT = "absent"
    FAILED = "failed"
    INVALID = "invalid"


class LookupResult(BaseModel):
    """Outcome of a user lookup plus the record, when there is one."""

    model_config = ConfigDict(frozen=True)

    outcome: LookupOutcome
    record: Optional[dict[str, Any]] = None

    @property
    def found(self) -> bool:
        """Whether the lookup produced a record."""
        return self.record is not None

    @classmethod
    def hit(cls, record: dict[str, Any]) -> LookupResult:
        return cls(outcome=LookupOutcome.HIT, record=record)

    @classmethod
    def fetched(cls, record: dict[str, Any]) -> LookupResult:
        return cls(outcome=LookupOutcome.FETCHED, record=record)

    @classmethod
    def absent(cls) -> LookupResult:
        return cls(outcome=LookupOutcome.ABSENT)

    @classmethod
    def failed(cls) -> LookupResult:
        return cls(outcome=LookupOutcome.FAILED)

    @classmethod
    def invalid(cls) -> LookupResult:
        return cls(outcome=LookupOutcome.INVALID)
