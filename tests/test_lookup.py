"""Tests for the read-through user lookup."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import pytest

from iterableapi.cache import UserLookupCaches
from iterableapi.exceptions import InvalidUsageError
from iterableapi.lookup import UserLookup
from iterableapi.models import CacheConfig, LookupOutcome, LookupResult


class FakeDirectory:
    """Stands in for RemoteDirectory, counting calls per key."""

    def __init__(self, results: Optional[dict[str, LookupResult]] = None) -> None:
        self.results = results or {}
        self.calls: list[tuple[str, str]] = []

    async def fetch_by_email(self, email: str) -> LookupResult:
        self.calls.append(("email", email))
        return self.results.get(email, LookupResult.absent())

    async def fetch_by_user_id(self, user_id: str) -> LookupResult:
        self.calls.append(("user_id", user_id))
        return self.results.get(user_id, LookupResult.absent())


def _lookup(clock, directory: FakeDirectory, **cache_kwargs) -> UserLookup:
    caches = UserLookupCaches.from_config(CacheConfig(**cache_kwargs), timer=clock)
    return UserLookup(directory, caches)


# ---------------------------------------------------------------------------
# Read-through behaviour
# ---------------------------------------------------------------------------


class TestReadThrough:
    def test_miss_fetches_and_caches(self, clock) -> None:
        record = {"email": "a@example.com", "userId": "u1"}
        directory = FakeDirectory({"a@example.com": LookupResult.fetched(record)})
        lookup = _lookup(clock, directory)

        first = asyncio.run(lookup.by_email("a@example.com"))
        second = asyncio.run(lookup.by_email("a@example.com"))

        assert first.outcome is LookupOutcome.FETCHED
        assert second.outcome is LookupOutcome.HIT
        assert second.record == record
        assert directory.calls == [("email", "a@example.com")]

    def test_user_id_uses_its_own_key_space(self, clock) -> None:
        record = {"userId": "u1"}
        directory = FakeDirectory({"u1": LookupResult.fetched(record)})
        lookup = _lookup(clock, directory)

        result = asyncio.run(lookup.by_user_id("u1"))

        assert result.outcome is LookupOutcome.FETCHED
        assert lookup.caches.by_user_id.has("u1")
        assert not lookup.caches.by_email.has("u1")

    def test_cached_value_is_a_copy(self, clock) -> None:
        record = {"userId": "u1", "dataFields": {"plan": "free"}}
        directory = FakeDirectory({"u1": LookupResult.fetched(record)})
        lookup = _lookup(clock, directory)

        result = asyncio.run(lookup.by_user_id("u1"))
        result.record["dataFields"]["plan"] = "pro"

        assert lookup.caches.by_user_id.get("u1") == {
            "userId": "u1",
            "dataFields": {"plan": "free"},
        }

    def test_hit_record_is_a_copy(self, clock) -> None:
        record = {"userId": "u1", "dataFields": {"plan": "free"}}
        directory = FakeDirectory({"u1": LookupResult.fetched(record)})
        lookup = _lookup(clock, directory)

        asyncio.run(lookup.by_user_id("u1"))
        hit = asyncio.run(lookup.by_user_id("u1"))
        assert hit.outcome is LookupOutcome.HIT
        hit.record["dataFields"]["plan"] = "pro"

        again = asyncio.run(lookup.by_user_id("u1"))
        assert again.outcome is LookupOutcome.HIT
        assert again.record == {"userId": "u1", "dataFields": {"plan": "free"}}
        assert directory.calls == [("user_id", "u1")]

    def test_expired_entry_triggers_refetch(self, clock) -> None:
        directory = FakeDirectory({"a@example.com": LookupResult.fetched({"userId": "u1"})})
        lookup = _lookup(clock, directory, max_entries=10, ttl_seconds=0.1)

        asyncio.run(lookup.by_email("a@example.com"))
        clock.advance(0.15)
        assert not lookup.caches.by_email.has("a@example.com")

        result = asyncio.run(lookup.by_email("a@example.com"))
        assert result.outcome is LookupOutcome.FETCHED
        assert len(directory.calls) == 2


# ---------------------------------------------------------------------------
# No negative caching
# ---------------------------------------------------------------------------


class TestNoNegativeCaching:
    def test_absent_is_not_cached(self, clock) -> None:
        directory = FakeDirectory()
        lookup = _lookup(clock, directory)

        first = asyncio.run(lookup.by_user_id("x"))
        assert first.outcome is LookupOutcome.ABSENT
        assert first.record is None
        assert not lookup.caches.by_user_id.has("x")

        asyncio.run(lookup.by_user_id("x"))
        assert directory.calls == [("user_id", "x"), ("user_id", "x")]

    def test_failed_is_not_cached(self, clock) -> None:
        directory = FakeDirectory({"a@example.com": LookupResult.failed()})
        lookup = _lookup(clock, directory)

        result = asyncio.run(lookup.by_email("a@example.com"))
        assert result.outcome is LookupOutcome.FAILED
        assert not lookup.caches.by_email.has("a@example.com")

        directory.results["a@example.com"] = LookupResult.fetched({"userId": "u1"})
        retry = asyncio.run(lookup.by_email("a@example.com"))
        assert retry.outcome is LookupOutcome.FETCHED
        assert len(directory.calls) == 2

    def test_fetched_empty_record_is_not_cached(self, clock) -> None:
        directory = FakeDirectory({"u1": LookupResult.fetched({})})
        lookup = _lookup(clock, directory)

        asyncio.run(lookup.by_user_id("u1"))
        assert not lookup.caches.by_user_id.has("u1")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize("email", ["", "not-an-email", "a@b", "@example.com"])
    def test_invalid_email_makes_no_call(self, clock, email, caplog) -> None:
        directory = FakeDirectory()
        lookup = _lookup(clock, directory)

        with caplog.at_level(logging.WARNING, logger="iterableapi.lookup"):
            result = asyncio.run(lookup.by_email(email))

        assert result.outcome is LookupOutcome.INVALID
        assert result.record is None
        assert directory.calls == []
        assert len(lookup.caches.by_email) == 0

    def test_empty_user_id_makes_no_call(self, clock) -> None:
        directory = FakeDirectory()
        result = asyncio.run(_lookup(clock, directory).by_user_id(""))
        assert result.outcome is LookupOutcome.INVALID
        assert directory.calls == []

    @pytest.mark.parametrize("key", [None, 123, {"email": "a@example.com"}])
    def test_non_string_key_raises(self, clock, key) -> None:
        lookup = _lookup(clock, FakeDirectory())
        with pytest.raises(InvalidUsageError):
            asyncio.run(lookup.by_email(key))
        with pytest.raises(InvalidUsageError):
            asyncio.run(lookup.by_user_id(key))


class TestConcurrency:
    def test_concurrent_misses_are_not_coalesced(self, clock) -> None:
        class SlowDirectory(FakeDirectory):
            async def fetch_by_email(self, email: str) -> LookupResult:
                result = await super().fetch_by_email(email)
                await asyncio.sleep(0)
                return result

        directory = SlowDirectory({"a@example.com": LookupResult.fetched({"userId": "u1"})})
        lookup = _lookup(clock, directory)

        async def both():
            return await asyncio.gather(
                lookup.by_email("a@example.com"), lookup.by_email("a@example.com")
            )

        results = asyncio.run(both())
        assert [r.outcome for r in results] == [LookupOutcome.FETCHED] * 2
        assert len(directory.calls) == 2
        assert lookup.caches.by_email.get("a@example.com") == {"userId": "u1"}
