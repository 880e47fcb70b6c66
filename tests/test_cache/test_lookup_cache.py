"""Tests for the per-key-space LRU + TTL lookup cache."""

from __future__ import annotations

import threading

import pytest

from iterableapi.cache import LookupCache, UserLookupCaches
from iterableapi.exceptions import ConfigError, InvalidUsageError
from iterableapi.models import CacheConfig


def _cache(clock, max_entries: int = 10, ttl_seconds: float = 300) -> LookupCache:
    return LookupCache("test", max_entries=max_entries, ttl_seconds=ttl_seconds, timer=clock)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    @pytest.mark.parametrize("max_entries", [0, -1, None, True])
    def test_rejects_bad_capacity(self, max_entries) -> None:
        with pytest.raises(ConfigError, match="max_entries"):
            LookupCache("bad", max_entries=max_entries, ttl_seconds=10)

    @pytest.mark.parametrize("ttl", [0, -5, None])
    def test_rejects_bad_ttl(self, ttl) -> None:
        with pytest.raises(ConfigError, match="ttl_seconds"):
            LookupCache("bad", max_entries=10, ttl_seconds=ttl)

    def test_from_config(self, clock) -> None:
        cache = LookupCache.from_config(
            "by_email", CacheConfig(max_entries=5, ttl_seconds=60), timer=clock
        )
        assert cache.stats() == {
            "name": "by_email",
            "size": 0,
            "max_entries": 5,
            "ttl_seconds": 60.0,
        }

    def test_default_limits(self) -> None:
        caches = UserLookupCaches.from_config()
        assert caches.by_email.stats()["max_entries"] == 1000
        assert caches.by_email.stats()["ttl_seconds"] == 300.0


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class TestKeys:
    @pytest.mark.parametrize("key", [None, 42, b"bytes", ["a"]])
    def test_non_string_key_raises(self, clock, key) -> None:
        cache = _cache(clock)
        with pytest.raises(InvalidUsageError):
            cache.set(key, {"a": 1})
        with pytest.raises(InvalidUsageError):
            cache.has(key)
        with pytest.raises(InvalidUsageError):
            cache.get(key)

    def test_empty_key_raises(self, clock) -> None:
        with pytest.raises(InvalidUsageError):
            _cache(clock).lookup("")


# ---------------------------------------------------------------------------
# Basic operations
# ---------------------------------------------------------------------------


class TestBasicOperations:
    def test_get_missing_returns_none(self, clock) -> None:
        cache = _cache(clock)
        assert cache.get("nobody") is None
        assert cache.has("nobody") is False

    def test_set_then_get(self, clock) -> None:
        cache = _cache(clock)
        cache.set("a@example.com", {"userId": "u1"})
        assert cache.has("a@example.com")
        assert cache.get("a@example.com") == {"userId": "u1"}

    def test_lookup_hit_and_miss(self, clock) -> None:
        cache = _cache(clock)
        cache.set("k", {"v": 1})
        assert cache.lookup("k") == (True, {"v": 1})
        assert cache.lookup("other") == (False, None)

    def test_idempotent_writes(self, clock) -> None:
        cache = _cache(clock)
        cache.set("k", {"v": 1})
        cache.set("k", {"v": 1})
        assert len(cache) == 1
        assert cache.get("k") == {"v": 1}

    def test_overwrite_replaces_value(self, clock) -> None:
        cache = _cache(clock)
        cache.set("k", {"v": 1})
        cache.set("k", {"v": 2})
        assert cache.get("k") == {"v": 2}
        assert len(cache) == 1


# ---------------------------------------------------------------------------
# Capacity and recency
# ---------------------------------------------------------------------------


class TestCapacity:
    def test_never_exceeds_max_entries(self, clock) -> None:
        cache = _cache(clock, max_entries=3)
        for i in range(20):
            cache.set(f"key{i}", {"i": i})
            assert len(cache) <= 3
        assert len(cache) == 3

    def test_inserting_past_capacity_evicts_oldest_untouched(self, clock) -> None:
        cache = _cache(clock, max_entries=3)
        for key in ("a", "b", "c", "d"):
            cache.set(key, {"k": key})
        assert not cache.has("a")
        assert all(cache.has(k) for k in ("b", "c", "d"))

    def test_get_promotes_entry(self, clock) -> None:
        cache = _cache(clock, max_entries=2, ttl_seconds=10_000)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get("a") == 1
        cache.set("c", 3)

        assert cache.has("a")
        assert cache.has("c")
        assert not cache.has("b")
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_has_does_not_promote(self, clock) -> None:
        cache = _cache(clock, max_entries=2, ttl_seconds=10_000)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.has("a")
        cache.set("c", 3)

        assert not cache.has("a")
        assert cache.has("b")

    def test_overwriting_at_capacity_does_not_evict(self, clock) -> None:
        cache = _cache(clock, max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        assert cache.has("a") and cache.has("b")


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_visible_just_before_ttl(self, clock) -> None:
        cache = _cache(clock, ttl_seconds=300)
        cache.set("k", {"v": 1})
        clock.advance(300 - 0.001)
        assert cache.has("k")
        assert cache.get("k") == {"v": 1}

    def test_invisible_just_after_ttl(self, clock) -> None:
        cache = _cache(clock, ttl_seconds=300)
        cache.set("k", {"v": 1})
        clock.advance(300 + 0.001)
        assert not cache.has("k")
        assert cache.get("k") is None
        assert cache.lookup("k") == (False, None)

    def test_expiry_independent_of_capacity(self, clock) -> None:
        cache = _cache(clock, max_entries=1000, ttl_seconds=0.1)
        cache.set("a", 1)
        clock.advance(0.15)
        assert not cache.has("a")

    def test_get_does_not_extend_ttl(self, clock) -> None:
        cache = _cache(clock, ttl_seconds=10)
        cache.set("k", 1)
        clock.advance(9)
        assert cache.get("k") == 1
        clock.advance(2)
        assert cache.get("k") is None

    def test_set_restamps_entry(self, clock) -> None:
        cache = _cache(clock, ttl_seconds=10)
        cache.set("k", 1)
        clock.advance(8)
        cache.set("k", 2)
        clock.advance(8)
        assert cache.get("k") == 2

    def test_len_counts_live_entries_only(self, clock) -> None:
        cache = _cache(clock, ttl_seconds=10)
        cache.set("old", 1)
        clock.advance(5)
        cache.set("new", 2)
        clock.advance(6)
        assert len(cache) == 1


# ---------------------------------------------------------------------------
# Key spaces
# ---------------------------------------------------------------------------


class TestUserLookupCaches:
    def test_key_spaces_are_isolated(self, clock) -> None:
        caches = UserLookupCaches.from_config(timer=clock)
        caches.by_email.set("a@b.com", {"email": "a@b.com"})
        assert not caches.by_user_id.has("a@b.com")

        caches.by_user_id.set("u-1", {"userId": "u-1"})
        assert not caches.by_email.has("u-1")

    def test_same_instance_rejected(self, clock) -> None:
        cache = _cache(clock)
        with pytest.raises(ConfigError):
            UserLookupCaches(cache, cache)

    def test_stats_keyed_by_name(self, clock) -> None:
        caches = UserLookupCaches.from_config(CacheConfig(max_entries=2), timer=clock)
        caches.by_email.set("a@b.com", {})
        stats = caches.stats()
        assert stats["by_email"]["size"] == 1
        assert stats["by_user_id"]["size"] == 0


class TestThreadSafety:
    def test_concurrent_sets_respect_capacity(self) -> None:
        cache = LookupCache("threads", max_entries=50, ttl_seconds=60)

        def worker(offset: int) -> None:
            for i in range(200):
                cache.set(f"{offset}-{i}", i)
                cache.get(f"{offset}-{i // 2}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
