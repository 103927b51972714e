"""Tests for ResultCache."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from aumos_rbac.cache.result_cache import ResultCache
from aumos_rbac.clock import ManualClock


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.fixture()
def cache(clock: ManualClock) -> ResultCache:
    return ResultCache(ttl_seconds=60, clock=clock)


class TestResultCacheBasics:
    def test_get_missing_returns_none(self, cache: ResultCache) -> None:
        assert cache.get("missing") is None

    def test_set_then_get(self, cache: ResultCache) -> None:
        cache.set("k", {"granted": True})
        assert cache.get("k") == {"granted": True}

    def test_set_overwrites(self, cache: ResultCache) -> None:
        cache.set("k", 1)
        cache.set("k", 2)
        assert cache.get("k") == 2
        assert len(cache) == 1

    def test_delete(self, cache: ResultCache) -> None:
        cache.set("k", 1)
        cache.delete("k")
        assert cache.get("k") is None

    def test_delete_missing_is_noop(self, cache: ResultCache) -> None:
        cache.delete("missing")
        assert len(cache) == 0

    def test_clear(self, cache: ResultCache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_contains(self, cache: ResultCache) -> None:
        cache.set("k", 1)
        assert "k" in cache
        assert "other" not in cache

    def test_non_positive_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultCache(ttl_seconds=0)

    def test_ttl_seconds_property(self, cache: ResultCache) -> None:
        assert cache.ttl_seconds == 60


class TestResultCacheExpiry:
    def test_entry_alive_until_ttl(self, cache: ResultCache, clock: ManualClock) -> None:
        cache.set("k", "v")
        clock.advance(60)
        assert cache.get("k") == "v"

    def test_entry_gone_after_ttl(self, cache: ResultCache, clock: ManualClock) -> None:
        cache.set("k", "v")
        clock.advance(61)
        assert cache.get("k") is None

    def test_expired_entry_evicted_on_read(self, cache: ResultCache, clock: ManualClock) -> None:
        cache.set("k", "v")
        clock.advance(61)
        assert len(cache) == 1
        cache.get("k")
        assert len(cache) == 0

    def test_set_resets_expiry(self, cache: ResultCache, clock: ManualClock) -> None:
        cache.set("k", "v1")
        clock.advance(50)
        cache.set("k", "v2")
        clock.advance(50)
        assert cache.get("k") == "v2"

    def test_purge_expired(self, cache: ResultCache, clock: ManualClock) -> None:
        cache.set("old", 1)
        clock.advance(30)
        cache.set("new", 2)
        clock.advance(31)
        assert cache.purge_expired() == 1
        assert cache.get("new") == 2
        assert len(cache) == 1


class TestResultCachePrefixEviction:
    def test_removes_matching_keys_only(self, cache: ResultCache) -> None:
        cache.set("permission:u1:read:any", 1)
        cache.set("permission:u1:delete:doc", 2)
        cache.set("permission:u2:read:any", 3)
        cache.set("user-roles:u1", 4)

        removed = cache.delete_by_prefix("permission:u1:")

        assert removed == 2
        assert cache.get("permission:u2:read:any") == 3
        assert cache.get("user-roles:u1") == 4

    def test_no_match_returns_zero(self, cache: ResultCache) -> None:
        cache.set("a", 1)
        assert cache.delete_by_prefix("zzz") == 0
        assert len(cache) == 1

    def test_empty_prefix_removes_everything(self, cache: ResultCache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.delete_by_prefix("") == 2
