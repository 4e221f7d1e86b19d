"""
Tests for the tool result cache.
"""

import threading

import pytest

from trip_planner.tools.cache import MISS, ToolCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ToolCache(ttl_seconds=3600, clock=clock)


class TestCacheKeys:
    """Key normalisation."""

    def test_argument_order_is_irrelevant(self):
        a = ToolCache.make_key("getHotels", {"city": "Jaipur", "adults": 2, "checkin": "2025-12-01"})
        b = ToolCache.make_key("getHotels", {"checkin": "2025-12-01", "adults": 2, "city": "Jaipur"})
        assert a == b

    def test_nested_mappings_are_normalised(self):
        a = ToolCache.make_key("t", {"filters": {"b": 1, "a": 2}})
        b = ToolCache.make_key("t", {"filters": {"a": 2, "b": 1}})
        assert a == b

    def test_tool_name_is_part_of_key(self):
        assert ToolCache.make_key("getHotels", {"city": "Goa"}) != ToolCache.make_key("getRestaurants", {"city": "Goa"})

    def test_different_values_differ(self):
        assert ToolCache.make_key("t", {"city": "Goa"}) != ToolCache.make_key("t", {"city": "Agra"})


class TestCacheExpiry:
    """TTL behaviour with an injected clock."""

    def test_miss_on_empty(self, cache):
        assert cache.get("nope") is MISS
        assert not MISS

    def test_hit_within_ttl(self, cache, clock):
        cache.set("k", [{"name": "Amber Fort"}])
        clock.advance(3599)
        assert cache.get("k") == [{"name": "Amber Fort"}]

    def test_expired_at_ttl(self, cache, clock):
        cache.set("k", "v")
        clock.advance(3600)
        assert cache.get("k") is MISS
        assert len(cache) == 0

    def test_falsy_values_are_cached(self, cache):
        cache.set("empty", [])
        assert cache.get("empty") == []
        assert cache.get("empty") is not MISS

    def test_set_refreshes_expiry(self, cache, clock):
        cache.set("k", 1)
        clock.advance(3000)
        cache.set("k", 2)
        clock.advance(3000)
        assert cache.get("k") == 2

    def test_expired_entries_do_not_accumulate(self, clock):
        cache = ToolCache(ttl_seconds=1, clock=clock)

        for i in range(1000):
            cache.set(f"k{i}", i)
            clock.advance(2)

        assert len(cache) == 0
        assert len(cache._entries) <= 1

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_ttl_must_be_positive(self, ttl):
        with pytest.raises(ValueError):
            ToolCache(ttl_seconds=ttl)


class TestCacheCapacity:
    """Size bound."""

    def test_least_recently_used_entry_evicted_at_capacity(self, clock):
        cache = ToolCache(ttl_seconds=3600, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")

        cache.set("c", 3)

        assert len(cache) == 2
        assert cache.get("b") is MISS
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValueError):
            ToolCache(max_entries=0)


class TestCacheThreadSafety:
    """Concurrent writers do not lose entries."""

    def test_concurrent_sets(self):
        cache = ToolCache(max_entries=8 * 200)

        def writer(n):
            for i in range(200):
                cache.set(f"{n}:{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 8 * 200
