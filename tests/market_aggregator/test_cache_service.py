"""
Unit tests for TTLCache

Expiry on read, insertion-order eviction and stats.
"""

import pytest

from src.market_aggregator.services.cache_service import TTLCache


# ============================================================================
# TEST FIXTURES
# ============================================================================

@pytest.fixture
def cache(fake_clock):
    return TTLCache(ttl_seconds=300, max_entries=3, clock=fake_clock)


# ============================================================================
# EXPIRY
# ============================================================================

class TestExpiry:

    def test_fresh_entry_is_returned(self, cache):
        cache.set("news:AAPL", ["a"])
        assert cache.get("news:AAPL") == ["a"]

    def test_entry_at_exact_ttl_is_still_fresh(self, cache, fake_clock):
        cache.set("k", 1)
        fake_clock.advance(300)
        assert cache.get("k") == 1

    def test_expired_entry_is_a_miss_and_evicted(self, cache, fake_clock):
        cache.set("k", 1)
        fake_clock.advance(301)

        assert cache.get("k") is None
        assert len(cache) == 0
        assert cache.get_stats().misses == 1

    def test_contains_respects_expiry(self, cache, fake_clock):
        cache.set("k", 1)
        assert "k" in cache
        fake_clock.advance(301)
        assert "k" not in cache

    def test_absent_key_is_a_miss(self, cache):
        assert cache.get("missing") is None
        assert cache.get_stats().misses == 1


# ============================================================================
# CAPACITY
# ============================================================================

class TestCapacity:

    def test_oldest_inserted_entry_is_evicted(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key)

        # reading "a" does not protect it: eviction is by insertion, not use
        assert cache.get("a") == "a"
        cache.set("d", "d")

        assert cache.get("a") is None
        assert cache.get_stats().keys == ["b", "c", "d"]
        assert cache.get_stats().evictions == 1

    def test_size_never_exceeds_capacity(self, cache):
        for i in range(10):
            cache.set(f"k{i}", i)
        assert len(cache) == 3

    def test_overwrite_counts_as_fresh_insertion(self, cache, fake_clock):
        cache.set("a", 1)
        cache.set("b", 2)
        fake_clock.advance(200)
        cache.set("a", 10)
        cache.set("c", 3)
        cache.set("d", 4)

        stats = cache.get_stats()
        # "a" moved behind "b", so "b" was the oldest when "d" arrived
        assert stats.keys == ["a", "c", "d"]

        # rewritten entry got a new timestamp
        fake_clock.advance(150)
        assert cache.get("a") == 10

    def test_overwrite_does_not_evict(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        cache.set("c", 30)

        assert len(cache) == 3
        assert cache.get_stats().evictions == 0

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError):
            TTLCache(max_entries=0)


# ============================================================================
# STATS / CLEAR
# ============================================================================

class TestStatsAndClear:

    def test_hits_and_misses_counted(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("b")

        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.capacity == 3
        assert stats.ttl_seconds == 300

    def test_clear_empties_and_resets_stats(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.clear()

        stats = cache.get_stats()
        assert stats.size == 0
        assert stats.hits == 0
        assert stats.keys == []

    def test_delete(self, cache):
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False
