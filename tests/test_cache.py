"""
Tests for BoundedCache.
"""

import numpy as np
import pytest

from talentrank.core.cache import DEFAULT_ENTRY_SIZE, BoundedCache, estimate_size


def _cache(clock, **kwargs):
    kwargs.setdefault("ttl_seconds", 60)
    kwargs.setdefault("sizer", len)
    return BoundedCache(clock=clock, **kwargs)


class TestBasicOperations:
    def test_set_then_get_within_ttl(self, clock):
        cache = _cache(clock)
        assert cache.set("k", "value") is True
        clock.advance(59)
        assert cache.get("k") == "value"

    def test_get_after_ttl_is_absent(self, clock):
        cache = _cache(clock)
        cache.set("k", "value")
        clock.advance(61)
        assert cache.get("k") is None
        assert cache.has("k") is False
        assert cache.stats()["expirations"] == 1

    def test_missing_key(self, clock):
        cache = _cache(clock)
        assert cache.get("nope") is None
        assert cache.stats()["misses"] == 1

    def test_delete_and_clear(self, clock):
        cache = _cache(clock)
        cache.set("a", "1")
        cache.set("b", "2")
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert cache.size == 0
        assert cache.size_bytes == 0

    def test_overwrite_updates_size(self, clock):
        cache = _cache(clock)
        cache.set("k", "abc")
        cache.set("k", "abcdef")
        assert cache.size == 1
        assert cache.size_bytes == 6
        assert cache.get("k") == "abcdef"

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            BoundedCache(max_entries=0)


class TestEviction:
    def test_evicts_least_recently_accessed_entry(self, clock):
        cache = _cache(clock, max_entries=3)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.set("c", "3")

        # refresh "a" so "b" becomes the least recently accessed
        clock.advance(1)
        assert cache.get("a") == "1"

        cache.set("d", "4")

        assert cache.has("b") is False
        assert cache.has("a") and cache.has("c") and cache.has("d")
        assert cache.stats()["evictions"] == 1

    def test_byte_budget_evicts_until_it_fits(self, clock):
        cache = _cache(clock, max_entries=100, max_size_bytes=10)
        cache.set("k1", "aaaa")
        cache.set("k2", "bbbb")
        cache.get("k1")

        cache.set("k3", "cccc")

        assert cache.has("k2") is False
        assert cache.get("k1") == "aaaa"
        assert cache.get("k3") == "cccc"
        assert cache.size_bytes == 8

    def test_size_never_exceeds_budget(self, clock):
        cache = _cache(clock, max_entries=1000, max_size_bytes=50)
        for i in range(200):
            cache.set(f"k{i}", "x" * (i % 7 + 1))
            assert cache.size_bytes <= 50

    def test_value_larger_than_budget_is_refused(self, clock):
        cache = _cache(clock, max_size_bytes=10)
        cache.set("small", "abc")
        assert cache.set("huge", "x" * 11) is False
        assert cache.get("small") == "abc"
        assert cache.has("huge") is False

    def test_refused_overwrite_drops_previous_value(self, clock):
        cache = _cache(clock, max_size_bytes=100)
        cache.set("k", "old")

        assert cache.set("k", "x" * 500) is False
        assert cache.get("k") is None
        assert cache.size_bytes == 0


class TestMaintenance:
    def test_cleanup_expired(self, clock):
        cache = _cache(clock)
        cache.set("old", "1")
        clock.advance(30)
        cache.set("new", "2")
        clock.advance(31)

        assert cache.cleanup_expired() == 1
        assert cache.size == 1
        assert cache.get("new") == "2"

    def test_stats(self, clock):
        cache = _cache(clock, name="embeddings")
        cache.set("a", "1")
        cache.get("a")
        cache.get("a")
        cache.get("missing")
        clock.advance(10)

        stats = cache.stats()
        assert stats["name"] == "embeddings"
        assert stats["entries"] == 1
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)
        assert stats["total_accesses"] == 3
        assert stats["oldest_entry_age"] == pytest.approx(10)


class TestEstimateSize:
    def test_numpy_values_use_nbytes(self):
        assert estimate_size(np.zeros(8, dtype=np.float32)) == 32

    def test_json_values(self):
        assert estimate_size({"a": 1}) == len('{"a": 1}')

    def test_unserializable_values_get_default(self):
        assert estimate_size(object()) == DEFAULT_ENTRY_SIZE
