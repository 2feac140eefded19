"""Tests for shopagent.core.utils.cache."""

import threading

import pytest

from shopagent.core.utils.cache import ResponseCache, canonical_context, make_cache_key


class TestCacheKey:
    def test_deterministic(self):
        assert make_cache_key("list products", {"a": 1}) == make_cache_key("list products", {"a": 1})

    def test_key_order_irrelevant(self):
        k1 = make_cache_key("q", {"a": 1, "b": {"x": 1, "y": 2}})
        k2 = make_cache_key("q", {"b": {"y": 2, "x": 1}, "a": 1})
        assert k1 == k2

    def test_context_changes_key(self):
        assert make_cache_key("q", {"store": "ie"}) != make_cache_key("q", {"store": "uk"})

    def test_request_changes_key(self):
        assert make_cache_key("list products") != make_cache_key("list orders")

    def test_none_and_empty_context_match(self):
        assert make_cache_key("q", None) == make_cache_key("q", {})

    def test_namespace(self):
        key = make_cache_key("q", namespace="stripe")
        assert key.startswith("stripe:")
        assert key != make_cache_key("q", namespace="sanity")

    def test_opaque_values_are_stringified(self):
        class Opaque:
            def __str__(self):
                return "opaque"

        assert '"k":"opaque"' in canonical_context({"k": Opaque()})


class TestResponseCache:
    def test_round_trip(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("k", {"v": 1})
        assert cache.get("k") == {"v": 1}

    def test_missing_returns_default(self, clock):
        cache = ResponseCache(clock=clock)
        assert cache.get("nope") is None
        assert cache.get("nope", "fallback") == "fallback"

    def test_ttl_expiry(self, clock):
        cache = ResponseCache(ttl=300, clock=clock)
        cache.set("k", "v")
        clock.advance(300)
        assert cache.get("k") == "v"  # exactly at ttl is still live
        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0  # expired entry dropped on lookup

    def test_eviction_drops_oldest(self, clock):
        cache = ResponseCache(capacity=3, clock=clock)
        for i in range(4):
            cache.set(f"k{i}", i)
        assert len(cache) == 3
        assert cache.get("k0") is None
        assert cache.get("k3") == 3

    def test_overwrite_counts_as_fresh_insert(self, clock):
        cache = ResponseCache(capacity=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)
        assert cache.get("a") == 10
        assert cache.get("b") is None

    def test_contains(self, clock):
        cache = ResponseCache(ttl=10, clock=clock)
        cache.set("k", "v")
        assert "k" in cache
        clock.advance(11)
        assert "k" not in cache

    def test_hit_rate(self, clock):
        cache = ResponseCache(clock=clock)
        assert cache.hit_rate == 0.0
        cache.set("k", "v")
        cache.get("k")
        cache.get("missing")
        assert cache.hit_rate == 0.5

    def test_clear(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("k", "v")
        cache.clear()
        assert len(cache) == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ResponseCache(capacity=0)

    def test_concurrent_writers_respect_capacity(self):
        cache = ResponseCache(capacity=50)

        def writer(offset):
            for i in range(200):
                cache.set(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 50
