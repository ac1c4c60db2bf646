"""TTL content cache."""

import pytest

from ioc.components.feedback_loop.cache import ContentCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestContentCache:
    def test_key_is_stable_across_dict_ordering(self):
        assert ContentCache.key_for({"a": 1, "b": [1, 2]}) == ContentCache.key_for({"b": [1, 2], "a": 1})
        assert ContentCache.key_for({"a": 1}) != ContentCache.key_for({"a": 2})

    def test_hit_and_miss_counters(self):
        cache = ContentCache()
        cache.set("k", "v")
        assert cache.get("k") == "v"
        assert cache.get("missing") is None
        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(0.5)

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = ContentCache(ttl_seconds=10, clock=clock)
        cache.set("k", "v")
        clock.now = 10
        assert cache.get("k") == "v"
        clock.now = 10.5
        assert cache.get("k") is None
        assert len(cache) == 0
        assert cache.stats()["evictions"] == 1

    def test_oldest_entry_evicted_at_capacity(self):
        cache = ContentCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        cache.set("c", 4)
        assert cache.get("b") is None
        assert cache.get("a") == 3
        assert cache.get("c") == 4

    def test_clear(self):
        cache = ContentCache()
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ValueError):
            ContentCache(**kwargs)

    def test_from_settings_reads_environment(self):
        clock = FakeClock()
        cache = ContentCache.from_settings(clock=clock)
        assert cache.ttl_seconds == 120
        assert cache.max_entries == 1024
        cache.set("k", "v")
        clock.now = 121
        assert cache.get("k") is None

    def test_from_settings_applies_overrides(self):
        cache = ContentCache.from_settings(max_entries=3)
        assert cache.max_entries == 3
        assert cache.ttl_seconds == 120
