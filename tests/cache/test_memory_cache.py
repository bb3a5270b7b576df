# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for InMemoryCache: the default region adapter."""

from flymap.cache.adapters.memory import InMemoryCache
from flymap.cache.ports.outbound import CacheAdapter


class TestInMemoryCacheBasics:
    def test_implements_cache_adapter(self):
        assert isinstance(InMemoryCache(), CacheAdapter)

    def test_put_and_get(self):
        cache = InMemoryCache()
        cache.put(("User", "name"), "accessor")
        assert cache.get(("User", "name")) == "accessor"
        assert cache.exists(("User", "name"))

    def test_missing_key_returns_none(self):
        assert InMemoryCache().get("missing") is None

    def test_evict(self):
        cache = InMemoryCache()
        cache.put("a", 1)
        assert cache.evict("a") is True
        assert cache.evict("a") is False
        assert not cache.exists("a")

    def test_clear(self):
        cache = InMemoryCache()
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert cache.get_keys() == []


class TestInMemoryCacheStats:
    def test_get_stats_empty(self):
        stats = InMemoryCache().get_stats()
        assert stats == {"type": "memory", "size": 0, "max_size": None, "evictions": 0}

    def test_get_keys(self):
        cache = InMemoryCache()
        cache.put("plan:1", "p1")
        cache.put("plan:2", "p2")
        assert sorted(cache.get_keys()) == ["plan:1", "plan:2"]


class TestBoundedInMemoryCache:
    def test_least_recently_used_is_evicted(self):
        cache = InMemoryCache(max_entries=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        stats = cache.get_stats()
        assert stats["size"] == 2
        assert stats["max_size"] == 2
        assert stats["evictions"] == 1

    def test_zero_means_unbounded(self):
        cache = InMemoryCache(max_entries=0)
        for i in range(50):
            cache.put(i, i)
        assert cache.get_stats()["size"] == 50
