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
"""Tests for MappingCacheManager: named regions with compute-if-absent."""

import threading

import pytest

from flymap.cache import REGIONS, InMemoryCache, MappingCacheManager
from flymap.cache.manager import FIELD_PATHS, PLANS


class TestRegions:
    def test_every_region_exists(self):
        manager = MappingCacheManager()
        assert set(manager.stats()) == set(REGIONS)

    def test_unknown_region_raises(self):
        manager = MappingCacheManager()
        with pytest.raises(KeyError, match="Unknown cache region"):
            manager.region("nope")

    def test_adapter_factory_is_used_per_region(self):
        created: list[str] = []

        def factory(name: str) -> InMemoryCache:
            created.append(name)
            return InMemoryCache(max_entries=5)

        manager = MappingCacheManager(adapter_factory=factory)
        assert sorted(created) == sorted(REGIONS)
        assert manager.stats()[PLANS]["max_size"] == 5

    def test_bounded(self):
        manager = MappingCacheManager.bounded(3)
        assert all(s["max_size"] == 3 for s in manager.stats().values())


class TestComputeIfAbsent:
    def test_computes_once(self):
        manager = MappingCacheManager()
        calls = []

        def factory():
            calls.append(1)
            return "plan"

        assert manager.compute_if_absent(PLANS, "k", factory) == "plan"
        assert manager.compute_if_absent(PLANS, "k", factory) == "plan"
        assert len(calls) == 1

        stats = manager.stats()[PLANS]
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1

    def test_none_is_not_stored(self):
        manager = MappingCacheManager()
        assert manager.compute_if_absent(FIELD_PATHS, "k", lambda: None) is None
        assert manager.get(FIELD_PATHS, "k") is None
        assert manager.stats()[FIELD_PATHS]["size"] == 0

    def test_racing_threads_converge_on_one_value(self):
        manager = MappingCacheManager()
        barrier = threading.Barrier(8)
        results: list[object] = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            value = manager.compute_if_absent(PLANS, "shared", object)
            with lock:
                results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(r is results[0] for r in results)
        assert manager.get(PLANS, "shared") is results[0]

    def test_counters_stay_bounded_under_contention(self):
        manager = MappingCacheManager()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for _ in range(50):
                manager.compute_if_absent(PLANS, "shared", object)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stats = manager.stats()[PLANS]
        assert stats["size"] == 1
        assert 1 <= stats["misses"] <= 8
        assert stats["hits"] + stats["misses"] <= 400


class TestEvictAndClear:
    def test_evict_by_predicate(self):
        manager = MappingCacheManager()
        for key in ("a1", "a2", "b1"):
            manager.compute_if_absent(PLANS, key, lambda: "v")
        removed = manager.evict(PLANS, lambda key: key.startswith("a"))
        assert removed == 2
        assert manager.get(PLANS, "b1") == "v"

    def test_clear_resets_entries_and_counters(self):
        manager = MappingCacheManager()
        manager.compute_if_absent(PLANS, "k", lambda: "v")
        manager.compute_if_absent(PLANS, "k", lambda: "v")
        manager.clear()
        stats = manager.stats()[PLANS]
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0
