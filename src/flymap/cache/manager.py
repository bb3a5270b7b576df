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
"""Cache manager owning every process-wide engine cache region."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from flymap.cache.adapters.memory import InMemoryCache
from flymap.cache.ports.outbound import CacheAdapter

logger = logging.getLogger("flymap.cache")

V = TypeVar("V")

TYPE_DESCRIPTORS = "type_descriptors"
AUDIT_FIELDS = "audit_fields"
CONSTRUCTORS = "constructors"
GETTERS = "getters"
SETTERS = "setters"
FIELD_PATHS = "field_paths"
PLANS = "plans"
FORMATTERS = "formatters"

REGIONS: tuple[str, ...] = (
    TYPE_DESCRIPTORS,
    AUDIT_FIELDS,
    CONSTRUCTORS,
    GETTERS,
    SETTERS,
    FIELD_PATHS,
    PLANS,
    FORMATTERS,
)


class MappingCacheManager:
    """Named cache regions with compute-if-absent semantics.

    Lookups go straight to the region adapter without locking. On a miss the
    value is computed outside any lock and published under the region lock;
    when two threads race on the same key, the first stored value wins and
    both callers receive it.

    Hit counters are bumped without the lock, so under concurrent load
    ``stats()`` reports approximate hit counts; entry counts and misses are
    exact.

    Args:
        adapter_factory: Builds the adapter for a region name. Defaults to
            an unbounded :class:`InMemoryCache`; inject a bounded or custom
            adapter to change capacity or eviction without touching the
            mapping algorithm.
    """

    def __init__(self, adapter_factory: Callable[[str], CacheAdapter] | None = None) -> None:
        factory = adapter_factory or (lambda _region: InMemoryCache())
        self._regions: dict[str, CacheAdapter] = {name: factory(name) for name in REGIONS}
        self._locks: dict[str, threading.Lock] = {name: threading.Lock() for name in REGIONS}
        self._hits: dict[str, int] = dict.fromkeys(REGIONS, 0)
        self._misses: dict[str, int] = dict.fromkeys(REGIONS, 0)

    @classmethod
    def bounded(cls, max_entries: int) -> MappingCacheManager:
        """Manager whose regions each hold at most *max_entries* (LRU)."""
        return cls(lambda _region: InMemoryCache(max_entries=max_entries))

    def region(self, name: str) -> CacheAdapter:
        """Return the adapter backing region *name*."""
        try:
            return self._regions[name]
        except KeyError:
            raise KeyError(f"Unknown cache region '{name}'. Known regions: {', '.join(REGIONS)}") from None

    def get(self, name: str, key: Hashable) -> Any | None:
        return self.region(name).get(key)

    def compute_if_absent(self, name: str, key: Hashable, factory: Callable[[], V]) -> V:
        """Return the cached value for *key*, computing and storing it once."""
        adapter = self.region(name)
        value = adapter.get(key)
        if value is not None:
            self._hits[name] += 1
            return value

        computed = factory()
        with self._locks[name]:
            self._misses[name] += 1
            existing = adapter.get(key)
            if existing is not None:
                return existing
            if computed is not None:
                adapter.put(key, computed)
        return computed

    def evict(self, name: str, predicate: Callable[[Hashable], bool]) -> int:
        """Evict every key of region *name* matching *predicate*."""
        adapter = self.region(name)
        removed = 0
        for key in adapter.get_keys():
            if predicate(key) and adapter.evict(key):
                removed += 1
        return removed

    def clear(self) -> None:
        """Clear every region and reset hit/miss counters."""
        for name, adapter in self._regions.items():
            adapter.clear()
            self._hits[name] = 0
            self._misses[name] = 0
        logger.debug("Cleared all mapping caches")

    def stats(self) -> dict[str, dict[str, Any]]:
        """Per-region entry counts plus hit/miss counters (hits are approximate under concurrency)."""
        result: dict[str, dict[str, Any]] = {}
        for name, adapter in self._regions.items():
            stats = dict(adapter.get_stats())
            stats["hits"] = self._hits[name]
            stats["misses"] = self._misses[name]
            result[name] = stats
        return result
