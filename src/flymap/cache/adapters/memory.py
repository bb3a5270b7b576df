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
"""Built-in cache adapter implementations."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Any


class InMemoryCache:
    """In-memory cache with an optional capacity bound.

    Unbounded by default: reads are plain dict lookups and take no lock.
    With max_entries set, the least recently used entry is evicted once
    the bound is exceeded, and reads refresh recency under a lock.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._max_entries = max_entries if max_entries and max_entries > 0 else None
        self._store: OrderedDict[Hashable, Any] = OrderedDict()
        self._lock = threading.Lock()
        self._evictions = 0

    def get(self, key: Hashable) -> Any | None:
        """Get a value by key. Returns None if missing."""
        if self._max_entries is None:
            return self._store.get(key)
        with self._lock:
            value = self._store.get(key)
            if value is not None:
                self._store.move_to_end(key)
            return value

    def put(self, key: Hashable, value: Any) -> None:
        """Store a value, evicting the oldest entry when over capacity."""
        with self._lock:
            self._store[key] = value
            if self._max_entries is not None:
                self._store.move_to_end(key)
                while len(self._store) > self._max_entries:
                    self._store.popitem(last=False)
                    self._evictions += 1

    def evict(self, key: Hashable) -> bool:
        """Remove a key. Returns True if the key existed."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def exists(self, key: Hashable) -> bool:
        """Check if a key is present."""
        return key in self._store

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._store.clear()

    def get_stats(self) -> dict[str, Any]:
        """Size and capacity information for this cache."""
        return {
            "type": "memory",
            "size": len(self._store),
            "max_size": self._max_entries,
            "evictions": self._evictions,
        }

    def get_keys(self) -> list[Hashable]:
        """Snapshot of the stored keys."""
        with self._lock:
            return list(self._store.keys())
