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
"""Mapping engine configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flymap.core.config import config_properties


@config_properties(prefix="flymap.mapper")
@dataclass
class MapperProperties:
    """Configuration for the mapping engine (flymap.mapper.*).

    Attributes:
        max_depth: Recursion cap for nested objects and collections when the
            property carries no ``Nested(max_depth=...)`` directive.
        search_depth: How many nesting levels the deep search explores.
        parallel_threshold: Batches larger than this fan out to a thread pool.
        max_workers: Thread pool size for parallel batches (1 disables).
        cache_max_entries: Per-region cache capacity, 0 for unbounded.
    """

    max_depth: int = 15
    search_depth: int = 3
    parallel_threshold: int = 100
    max_workers: int = 4
    cache_max_entries: int = 0
