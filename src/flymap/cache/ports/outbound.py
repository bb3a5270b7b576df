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
"""Cache adapter protocol."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheAdapter(Protocol):
    """Abstract cache interface for one engine cache region.

    All backends (in-memory, bounded, custom) must implement this protocol.
    get returns None for a missing key, so None is never stored.
    """

    def get(self, key: Hashable) -> Any | None: ...

    def put(self, key: Hashable, value: Any) -> None: ...

    def evict(self, key: Hashable) -> bool: ...

    def exists(self, key: Hashable) -> bool: ...

    def clear(self) -> None: ...

    def get_stats(self) -> dict[str, Any]: ...

    def get_keys(self) -> list[Hashable]: ...
