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
"""Outcome of a tolerant batch conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from flymap.kernel.types import FieldError

T = TypeVar("T")


@dataclass
class BatchResult(Generic[T]):
    """Converted elements plus one :class:`FieldError` per skipped element.

    ``mapped`` keeps input order. Each failure's ``field`` is the element
    index in brackets, e.g. ``"[3]"``.
    """

    mapped: list[T] = field(default_factory=list)
    failures: list[FieldError] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.failures)

    @property
    def total_processed(self) -> int:
        return len(self.mapped) + len(self.failures)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def reasons(self) -> list[str]:
        return [f"{f.field}: {f.message}" for f in self.failures]
