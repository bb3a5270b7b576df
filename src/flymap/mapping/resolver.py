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
"""Field path resolution: where in the source does a target property come from.

Strategies are tried in order and the first match wins:

1. Explicit dotted path from the property directive (``"address.city"``).
2. Direct match on the property name (or its directive override).
3. Flattened decomposition: ``addressCity`` / ``address_city`` split into a
   structured prefix property and a suffix resolved inside it.
4. Deep search: breadth-first over structured properties for an exact name.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from flymap.cache.manager import FIELD_PATHS, MappingCacheManager
from flymap.mapping.descriptor import PropertyDescriptor, TypeDescriptorCache
from flymap.mapping.directives import FieldDirective, MappingDirection
from flymap.mapping.typeinfo import is_structured

logger = logging.getLogger(__name__)

EXPLICIT = "explicit"
DIRECT = "direct"
FLATTENED = "flattened"
DEEP = "deep"

_NOT_FOUND = object()
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class FieldPath:
    """Resolved chain of source property names ending at ``property``."""

    segments: tuple[str, ...]
    property: PropertyDescriptor
    strategy: str = DIRECT

    @property
    def nested(self) -> bool:
        return len(self.segments) > 1

    @property
    def dotted(self) -> str:
        return ".".join(self.segments)

    def __str__(self) -> str:
        return self.dotted


def to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def split_points(name: str) -> Iterator[tuple[str, str]]:
    """Yield ``(prefix, suffix)`` at every camel-case hump and underscore."""
    for i in range(1, len(name)):
        ch = name[i]
        if ch.isupper():
            yield name[:i], ch.lower() + name[i + 1 :]
        elif ch == "_" and 0 < i < len(name) - 1:
            yield name[:i], name[i + 1 :]


def _candidates(name: str) -> list[str]:
    snake = to_snake(name)
    return [name] if snake == name else [name, snake]


class FieldPathResolver:
    """Resolves target property names to source :class:`FieldPath` objects.

    Every outcome, including a miss, is cached per
    ``(source type, requested name, direction)``.
    """

    def __init__(self, descriptors: TypeDescriptorCache, caches: MappingCacheManager, search_depth: int = 3) -> None:
        self._descriptors = descriptors
        self._caches = caches
        self._search_depth = search_depth

    def resolve(
        self,
        source_type: type,
        target_name: str,
        directive: FieldDirective | None = None,
        direction: MappingDirection = MappingDirection.GENERIC,
    ) -> FieldPath | None:
        requested = directive.source if directive is not None and directive.source else target_name
        found = self._caches.compute_if_absent(
            FIELD_PATHS,
            (source_type, requested, direction),
            lambda: self._search(source_type, requested) or _NOT_FOUND,
        )
        if found is _NOT_FOUND:
            return None
        return found

    def _search(self, source_type: type, name: str) -> FieldPath | None:
        if "." in name:
            return self._explicit(source_type, name.split("."))
        path = self._direct(source_type, name)
        if path is None:
            path = self._flattened(source_type, name, 0)
        if path is None:
            path = self._deep(source_type, name)
        if path is None:
            logger.debug("No source path for '%s' on %s", name, source_type.__name__)
        else:
            logger.debug("Resolved '%s' on %s as %s (%s)", name, source_type.__name__, path, path.strategy)
        return path

    def _explicit(self, source_type: type, segments: list[str]) -> FieldPath | None:
        current: Any = source_type
        prop: PropertyDescriptor | None = None
        for i, segment in enumerate(segments):
            if i > 0 and not is_structured(current):
                return None
            prop = self._descriptors.describe(current).find(segment)
            if prop is None:
                return None
            current = prop.declared_type
        assert prop is not None
        return FieldPath(tuple(segments), prop, EXPLICIT)

    def _direct(self, source_type: type, name: str) -> FieldPath | None:
        descriptor = self._descriptors.describe(source_type)
        for candidate in _candidates(name):
            prop = descriptor.find(candidate)
            if prop is not None:
                return FieldPath((candidate,), prop, DIRECT)
        return None

    def _flattened(self, source_type: type, name: str, depth: int) -> FieldPath | None:
        if depth >= self._search_depth:
            return None
        descriptor = self._descriptors.describe(source_type)
        for prefix, suffix in split_points(name):
            for prefix_name in _candidates(prefix):
                owner = descriptor.find(prefix_name)
                if owner is None or not owner.is_structured:
                    continue
                inner_type = owner.declared_type
                inner = (
                    self._direct(inner_type, suffix)
                    or self._flattened(inner_type, suffix, depth + 1)
                    or self._deep(inner_type, suffix)
                )
                if inner is not None:
                    return FieldPath((prefix_name, *inner.segments), inner.property, FLATTENED)
        return None

    def _deep(self, source_type: type, name: str) -> FieldPath | None:
        visited: set[type] = {source_type}
        queue: deque[tuple[type, tuple[str, ...], int]] = deque([(source_type, (), 0)])
        while queue:
            current, path, depth = queue.popleft()
            if depth >= self._search_depth:
                continue
            for prop in self._descriptors.describe(current).properties:
                if not prop.is_structured or prop.declared_type in visited:
                    continue
                nested_type = prop.declared_type
                match = self._descriptors.describe(nested_type).find(name)
                if match is not None:
                    return FieldPath((*path, prop.name, name), match, DEEP)
                visited.add(nested_type)
                queue.append((nested_type, (*path, prop.name), depth + 1))
        return None
