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
"""Recursive mapping of nested objects and collections.

Recursion is bounded by a depth cap and guarded against reference cycles:
each object being mapped contributes an ``(id(source), target type)`` key to
the per-call :class:`MappingContext`, and a key seen again on the same
branch truncates that branch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from flymap.mapping.descriptor import PropertyDescriptor
from flymap.mapping.directives import NullStrategy
from flymap.mapping.typeinfo import collection_kind, is_structured, item_type, type_name

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 15

_AFFIXES = ("Request", "Response", "Dto", "DTO", "Entity")

# Returned by map_nested when the target property must be left untouched.
SKIP = object()


@dataclass
class MappingContext:
    """Per-call recursion state. Never shared across calls or threads."""

    max_depth: int = DEFAULT_MAX_DEPTH
    update: bool = False
    depth: int = 0
    visited: set[tuple[int, type]] = field(default_factory=set)

    @classmethod
    def root(
        cls,
        source: Any,
        target_type: type,
        max_depth: int = DEFAULT_MAX_DEPTH,
        update: bool = False,
    ) -> MappingContext:
        """Context for a top-level call, with the root object already on the stack."""
        context = cls(max_depth=max_depth, update=update)
        context.visited.add((id(source), target_type))
        return context

    @contextmanager
    def descend(self, source: Any, target_type: type) -> Iterator[bool]:
        """Enter one nesting level; yields ``False`` when *source* closes a cycle."""
        key = (id(source), target_type)
        if key in self.visited:
            yield False
            return
        self.visited.add(key)
        self.depth += 1
        try:
            yield True
        finally:
            self.depth -= 1
            self.visited.discard(key)


def base_name(cls: type) -> str:
    name = cls.__name__
    for affix in _AFFIXES:
        name = name.removesuffix(affix)
    return name


def is_compatible(source_type: Any, target_type: Any) -> bool:
    """Assignable, or named alike once Request/Response/Dto/Entity are stripped."""
    if not isinstance(source_type, type) or not isinstance(target_type, type):
        return False
    if issubclass(source_type, target_type):
        return True
    source_base, target_base = base_name(source_type), base_name(target_type)
    if not source_base or not target_base:
        return False
    return (
        source_base == target_base
        or source_base.startswith(target_base)
        or target_base.startswith(source_base)
        or source_base.endswith(target_base)
        or target_base.endswith(source_base)
    )


class NestedMappingOrchestrator:
    """Maps structured and collection property values recursively.

    Args:
        map_object: Callback mapping one source object onto a new instance of
            a target type within the given context.
    """

    def __init__(self, map_object: Callable[[Any, type, MappingContext], Any]) -> None:
        self._map_object = map_object

    def requires_nested(self, source_type: Any, target_type: Any, nested: Any = None) -> bool:
        """Whether values of *source_type* need recursive mapping into *target_type*."""
        if nested is not None:
            return True
        if collection_kind(target_type) is not None:
            target_item = item_type(target_type)
            if not is_structured(target_item):
                return False
            source_item = item_type(source_type) if collection_kind(source_type) is not None else None
            return source_item != target_item
        if not is_structured(target_type) or source_type == target_type:
            return False
        if is_structured(source_type) and not is_compatible(source_type, target_type):
            logger.debug("Mapping unrelated types %s -> %s", type_name(source_type), type_name(target_type))
        return True

    def map_nested(self, value: Any, target_property: PropertyDescriptor, context: MappingContext) -> Any:
        """Map *value* for *target_property*; returns :data:`SKIP` to leave it unset."""
        nested = target_property.nested
        declared = target_property.declared_type
        kind = collection_kind(declared)

        if value is None:
            return self._null_value(nested, kind)

        max_depth = nested.max_depth if nested is not None and nested.max_depth is not None else context.max_depth
        if context.depth >= max_depth:
            logger.debug("Max depth %d reached mapping '%s'", max_depth, target_property.name)
            return self._null_value(nested, kind)

        explicit = nested.target_type if nested is not None else None
        if kind is not None or isinstance(value, (list, tuple, set, frozenset)):
            element = explicit or (item_type(declared) if kind is not None else None)
            return self._map_collection(value, element, kind or type(value), context)
        return self._map_single(value, explicit or declared, context)

    def _map_single(self, value: Any, target_type: Any, context: MappingContext) -> Any:
        if not is_structured(target_type) or isinstance(value, target_type):
            return value
        if not is_structured(type(value)):
            return value
        with context.descend(value, target_type) as entered:
            if not entered:
                logger.debug("Circular reference %s -> %s truncated", type(value).__name__, target_type.__name__)
                return SKIP
            return self._map_object(value, target_type, context)

    def _map_collection(self, values: Any, element: Any, kind: type, context: MappingContext) -> Any:
        if not is_structured(element):
            return self.rebucket(list(values), kind)
        mapped: list[Any] = []
        for item in values:
            if item is None or isinstance(item, element):
                mapped.append(item)
                continue
            result = self._map_single(item, element, context)
            if result is not SKIP:
                mapped.append(result)
        return self.rebucket(mapped, kind)

    @staticmethod
    def rebucket(items: list[Any], kind: type) -> Any:
        """Place *items* into a container of *kind*, falling back to a list."""
        if kind in (set, frozenset):
            try:
                return kind(items)
            except TypeError:
                logger.debug("Unhashable elements, keeping %d items as a list", len(items))
                return items
        if kind is tuple:
            return tuple(items)
        return items

    @staticmethod
    def _null_value(nested: Any, kind: type | None) -> Any:
        strategy = nested.null_strategy if nested is not None else NullStrategy.INCLUDE_NULL
        if strategy is NullStrategy.EXCLUDE_NULL:
            return SKIP
        if strategy is NullStrategy.EMPTY_COLLECTION and kind is not None:
            return kind()
        return None
