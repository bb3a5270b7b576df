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
"""Mapping plans: the precompiled per-property recipe for a pair of types.

A plan is compiled once per ``(source type, target type, direction, update)``
and reused for every conversion of that shape. Structural problems, such as a
target without a zero-argument constructor or a strict request property with
no counterpart, surface when the plan is compiled.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from flymap.cache.manager import PLANS, MappingCacheManager
from flymap.kernel.exceptions import ConstructionException, MappingException
from flymap.mapping.accessor import AccessorRegistry, PropertyAccessor, is_frozen, read
from flymap.mapping.descriptor import PropertyDescriptor, TypeDescriptor, TypeDescriptorCache
from flymap.mapping.directives import (
    DEFAULT_DIRECTIVE,
    FieldDirective,
    MappingDirection,
    request_options,
    response_options,
)
from flymap.mapping.nested import NestedMappingOrchestrator
from flymap.mapping.resolver import FieldPath, FieldPathResolver

logger = logging.getLogger(__name__)


@dataclass
class MappingConfig:
    """Programmatic overrides for one ``(source, target)`` type pair.

    Attributes:
        field_map: Maps source property names to target property names.
        transformers: Callables applied to values, keyed by target property name.
        exclude: Target properties to leave unmapped.
    """

    field_map: dict[str, str] = dataclasses.field(default_factory=dict)
    transformers: dict[str, Callable[[Any], Any]] = dataclasses.field(default_factory=dict)
    exclude: set[str] = dataclasses.field(default_factory=set)

    def source_for(self, target_name: str) -> str | None:
        for src, dst in self.field_map.items():
            if dst == target_name:
                return src
        return None


_EMPTY_CONFIG = MappingConfig()


@dataclass(frozen=True)
class PlanKey:
    source_type: type
    target_type: type
    direction: MappingDirection = MappingDirection.GENERIC
    update: bool = False


@dataclass(frozen=True)
class FieldMapping:
    """How one target property is filled."""

    target_property: PropertyDescriptor
    target_accessor: PropertyAccessor
    source_path: FieldPath | None = None
    source_accessors: tuple[PropertyAccessor, ...] = ()
    directive: FieldDirective = DEFAULT_DIRECTIVE
    needs_conversion: bool = False
    nested: bool = False
    transform: Callable[[Any], Any] | None = None

    @property
    def name(self) -> str:
        return self.target_property.name

    @property
    def source_property(self) -> PropertyDescriptor | None:
        return self.source_path.property if self.source_path is not None else None

    def read(self, source: Any) -> Any:
        """Walk the source path; ``None`` when unresolved or an intermediate is ``None``."""
        value = source
        for accessor in self.source_accessors:
            value = read(accessor, value)
            if value is None:
                return None
        return value if self.source_accessors else None


@dataclass(frozen=True)
class MappingPlan:
    key: PlanKey
    mappings: tuple[FieldMapping, ...]
    constructor: Callable[[], Any] | None = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.mappings)

    def new_target(self) -> Any:
        if self.constructor is None:
            raise ConstructionException(self.key.target_type, "update plans do not construct targets")
        return self.constructor()


class MappingPlanCompiler:
    """Compiles and caches :class:`MappingPlan` objects."""

    def __init__(
        self,
        descriptors: TypeDescriptorCache,
        resolver: FieldPathResolver,
        accessors: AccessorRegistry,
        orchestrator: NestedMappingOrchestrator,
        caches: MappingCacheManager,
        overrides: Mapping[tuple[type, type], MappingConfig] | None = None,
    ) -> None:
        self._descriptors = descriptors
        self._resolver = resolver
        self._accessors = accessors
        self._orchestrator = orchestrator
        self._caches = caches
        self._overrides = overrides if overrides is not None else {}

    def plan(
        self,
        source_type: type,
        target_type: type,
        direction: MappingDirection = MappingDirection.GENERIC,
        update: bool = False,
    ) -> MappingPlan:
        key = PlanKey(source_type, target_type, direction, update)
        return self._caches.compute_if_absent(PLANS, key, lambda: self._compile(key))

    def invalidate(self, source_type: type, target_type: type) -> int:
        """Drop every cached plan for the type pair."""
        return self._caches.evict(
            PLANS,
            lambda key: isinstance(key, PlanKey) and key.source_type is source_type and key.target_type is target_type,
        )

    def _compile(self, key: PlanKey) -> MappingPlan:
        if key.update and is_frozen(key.target_type):
            raise MappingException(
                f"Cannot update frozen {key.target_type.__name__} in place",
                context={"target_type": key.target_type.__name__},
            )
        source_desc = self._descriptors.describe(key.source_type)
        target_desc = self._descriptors.describe(key.target_type)
        constructor = None if key.update else self._descriptors.constructor(key.target_type)
        config = self._overrides.get((key.source_type, key.target_type), _EMPTY_CONFIG)

        mappings: list[FieldMapping] = []
        for prop in target_desc.properties:
            mapping = self._compile_property(key, prop, source_desc, target_desc, config)
            if mapping is not None:
                mappings.append(mapping)

        self._check_strict(key, source_desc, target_desc, mappings)
        logger.debug(
            "Compiled plan %s -> %s (%s%s): %s",
            key.source_type.__name__,
            key.target_type.__name__,
            key.direction.value,
            ", update" if key.update else "",
            ", ".join(m.name for m in mappings),
        )
        return MappingPlan(key=key, mappings=tuple(mappings), constructor=constructor)

    def _compile_property(
        self,
        key: PlanKey,
        prop: PropertyDescriptor,
        source_desc: TypeDescriptor,
        target_desc: TypeDescriptor,
        config: MappingConfig,
    ) -> FieldMapping | None:
        if not prop.writable or prop.name in config.exclude:
            return None
        if self._filtered(key, prop, source_desc, target_desc):
            return None

        directive = prop.directive
        override = config.source_for(prop.name)
        if override is not None:
            directive = dataclasses.replace(directive, source=override)

        path = self._resolver.resolve(key.source_type, prop.name, directive, key.direction)
        if key.update and self._immutable(key, prop, path):
            return None
        if path is None and directive.default is None:
            return None

        setter = self._accessors.setter(key.target_type, prop.name)
        if setter is None:
            return None

        if path is None:
            return FieldMapping(target_property=prop, target_accessor=setter, directive=directive)

        source_prop = path.property
        # Request types carry their directives on the source side.
        if prop.directive == DEFAULT_DIRECTIVE and source_prop.directive != DEFAULT_DIRECTIVE:
            directive = dataclasses.replace(source_prop.directive, source=directive.source)
        return FieldMapping(
            target_property=prop,
            target_accessor=setter,
            source_path=path,
            source_accessors=self._source_accessors(key.source_type, path),
            directive=directive,
            needs_conversion=bool(
                directive.transformer or directive.format or source_prop.declared_type != prop.declared_type
            ),
            nested=self._orchestrator.requires_nested(source_prop.declared_type, prop.declared_type, prop.nested),
            transform=config.transformers.get(prop.name),
        )

    def _source_accessors(self, source_type: type, path: FieldPath) -> tuple[PropertyAccessor, ...]:
        accessors: list[PropertyAccessor] = []
        owner: Any = source_type
        for segment in path.segments:
            accessors.append(self._accessors.getter(owner, segment))
            found = self._descriptors.describe(owner).find(segment) if isinstance(owner, type) else None
            owner = found.declared_type if found is not None else object
        return tuple(accessors)

    @staticmethod
    def _filtered(
        key: PlanKey,
        prop: PropertyDescriptor,
        source_desc: TypeDescriptor,
        target_desc: TypeDescriptor,
    ) -> bool:
        if key.direction is MappingDirection.RESPONSE:
            options = response_options(key.target_type)
            if options is not None:
                if not options.include_id and prop.name == "id":
                    return True
                if not options.include_audit and prop.name in source_desc.audit_properties:
                    return True
        elif key.direction is MappingDirection.REQUEST:
            options = request_options(key.source_type)
            if options is not None and options.exclude_audit and prop.name in target_desc.audit_properties:
                return True
        return False

    @staticmethod
    def _immutable(key: PlanKey, prop: PropertyDescriptor, path: FieldPath | None) -> bool:
        options = request_options(key.source_type)
        if options is not None and not options.exclude_immutable:
            return False
        return prop.directive.immutable or (path is not None and path.property.directive.immutable)

    @staticmethod
    def _check_strict(
        key: PlanKey,
        source_desc: TypeDescriptor,
        target_desc: TypeDescriptor,
        mappings: list[FieldMapping],
    ) -> None:
        options = request_options(key.source_type)
        if options is None or not options.strict or key.direction is not MappingDirection.REQUEST:
            return
        consumed = {m.source_path.segments[0] for m in mappings if m.source_path is not None}
        unmatched = [
            p.name for p in source_desc.properties if p.name not in consumed and target_desc.find(p.name) is None
        ]
        if unmatched:
            raise MappingException(
                f"Strict mapping {key.source_type.__name__} -> {key.target_type.__name__}: "
                f"no target property for {', '.join(unmatched)}",
                context={"unmatched": unmatched},
            )
