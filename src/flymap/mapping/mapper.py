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
"""Schema-less object mapper.

Maps between any two object types (dataclasses, Pydantic models, plain
classes) by matching property names, following dotted paths, decomposing
flattened names and searching nested structures.

Example::

    mapper = ObjectMapper()
    response = mapper.to_target(user_entity, UserResponse)

    # Partial update: None values in the request are skipped
    mapper.update_target(patch_request, user_entity)

    # With a custom field mapping and transformer
    mapper.add_mapping(User, UserDTO, field_map={"username": "name"}, transformers={"name": str.upper})
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import structlog

from flymap.cache.manager import MappingCacheManager
from flymap.config.properties.mapper import MapperProperties
from flymap.core.config import Config
from flymap.kernel.exceptions import ConstructionException, MappingException, RequiredFieldException
from flymap.kernel.types import FieldError
from flymap.logging.port import LoggingPort
from flymap.mapping.accessor import AccessorRegistry, write
from flymap.mapping.batch import BatchResult
from flymap.mapping.descriptor import TypeDescriptorCache
from flymap.mapping.directives import MappingDirection, request_options, response_options
from flymap.mapping.nested import SKIP, MappingContext, NestedMappingOrchestrator
from flymap.mapping.plan import MappingConfig, MappingPlan, MappingPlanCompiler
from flymap.mapping.resolver import FieldPathResolver
from flymap.mapping.transformer import ValueTransformer
from flymap.mapping.typeinfo import is_structured, matches

logger = structlog.get_logger("flymap.mapping")

S = TypeVar("S")
T = TypeVar("T")


class ObjectMapper:
    """Maps objects between types using cached, precompiled mapping plans.

    All caches live in the :class:`MappingCacheManager`; a mapper is safe to
    share between threads since per-call state lives in a
    :class:`MappingContext`.

    Args:
        properties: Engine settings; defaults to :class:`MapperProperties`.
        cache_manager: Cache regions to use; defaults to a fresh manager,
            bounded when ``properties.cache_max_entries`` is positive.
    """

    def __init__(
        self,
        properties: MapperProperties | None = None,
        cache_manager: MappingCacheManager | None = None,
    ) -> None:
        self._properties = properties or MapperProperties()
        if cache_manager is None:
            max_entries = self._properties.cache_max_entries
            cache_manager = MappingCacheManager.bounded(max_entries) if max_entries > 0 else MappingCacheManager()
        self._caches = cache_manager
        self._overrides: dict[tuple[type, type], MappingConfig] = {}

        self._accessors = AccessorRegistry(self._caches)
        self._descriptors = TypeDescriptorCache(self._caches)
        self._resolver = FieldPathResolver(self._descriptors, self._caches, self._properties.search_depth)
        self._transformer = ValueTransformer(self._caches)
        self._orchestrator = NestedMappingOrchestrator(self._map_nested_object)
        self._compiler = MappingPlanCompiler(
            self._descriptors,
            self._resolver,
            self._accessors,
            self._orchestrator,
            self._caches,
            self._overrides,
        )

    @classmethod
    def from_config(cls, config: Config | None = None, logging_port: LoggingPort | None = None) -> ObjectMapper:
        """Build a mapper from the ``flymap.mapper`` configuration section.

        When *logging_port* is given it is configured from the same
        ``flymap.logging`` section first.
        """
        config = config if config is not None else Config.defaults()
        if logging_port is not None:
            logging_port.configure(config)
        return cls(config.bind(MapperProperties))

    @property
    def properties(self) -> MapperProperties:
        return self._properties

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_mapping(
        self,
        source_type: type,
        target_type: type,
        *,
        field_map: dict[str, str] | None = None,
        transformers: dict[str, Callable[[Any], Any]] | None = None,
        exclude: set[str] | None = None,
    ) -> None:
        """Register overrides for a source/target type pair.

        Args:
            source_type: The source type to map from.
            target_type: The target type to map to.
            field_map: Maps source property names (or dotted paths) to
                target property names.
            transformers: Callables applied to values, keyed by target
                property name.
            exclude: Target properties to leave unmapped.
        """
        self._overrides[(source_type, target_type)] = MappingConfig(
            field_map=field_map or {},
            transformers=transformers or {},
            exclude=exclude or set(),
        )
        self._compiler.invalidate(source_type, target_type)

    def register_transformer(self, name: str, func: Callable[[Any], Any]) -> None:
        """Make *func* available as ``FieldDirective(transformer=name)``."""
        self._transformer.register(name, func)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    @staticmethod
    def direction_for(source_type: type, target_type: type) -> MappingDirection:
        """Infer the direction from type-level options."""
        if response_options(target_type) is not None:
            return MappingDirection.RESPONSE
        if request_options(source_type) is not None:
            return MappingDirection.REQUEST
        return MappingDirection.GENERIC

    def plan(
        self,
        source_type: type,
        target_type: type,
        direction: MappingDirection | None = None,
        update: bool = False,
    ) -> MappingPlan:
        """Return the cached plan for the type pair, compiling it on first use."""
        if direction is None:
            direction = self.direction_for(source_type, target_type)
        return self._compiler.plan(source_type, target_type, direction, update)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_target(self, source: Any, target_type: type[T], direction: MappingDirection | None = None) -> T | None:
        """Map *source* onto a new instance of *target_type*.

        Returns ``None`` for a ``None`` source.

        Raises:
            MappingException: On any failure; subclasses such as
                :class:`RequiredFieldException` propagate unchanged.
        """
        if source is None:
            return None
        try:
            plan = self.plan(type(source), target_type, direction)
            target = plan.new_target()
            context = MappingContext.root(source, target_type, self._properties.max_depth)
            self._apply(plan, source, target, context)
            return target
        except MappingException:
            raise
        except Exception as exc:
            raise self._wrap(exc, type(source), target_type) from exc

    def update_target(self, source: Any, target: T, direction: MappingDirection | None = None) -> T:
        """Copy non-``None`` values of *source* onto existing *target*.

        Properties marked ``immutable`` are left untouched.
        """
        if source is None or target is None:
            return target
        try:
            plan = self.plan(type(source), type(target), direction, update=True)
            context = MappingContext.root(source, type(target), self._properties.max_depth, update=True)
            self._apply(plan, source, target, context)
            return target
        except MappingException:
            raise
        except Exception as exc:
            raise self._wrap(exc, type(source), type(target)) from exc

    def to_target_list(
        self,
        sources: Iterable[Any],
        target_type: type[T],
        direction: MappingDirection | None = None,
    ) -> list[T | None]:
        """Map every element, in order; the first failure aborts the call."""
        items = list(sources)
        return self._run(items, lambda s: self.to_target(s, target_type, direction))

    def map_batch(
        self,
        sources: Iterable[Any],
        target_type: type[T],
        *,
        fail_fast: bool = False,
        direction: MappingDirection | None = None,
    ) -> BatchResult[T | None]:
        """Map every element, collecting failures instead of raising.

        With ``fail_fast=True`` the first failure propagates, as in
        :meth:`to_target_list`. A :class:`ConstructionException` always
        propagates, since no element of the batch could be mapped.
        """
        items = list(sources)
        if fail_fast:
            return BatchResult(mapped=self.to_target_list(items, target_type, direction))

        outcomes = self._run(items, lambda s: self._attempt(s, target_type, direction))
        result: BatchResult[T | None] = BatchResult()
        for index, (mapped, error) in enumerate(outcomes):
            if error is None:
                result.mapped.append(mapped)
            else:
                result.failures.append(
                    FieldError(field=f"[{index}]", message=str(error), rejected_value=items[index], code=error.code)
                )
        if result.failures:
            logger.warning(
                "batch_elements_skipped",
                target_type=target_type.__name__,
                total=len(items),
                skipped=result.skipped_count,
            )
        return result

    def to_dict(
        self,
        source: Any,
        target_type: type,
        direction: MappingDirection | None = None,
    ) -> dict[str, Any] | None:
        """Map *source* to *target_type* and render the result as a plain dict.

        Response options of *target_type* are honoured: the source ``id`` and
        audit properties are added when included and absent from the target.
        """
        if source is None:
            return None
        target = self.to_target(source, target_type, direction)
        plan = self.plan(type(source), target_type, direction)
        result = {name: self._render(self._accessors.get(target, name), set()) for name in plan.field_names}

        options = response_options(target_type)
        if options is not None:
            extra: list[str] = []
            if options.include_id:
                extra.append("id")
            if options.include_audit:
                extra.extend(sorted(self._descriptors.audit_properties(type(source))))
            for name in extra:
                if name in result or self._descriptors.describe(type(source)).find(name) is None:
                    continue
                value = self._accessors.get(source, name)
                if value is not None:
                    result[name] = self._render(value, set())
        return result

    # ------------------------------------------------------------------
    # Operational controls
    # ------------------------------------------------------------------

    def cache_stats(self) -> dict[str, dict[str, Any]]:
        return self._caches.stats()

    def clear_caches(self) -> None:
        self._caches.clear()
        logger.info("mapping_caches_cleared")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(self, plan: MappingPlan, source: Any, target: Any, context: MappingContext) -> None:
        for mapping in plan.mappings:
            prop = mapping.target_property
            value = mapping.read(source)

            if value is None:
                if not context.update and mapping.directive.default is not None:
                    value = self._transformer.parse_default(mapping.directive.default, prop.declared_type)
                elif mapping.directive.required and mapping.source_path is not None:
                    raise RequiredFieldException(prop.name, type(source))
                elif context.update:
                    continue
                elif mapping.nested:
                    value = self._orchestrator.map_nested(None, prop, context)
            else:
                if mapping.transform is not None:
                    value = mapping.transform(value)
                if mapping.nested:
                    value = self._orchestrator.map_nested(value, prop, context)
                elif mapping.needs_conversion or not matches(value, prop.declared_type):
                    source_prop = mapping.source_property
                    value = self._transformer.convert(
                        value,
                        source_prop.declared_type if source_prop is not None else type(value),
                        prop.declared_type,
                        mapping.directive,
                        source,
                    )

            if value is None or value is SKIP:
                continue
            write(mapping.target_accessor, target, value)

    def _map_nested_object(self, source: Any, target_type: type, context: MappingContext) -> Any:
        plan = self.plan(type(source), target_type)
        target = plan.new_target()
        self._apply(plan, source, target, context)
        return target

    def _attempt(
        self,
        source: Any,
        target_type: type,
        direction: MappingDirection | None,
    ) -> tuple[Any, MappingException | None]:
        try:
            return self.to_target(source, target_type, direction), None
        except ConstructionException:
            raise
        except MappingException as exc:
            return None, exc

    def _run(self, items: list[S], func: Callable[[S], T]) -> list[T]:
        workers = self._properties.max_workers
        if len(items) <= self._properties.parallel_threshold or workers <= 1:
            return [func(item) for item in items]
        logger.debug("parallel_batch", size=len(items), workers=workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="flymap") as pool:
            return list(pool.map(func, items))

    def _render(self, value: Any, seen: set[int]) -> Any:
        """Plain-data view of *value*; a back-reference renders as ``None`` or is dropped from a list."""
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._render(v, seen) for v in value if not _closes_cycle(v, seen)]
        if not is_structured(type(value)):
            return value
        if id(value) in seen:
            return None
        seen = seen | {id(value)}
        return {
            p.name: self._render(self._accessors.get(value, p.name), seen)
            for p in self._descriptors.describe(type(value)).properties
            if p.readable
        }

    @staticmethod
    def _wrap(exc: Exception, source_type: type, target_type: type) -> MappingException:
        logger.error(
            "mapping_failed",
            source_type=source_type.__name__,
            target_type=target_type.__name__,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return MappingException(
            f"Failed to map {source_type.__name__} to {target_type.__name__}: {exc}",
            context={"source_type": source_type.__name__, "target_type": target_type.__name__},
        )


def _closes_cycle(value: Any, seen: set[int]) -> bool:
    return is_structured(type(value)) and id(value) in seen
