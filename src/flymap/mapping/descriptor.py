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
"""Type descriptors: the mappable properties of a type, built once and cached.

Properties are collected from class annotations (dataclasses, Pydantic
models and plain annotated classes), ``@property`` objects, and the
``__init__`` parameters of un-annotated classes. The MRO is walked from the
base towards the subclass so the closest declaration of a name wins.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Final, get_origin, get_type_hints

from flymap.cache.manager import AUDIT_FIELDS, CONSTRUCTORS, TYPE_DESCRIPTORS, MappingCacheManager
from flymap.kernel.exceptions import ConstructionException
from flymap.mapping.directives import (
    AUDIT_STRUCTURE_NAMES,
    DEFAULT_DIRECTIVE,
    FALLBACK_AUDIT_NAMES,
    METADATA_KEY,
    NESTED_METADATA_KEY,
    Audited,
    FieldDirective,
    Nested,
)
from flymap.mapping.typeinfo import collection_kind, is_structured, item_type, unwrap

logger = logging.getLogger(__name__)

_FRAMEWORK_MODULES = ("pydantic", "builtins")


@dataclass(frozen=True)
class PropertyDescriptor:
    """One mappable property of a type."""

    name: str
    declared_type: Any
    owner: type
    directive: FieldDirective = DEFAULT_DIRECTIVE
    nested: Nested | None = None
    readable: bool = True
    writable: bool = True

    @property
    def collection_kind(self) -> type | None:
        return collection_kind(self.declared_type)

    @property
    def is_collection(self) -> bool:
        return self.collection_kind is not None

    @property
    def item_type(self) -> Any:
        return item_type(self.declared_type) if self.is_collection else None

    @property
    def is_structured(self) -> bool:
        return is_structured(self.declared_type)


@dataclass(frozen=True)
class _ConstructionFailure:
    reason: str


@dataclass(frozen=True)
class TypeDescriptor:
    """Ordered, immutable view of a type's mappable properties."""

    type: type
    properties: tuple[PropertyDescriptor, ...]
    audit_properties: frozenset[str] = frozenset()
    _by_name: dict[str, PropertyDescriptor] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_name.update((p.name, p) for p in self.properties)

    def find(self, name: str) -> PropertyDescriptor | None:
        return self._by_name.get(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.properties)


class TypeDescriptorCache:
    """Builds and memoizes :class:`TypeDescriptor` objects and constructors."""

    def __init__(self, caches: MappingCacheManager) -> None:
        self._caches = caches

    def describe(self, cls: type) -> TypeDescriptor:
        return self._caches.compute_if_absent(TYPE_DESCRIPTORS, cls, lambda: self._build(cls))

    def audit_properties(self, cls: type) -> frozenset[str]:
        return self._caches.compute_if_absent(AUDIT_FIELDS, cls, lambda: self._detect_audit(cls))

    def constructor(self, cls: type) -> Callable[[], Any]:
        """Zero-argument factory for *cls*.

        Raises:
            ConstructionException: If *cls* cannot be instantiated without
                arguments.
        """
        resolved = self._caches.compute_if_absent(CONSTRUCTORS, cls, lambda: _resolve_constructor(cls))
        if isinstance(resolved, _ConstructionFailure):
            raise ConstructionException(cls, resolved.reason)
        return resolved

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _build(self, cls: type) -> TypeDescriptor:
        hints = _type_hints(cls)
        dc_fields = {f.name: f for f in dataclasses.fields(cls)} if dataclasses.is_dataclass(cls) else {}
        collected: dict[str, PropertyDescriptor] = {}

        for klass in reversed(cls.__mro__):
            if klass is object or klass.__module__.split(".")[0] in _FRAMEWORK_MODULES:
                continue
            for name in inspect.get_annotations(klass):
                hint = hints.get(name, Any)
                if name.startswith("_") or get_origin(hint) in (ClassVar, Final) or hint in (ClassVar, Final):
                    collected.pop(name, None)
                    continue
                collected[name] = _describe_property(name, hint, klass, dc_fields.get(name))
            for name, attr in vars(klass).items():
                if isinstance(attr, property) and not name.startswith("_"):
                    collected[name] = _describe_property_object(name, attr, klass)

        if not collected and not _has_fields(cls):
            for name, param in _init_parameters(cls):
                annotation = Any if param.annotation is inspect.Parameter.empty else param.annotation
                collected[name] = PropertyDescriptor(name=name, declared_type=unwrap(annotation), owner=cls)

        properties = tuple(p for p in collected.values() if not p.directive.ignore)
        descriptor = TypeDescriptor(type=cls, properties=properties, audit_properties=self.audit_properties(cls))
        logger.debug("Described %s: %s", cls.__name__, ", ".join(descriptor.names))
        return descriptor

    def _detect_audit(self, cls: type) -> frozenset[str]:
        for klass in cls.__mro__:
            if klass is not cls and klass.__name__ in AUDIT_STRUCTURE_NAMES:
                return frozenset(_annotated_names(klass))
        hints = _type_hints(cls)
        for name, hint in hints.items():
            inner = unwrap(hint)
            if not name.startswith("_") and is_structured(inner) and _is_audit_structure(inner):
                return frozenset(_annotated_names(inner))
        present = {n for n in hints} | {n for n, a in inspect.getmembers(cls) if isinstance(a, property)}
        return frozenset(n for n in FALLBACK_AUDIT_NAMES if n in present)


def _is_audit_structure(cls: type) -> bool:
    return cls.__name__ in AUDIT_STRUCTURE_NAMES or issubclass(cls, Audited)


def _annotated_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        names.extend(n for n in inspect.get_annotations(klass) if not n.startswith("_") and n not in names)
    return names


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as exc:
        logger.debug("Unresolved annotations on %s: %s", cls.__name__, exc)
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for name, hint in inspect.get_annotations(klass).items():
                hints[name] = Any if isinstance(hint, str) else hint
        return hints


def _directives(hint: Any) -> tuple[FieldDirective, Nested | None]:
    directive = DEFAULT_DIRECTIVE
    nested = None
    if hasattr(hint, "__metadata__"):
        for meta in hint.__metadata__:
            if isinstance(meta, FieldDirective):
                directive = meta
            elif isinstance(meta, Nested):
                nested = meta
    return directive, nested


def _describe_property(name: str, hint: Any, owner: type, dc_field: dataclasses.Field | None) -> PropertyDescriptor:
    directive, nested = _directives(hint)
    if dc_field is not None:
        directive = dc_field.metadata.get(METADATA_KEY, directive)
        nested = dc_field.metadata.get(NESTED_METADATA_KEY, nested)
    return PropertyDescriptor(
        name=name,
        declared_type=unwrap(hint),
        owner=owner,
        directive=directive,
        nested=nested,
    )


def _describe_property_object(name: str, prop: property, owner: type) -> PropertyDescriptor:
    hint: Any = Any
    if prop.fget is not None:
        try:
            hint = get_type_hints(prop.fget, include_extras=True).get("return", Any)
        except (NameError, TypeError):
            hint = Any
    directive, nested = _directives(hint)
    return PropertyDescriptor(
        name=name,
        declared_type=unwrap(hint),
        owner=owner,
        directive=directive,
        nested=nested,
        readable=prop.fget is not None,
        writable=prop.fset is not None,
    )


def _has_fields(cls: type) -> bool:
    return dataclasses.is_dataclass(cls) or hasattr(cls, "model_fields")


def _init_parameters(cls: type) -> list[tuple[str, inspect.Parameter]]:
    init = cls.__dict__.get("__init__")
    if init is None:
        return []
    try:
        signature = inspect.signature(init, eval_str=True)
    except (NameError, TypeError, ValueError):
        return []
    return [
        (name, p)
        for name, p in list(signature.parameters.items())[1:]
        if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD) and not name.startswith("_")
    ]


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def _resolve_constructor(cls: type) -> Callable[[], Any] | _ConstructionFailure:
    if hasattr(cls, "model_construct") and hasattr(cls, "model_fields"):
        return cls.model_construct
    if inspect.isabstract(cls):
        return _ConstructionFailure("type is abstract")
    if dataclasses.is_dataclass(cls):
        required = [
            f
            for f in dataclasses.fields(cls)
            if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        ]
        if not required:
            return cls
        return functools.partial(_allocate_dataclass, cls)
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return cls
    required_params = [
        name
        for name, p in signature.parameters.items()
        if p.default is inspect.Parameter.empty and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
    ]
    if required_params:
        return _ConstructionFailure(f"__init__ requires {', '.join(required_params)}")
    return cls


def _field_default(f: dataclasses.Field) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return dataclasses.MISSING


def _allocate_dataclass(cls: type) -> Any:
    """Allocate a dataclass without calling ``__init__``.

    Declared defaults are applied; fields without one start as ``None``.
    """
    instance = object.__new__(cls)
    for f in dataclasses.fields(cls):
        value = _field_default(f)
        object.__setattr__(instance, f.name, None if value is dataclasses.MISSING else value)
    return instance
