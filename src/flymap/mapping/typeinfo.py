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
"""Helpers for inspecting declared property types."""

from __future__ import annotations

import collections.abc
import types
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin
from uuid import UUID

_COLLECTION_KINDS: dict[Any, type] = {
    list: list,
    set: set,
    tuple: tuple,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}

_SIMPLE_TYPES: tuple[type, ...] = (
    str,
    bytes,
    bool,
    int,
    float,
    complex,
    Decimal,
    UUID,
    date,
    time,
    Enum,
)

_SIMPLE_MODULES = frozenset({"builtins", "datetime", "decimal", "uuid", "enum", "pathlib", "fractions", "ipaddress"})

TEMPORAL_TYPES: tuple[type, ...] = (datetime, date, time)


def unwrap(tp: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers from a declared type."""
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return unwrap(args[0])
    return tp


def collection_kind(tp: Any) -> type | None:
    """Concrete container class for a collection type, or ``None``."""
    origin = get_origin(tp) or tp
    try:
        return _COLLECTION_KINDS.get(origin)
    except TypeError:
        return None


def item_type(tp: Any) -> Any:
    """Declared element type of a collection type, ``Any`` when unspecified."""
    args = [a for a in get_args(tp) if a is not Ellipsis]
    return unwrap(args[0]) if args else Any


def is_simple(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, _SIMPLE_TYPES)


def is_structured(tp: Any) -> bool:
    """True for user-defined object types that are mapped property by property."""
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    if is_simple(tp) or tp is object:
        return False
    if issubclass(tp, (Mapping, collections.abc.Collection)):
        return False
    return tp.__module__.split(".")[0] not in _SIMPLE_MODULES


def is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Enum)


def matches(value: Any, tp: Any) -> bool:
    """Whether *value* already satisfies declared type *tp*."""
    if tp is Any or tp is object:
        return True
    kind = collection_kind(tp)
    if kind is not None:
        if not isinstance(value, kind):
            return False
        element = item_type(tp)
        return all(v is None or matches(v, element) for v in value)
    if isinstance(tp, type):
        if isinstance(value, bool) and tp is not bool and tp in (int, float):
            return False
        if tp is date and isinstance(value, datetime):
            return False
        return isinstance(value, tp)
    # Unions and other special forms are taken as satisfied.
    return True


def type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
