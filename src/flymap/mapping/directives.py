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
"""Property directives and type-level mapping options.

Property directives are plain data attached to a field declaration::

    @dataclass
    class UserResponse:
        name: Annotated[str, FieldDirective(source="profile.display_name")]
        email: Annotated[str, FieldDirective(transformer="lower")]
        address: Annotated[AddressResponse | None, Nested(max_depth=3)] = None

or, for dataclasses, through the :func:`mapped` helper::

    @dataclass
    class UserRequest:
        username: str = mapped(required=True, immutable=True)

Type-level options are attached with :func:`request_mapping` and
:func:`response_mapping`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")

METADATA_KEY = "flymap"
NESTED_METADATA_KEY = "flymap.nested"

_REQUEST_OPTIONS_ATTR = "__flymap_request_options__"
_RESPONSE_OPTIONS_ATTR = "__flymap_response_options__"


class MappingDirection(Enum):
    """Which way an object travels through the mapper."""

    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    GENERIC = "GENERIC"


class NullStrategy(Enum):
    """What a nested property receives when its source value is ``None``."""

    INCLUDE_NULL = "INCLUDE_NULL"
    EXCLUDE_NULL = "EXCLUDE_NULL"
    EMPTY_COLLECTION = "EMPTY_COLLECTION"


@dataclass(frozen=True)
class FieldDirective:
    """Per-property mapping directive.

    Attributes:
        source: Source property name or dotted path (``"address.city"``).
        ignore: Exclude the property from mapping entirely.
        required: Fail the conversion when the resolved value is ``None``.
        default: String default, converted to the property type.
        transformer: Named transformer applied before type coercion.
        format: Date/time pattern, strftime or ``yyyy-MM-dd`` style.
        immutable: Skip the property when updating an existing target.
    """

    source: str | None = None
    ignore: bool = False
    required: bool = False
    default: str | None = None
    transformer: str | None = None
    format: str | None = None
    immutable: bool = False


DEFAULT_DIRECTIVE = FieldDirective()


@dataclass(frozen=True)
class Nested:
    """Nested mapping directive for structured or collection properties.

    Attributes:
        target_type: Element or object type to map into. Defaults to the
            declared property type (or its item type for collections).
        max_depth: Recursion cap for this property, overriding the mapper
            default.
        null_strategy: Value written when the source is ``None``.
    """

    target_type: type | None = None
    max_depth: int | None = None
    null_strategy: NullStrategy = NullStrategy.INCLUDE_NULL


def mapped(
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    source: str | None = None,
    ignore: bool = False,
    required: bool = False,
    default_value: str | None = None,
    transformer: str | None = None,
    format: str | None = None,
    immutable: bool = False,
    nested: Nested | None = None,
) -> Any:
    """Declare a dataclass field carrying a :class:`FieldDirective`.

    ``default``/``default_factory`` are the dataclass defaults of the field;
    ``default_value`` is the string default applied by the mapper. A field
    without either default is given ``None`` so it may follow defaulted
    fields.
    """
    metadata: dict[str, Any] = {
        METADATA_KEY: FieldDirective(
            source=source,
            ignore=ignore,
            required=required,
            default=default_value,
            transformer=transformer,
            format=format,
            immutable=immutable,
        )
    }
    if nested is not None:
        metadata[NESTED_METADATA_KEY] = nested
    if default is dataclasses.MISSING and default_factory is dataclasses.MISSING:
        default = None
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


# ---------------------------------------------------------------------------
# Type-level options
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestOptions:
    """Options for a request type mapped onto an entity."""

    entity: type | None = None
    exclude_audit: bool = True
    exclude_immutable: bool = True
    strict: bool = False


@dataclass(frozen=True)
class ResponseOptions:
    """Options for a response type produced from an entity."""

    entity: type | None = None
    include_id: bool = True
    include_audit: bool = True


def request_mapping(
    entity: type | None = None,
    *,
    exclude_audit: bool = True,
    exclude_immutable: bool = True,
    strict: bool = False,
) -> Any:
    """Mark a class as a request type.

    Usage::

        @request_mapping(User, strict=True)
        @dataclass
        class CreateUserRequest:
            username: str | None = None
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(
            cls,
            _REQUEST_OPTIONS_ATTR,
            RequestOptions(
                entity=entity,
                exclude_audit=exclude_audit,
                exclude_immutable=exclude_immutable,
                strict=strict,
            ),
        )
        return cls

    return decorator


def response_mapping(
    entity: type | None = None,
    *,
    include_id: bool = True,
    include_audit: bool = True,
) -> Any:
    """Mark a class as a response type."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(
            cls,
            _RESPONSE_OPTIONS_ATTR,
            ResponseOptions(entity=entity, include_id=include_id, include_audit=include_audit),
        )
        return cls

    return decorator


def request_options(cls: type) -> RequestOptions | None:
    """Return the request options declared on *cls*, if any."""
    return getattr(cls, _REQUEST_OPTIONS_ATTR, None)


def response_options(cls: type) -> ResponseOptions | None:
    """Return the response options declared on *cls*, if any."""
    return getattr(cls, _RESPONSE_OPTIONS_ATTR, None)


# ---------------------------------------------------------------------------
# Audit structure
# ---------------------------------------------------------------------------

AUDIT_STRUCTURE_NAMES: frozenset[str] = frozenset({"Audited", "Audit", "AuditMixin", "AuditFields"})

FALLBACK_AUDIT_NAMES: tuple[str, ...] = (
    "created_at",
    "created_by",
    "updated_at",
    "updated_by",
    "version",
    "createdAt",
    "createdBy",
    "updatedAt",
    "updatedBy",
)


@dataclass(kw_only=True)
class Audited:
    """Audit mixin whose property names are treated as audit properties.

    Subclass it (or embed it as a property) on entity types::

        @dataclass
        class User(Audited):
            id: int | None = None
            username: str | None = None
    """

    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None
