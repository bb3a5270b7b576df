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
"""Value transformation and type coercion for individual property values."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from flymap.cache.manager import FORMATTERS, MappingCacheManager
from flymap.kernel.exceptions import InvalidValueException
from flymap.mapping.directives import FieldDirective
from flymap.mapping.typeinfo import collection_kind, is_enum, is_simple, item_type, matches, unwrap

logger = logging.getLogger(__name__)

_TRUE = frozenset({"true", "1", "yes", "y", "on"})
_FALSE = frozenset({"false", "0", "no", "n", "off"})

BUILTIN_TRANSFORMERS: dict[str, Callable[[Any], Any]] = {
    "upper": lambda v: str(v).upper(),
    "toUpperCase": lambda v: str(v).upper(),
    "lower": lambda v: str(v).lower(),
    "toLowerCase": lambda v: str(v).lower(),
    "trim": lambda v: str(v).strip(),
    "strip": lambda v: str(v).strip(),
    "capitalize": lambda v: str(v).capitalize(),
    "title": lambda v: str(v).title(),
}

# Longest tokens first so "yyyy" wins over "yy".
_JAVA_TOKENS: dict[str, str] = {
    "yyyy": "%Y",
    "yy": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "dd": "%d",
    "EEEE": "%A",
    "EEE": "%a",
    "HH": "%H",
    "hh": "%I",
    "mm": "%M",
    "ss": "%S",
    "SSS": "%f",
    "a": "%p",
}
_JAVA_TOKEN_RE = re.compile("|".join(sorted(_JAVA_TOKENS, key=len, reverse=True)))
_QUOTED_RE = re.compile(r"'([^']*)'")


def to_strftime(pattern: str) -> str:
    """Translate a ``yyyy-MM-dd HH:mm:ss`` style pattern to strftime syntax.

    Patterns already containing ``%`` directives are returned unchanged.
    """
    if "%" in pattern:
        return pattern
    parts: list[str] = []
    last = 0
    for match in _QUOTED_RE.finditer(pattern):
        parts.append(_JAVA_TOKEN_RE.sub(lambda m: _JAVA_TOKENS[m.group()], pattern[last : match.start()]))
        parts.append(match.group(1))
        last = match.end()
    parts.append(_JAVA_TOKEN_RE.sub(lambda m: _JAVA_TOKENS[m.group()], pattern[last:]))
    return "".join(parts)


class ValueTransformer:
    """Converts a source value into a value assignable to a target property.

    Named transformers run first, then type coercion. A coercion that fails
    leaves the value unchanged (and logs at debug level), except for enum
    lookups, which raise :class:`InvalidValueException`.
    """

    def __init__(self, caches: MappingCacheManager) -> None:
        self._caches = caches
        self._named: dict[str, Callable[[Any], Any]] = dict(BUILTIN_TRANSFORMERS)

    def register(self, name: str, func: Callable[[Any], Any]) -> None:
        """Register a named transformer usable from ``FieldDirective(transformer=...)``."""
        self._named[name] = func

    def apply_named(self, value: Any, name: str, source_object: Any = None) -> Any:
        func = self._named.get(name)
        if func is None and source_object is not None:
            method = getattr(source_object, name, None)
            if callable(method):
                func = method
        if func is None:
            logger.warning("Unknown transformer '%s', value left unchanged", name)
            return value
        try:
            return func(value)
        except Exception as exc:
            logger.warning("Transformer '%s' failed: %s", name, exc)
            return value

    def convert(
        self,
        value: Any,
        source_type: Any,
        target_type: Any,
        directive: FieldDirective | None = None,
        source_object: Any = None,
    ) -> Any:
        """Convert *value* (declared as *source_type*) to *target_type*."""
        if value is None:
            return None
        if directive is not None and directive.transformer:
            value = self.apply_named(value, directive.transformer, source_object)
        target = unwrap(target_type)
        if directive is not None and directive.format:
            formatted = self._apply_format(value, target, directive.format)
            if formatted is not None:
                return formatted
        if matches(value, target):
            return value
        try:
            return self._coerce(value, target)
        except InvalidValueException:
            raise
        except (ValueError, TypeError, ArithmeticError) as exc:
            logger.debug(
                "Cannot convert %r from %s to %s: %s",
                value,
                getattr(source_type, "__name__", source_type),
                getattr(target, "__name__", target),
                exc,
            )
            return value

    def parse_default(self, text: str, target_type: Any) -> Any:
        """Convert a directive's string default to *target_type*."""
        return self.convert(text, str, target_type)

    def formatter(self, pattern: str) -> str:
        return self._caches.compute_if_absent(FORMATTERS, pattern, lambda: to_strftime(pattern))

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    def _apply_format(self, value: Any, target: Any, pattern: str) -> Any:
        fmt = self.formatter(pattern)
        try:
            temporal_target = isinstance(target, type) and issubclass(target, (date, time))
            if isinstance(value, (date, time)) and not temporal_target:
                return value.strftime(fmt)
            if isinstance(value, str) and target in (datetime, date, time):
                parsed = datetime.strptime(value, fmt)
                if target is date:
                    return parsed.date()
                if target is time:
                    return parsed.time()
                return parsed
        except ValueError as exc:
            logger.debug("Cannot apply format '%s' to %r: %s", pattern, value, exc)
        return None

    def _coerce(self, value: Any, target: Any) -> Any:
        kind = collection_kind(target)
        if kind is not None:
            return self._coerce_collection(value, kind, item_type(target))
        if not isinstance(target, type):
            return value
        if is_enum(target):
            return self._to_enum(value, target)
        if target is str:
            return self._to_str(value)
        if target is bool:
            return self._to_bool(value)
        if target is int:
            if isinstance(value, str):
                return int(value.strip())
            return int(value)
        if target is float:
            return float(value)
        if target is Decimal:
            return Decimal(str(value).strip())
        if target is UUID:
            return UUID(str(value))
        if target is datetime:
            if isinstance(value, str):
                return datetime.fromisoformat(value.strip())
            if isinstance(value, date):
                return datetime.combine(value, time())
        if target is date:
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, str):
                return date.fromisoformat(value.strip())
        if target is time:
            if isinstance(value, datetime):
                return value.time()
            if isinstance(value, str):
                return time.fromisoformat(value.strip())
        return value

    def _coerce_collection(self, value: Any, kind: type, element: Any) -> Any:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
            return value
        items = list(value)
        if is_simple(element) and not all(v is None or matches(v, element) for v in items):
            items = [None if v is None else self.convert(v, type(v), element) for v in items]
        return kind(items)

    @staticmethod
    def _to_enum(value: Any, target: type[Enum]) -> Enum:
        members = target.__members__
        if isinstance(value, Enum):
            value = value.name
        if isinstance(value, str):
            key = value.strip()
            if key in members:
                return members[key]
            for name, member in members.items():
                if name.lower() == key.lower():
                    return member
        try:
            return target(value)
        except ValueError:
            raise InvalidValueException(value, target, list(members)) from None

    @staticmethod
    def _to_str(value: Any) -> str:
        if isinstance(value, Enum):
            return value.name
        if isinstance(value, (date, time)):
            return value.isoformat()
        return str(value)

    @staticmethod
    def _to_bool(value: Any) -> bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(f"Not a boolean: {value!r}")
        return bool(value)
