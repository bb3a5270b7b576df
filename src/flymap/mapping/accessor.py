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
"""Property accessors: read and write a named property on any object.

Two access styles are supported. Method style looks for ``get_<name>()`` or
``is_<name>()`` and ``set_<name>(value)``; attribute style uses plain
``getattr``/``setattr``. Method style wins when both exist.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Protocol, runtime_checkable

from flymap.cache.manager import GETTERS, SETTERS, MappingCacheManager

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


@runtime_checkable
class PropertyAccessor(Protocol):
    """Reads or writes one property."""

    name: str

    def get(self, obj: Any) -> Any: ...

    def set(self, obj: Any, value: Any) -> None: ...


class MethodAccessor:
    """Accessor backed by ``get_x``/``is_x`` and ``set_x`` methods."""

    __slots__ = ("name", "_getter", "_setter")

    def __init__(self, name: str, getter: str | None = None, setter: str | None = None) -> None:
        self.name = name
        self._getter = getter
        self._setter = setter

    def get(self, obj: Any) -> Any:
        if self._getter is None:
            raise AttributeError(f"No getter method for '{self.name}'")
        return getattr(obj, self._getter)()

    def set(self, obj: Any, value: Any) -> None:
        if self._setter is None:
            raise AttributeError(f"No setter method for '{self.name}'")
        getattr(obj, self._setter)(value)

    def __repr__(self) -> str:
        return f"MethodAccessor({self.name!r}, getter={self._getter!r}, setter={self._setter!r})"


class AttributeAccessor:
    """Accessor backed by attribute access.

    Frozen targets are written with ``object.__setattr__``. Only targets the
    mapper has just constructed reach this path; update plans reject frozen
    target types.
    """

    __slots__ = ("name", "_frozen")

    def __init__(self, name: str, frozen: bool = False) -> None:
        self.name = name
        self._frozen = frozen

    def get(self, obj: Any) -> Any:
        return getattr(obj, self.name)

    def set(self, obj: Any, value: Any) -> None:
        if self._frozen:
            object.__setattr__(obj, self.name, value)
        else:
            setattr(obj, self.name, value)

    def __repr__(self) -> str:
        return f"AttributeAccessor({self.name!r}, frozen={self._frozen})"


def is_frozen(cls: type) -> bool:
    """Whether instances of *cls* reject attribute assignment (frozen dataclass or Pydantic model)."""
    params = getattr(cls, "__dataclass_params__", None)
    if params is not None and params.frozen:
        return True
    model_config = getattr(cls, "model_config", None)
    return isinstance(model_config, dict) and bool(model_config.get("frozen"))


def _method(cls: type, name: str) -> bool:
    attr = inspect.getattr_static(cls, name, None)
    return attr is not None and callable(attr) and not isinstance(attr, type)


class AccessorRegistry:
    """Resolves and caches accessors per ``(type, property name)``."""

    def __init__(self, caches: MappingCacheManager) -> None:
        self._caches = caches

    def getter(self, cls: type, name: str) -> PropertyAccessor:
        return self._caches.compute_if_absent(GETTERS, (cls, name, "get"), lambda: self._resolve_getter(cls, name))

    def setter(self, cls: type, name: str) -> PropertyAccessor | None:
        found = self._caches.compute_if_absent(
            SETTERS, (cls, name, "set"), lambda: self._resolve_setter(cls, name)
        )
        return None if found is _UNRESOLVED else found

    @staticmethod
    def _resolve_getter(cls: type, name: str) -> PropertyAccessor:
        for prefix in ("get_", "is_"):
            if _method(cls, prefix + name):
                return MethodAccessor(name, getter=prefix + name)
        return AttributeAccessor(name)

    @staticmethod
    def _resolve_setter(cls: type, name: str) -> Any:
        if _method(cls, "set_" + name):
            return MethodAccessor(name, setter="set_" + name)
        attr = inspect.getattr_static(cls, name, None)
        if isinstance(attr, property):
            return AttributeAccessor(name) if attr.fset is not None else _UNRESOLVED
        return AttributeAccessor(name, frozen=is_frozen(cls))

    def get(self, obj: Any, name: str) -> Any:
        """Read property *name* from *obj*; ``None`` when it cannot be read."""
        if obj is None:
            return None
        return read(self.getter(type(obj), name), obj)

    def set(self, obj: Any, name: str, value: Any) -> bool:
        """Write *value* to property *name*; returns ``False`` when skipped."""
        accessor = self.setter(type(obj), name)
        if accessor is None:
            logger.debug("No writable property '%s' on %s", name, type(obj).__name__)
            return False
        return write(accessor, obj, value)


def write(accessor: PropertyAccessor, obj: Any, value: Any) -> bool:
    """Write through *accessor*, logging and skipping on failure."""
    try:
        accessor.set(obj, value)
    except Exception as exc:
        logger.debug("Cannot write '%s' on %s: %s", accessor.name, type(obj).__name__, exc)
        return False
    return True


def read(accessor: PropertyAccessor, obj: Any) -> Any:
    """Read through *accessor*, returning ``None`` on failure."""
    try:
        return accessor.get(obj)
    except Exception as exc:
        logger.debug("Cannot read '%s' from %s: %s", accessor.name, type(obj).__name__, exc)
        return None
