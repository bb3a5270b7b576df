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
"""Unified exception hierarchy for flymap.

All mapping failures inherit from FlyMapException, enabling unified error
handling: catch FlyMapException to handle every engine error, or catch a
specific subclass for targeted handling.

Categories:
- MappingException: a single object could not be mapped
- RequiredFieldException: a required property resolved to ``None``
- InvalidValueException: a value matches no accepted constant
- ConstructionException: the target type cannot be instantiated
"""

from __future__ import annotations

from collections.abc import Iterable

# =============================================================================
# Base Exception
# =============================================================================


class FlyMapException(Exception):
    """Base exception for all flymap errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "MAPPING_FAILED").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Mapping Exceptions
# =============================================================================


class MappingException(FlyMapException):
    """A source object could not be mapped onto its target type."""

    def __init__(
        self,
        message: str,
        code: str | None = "MAPPING_FAILED",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)


class RequiredFieldException(MappingException):
    """A property marked required resolved to ``None`` in the source."""

    def __init__(self, property_name: str, source_type: type) -> None:
        super().__init__(
            f"Required field '{property_name}' is null in {source_type.__name__}",
            code="REQUIRED_FIELD",
            context={"property": property_name, "source_type": source_type.__name__},
        )
        self.property_name = property_name
        self.source_type = source_type


class InvalidValueException(MappingException):
    """A value matched none of the constants accepted by the target type."""

    def __init__(self, value: object, target_type: type, accepted: Iterable[str]) -> None:
        accepted_list = list(accepted)
        super().__init__(
            f"Invalid enum value '{value}' for type {target_type.__name__}. "
            f"Accepted values: {', '.join(accepted_list)}",
            code="INVALID_VALUE",
            context={
                "value": value,
                "target_type": target_type.__name__,
                "accepted": accepted_list,
            },
        )
        self.value = value
        self.target_type = target_type
        self.accepted = accepted_list


class ConstructionException(MappingException):
    """The target type exposes no usable zero-argument constructor."""

    def __init__(self, target_type: type, reason: str | None = None) -> None:
        message = f"No zero-argument constructor for {target_type.__name__}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            code="CONSTRUCTION_FAILED",
            context={"target_type": target_type.__name__},
        )
        self.target_type = target_type
