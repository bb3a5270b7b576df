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
"""flymap Mapping: schema-less object mapping with cached plans.

The :class:`ObjectMapper` facade is the entry point. Property directives
(:class:`FieldDirective`, :class:`Nested`) and type options
(:func:`request_mapping`, :func:`response_mapping`) steer how individual
properties are resolved, converted and filtered.
"""

from flymap.mapping.batch import BatchResult
from flymap.mapping.descriptor import PropertyDescriptor, TypeDescriptor
from flymap.mapping.directives import (
    Audited,
    FieldDirective,
    MappingDirection,
    Nested,
    NullStrategy,
    RequestOptions,
    ResponseOptions,
    mapped,
    request_mapping,
    response_mapping,
)
from flymap.mapping.mapper import ObjectMapper
from flymap.mapping.nested import MappingContext
from flymap.mapping.plan import FieldMapping, MappingConfig, MappingPlan, PlanKey
from flymap.mapping.resolver import FieldPath

__all__ = [
    # Facade
    "ObjectMapper",
    "BatchResult",
    # Directives
    "Audited",
    "FieldDirective",
    "MappingDirection",
    "Nested",
    "NullStrategy",
    "RequestOptions",
    "ResponseOptions",
    "mapped",
    "request_mapping",
    "response_mapping",
    # Plans
    "FieldMapping",
    "FieldPath",
    "MappingConfig",
    "MappingContext",
    "MappingPlan",
    "PlanKey",
    "PropertyDescriptor",
    "TypeDescriptor",
]
