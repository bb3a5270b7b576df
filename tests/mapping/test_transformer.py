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
"""Tests for value transformation and type coercion."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from flymap.cache import MappingCacheManager
from flymap.cache.manager import FORMATTERS
from flymap.kernel.exceptions import InvalidValueException
from flymap.mapping.directives import FieldDirective
from flymap.mapping.transformer import ValueTransformer, to_strftime


class Status(Enum):
    ACTIVE = "A"
    INACTIVE = "I"


class Greeter:
    def shout(self, value: str) -> str:
        return f"{value}!"


@pytest.fixture
def transformer() -> ValueTransformer:
    return ValueTransformer(MappingCacheManager())


class TestNamedTransformers:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("upper", "HELLO WORLD "),
            ("toUpperCase", "HELLO WORLD "),
            ("trim", "hello world"),
            ("title", "Hello World "),
        ],
    )
    def test_builtin(self, transformer, name, expected):
        assert transformer.convert("hello world ", str, str, FieldDirective(transformer=name)) == expected

    def test_registered(self, transformer):
        transformer.register("reverse", lambda v: v[::-1])
        assert transformer.convert("abc", str, str, FieldDirective(transformer="reverse")) == "cba"

    def test_method_on_source_object(self, transformer):
        directive = FieldDirective(transformer="shout")
        assert transformer.convert("hi", str, str, directive, source_object=Greeter()) == "hi!"

    def test_unknown_leaves_value(self, transformer):
        assert transformer.convert("hi", str, str, FieldDirective(transformer="missing")) == "hi"

    def test_failing_transformer_leaves_value(self, transformer):
        transformer.register("explode", lambda v: 1 / 0)
        assert transformer.convert("hi", str, str, FieldDirective(transformer="explode")) == "hi"


class TestCoercion:
    def test_string_to_int(self, transformer):
        assert transformer.convert(" 42 ", str, int) == 42

    def test_int_to_string(self, transformer):
        assert transformer.convert(42, int, str) == "42"

    def test_int_to_float(self, transformer):
        assert transformer.convert(3, int, float) == 3.0

    def test_decimal(self, transformer):
        assert transformer.convert("19.99", str, Decimal) == Decimal("19.99")

    def test_uuid(self, transformer):
        text = "12345678-1234-5678-1234-567812345678"
        assert transformer.convert(text, str, UUID) == UUID(text)

    @pytest.mark.parametrize(("raw", "expected"), [("yes", True), ("0", False), ("TRUE", True), (1, True)])
    def test_bool(self, transformer, raw, expected):
        assert transformer.convert(raw, type(raw), bool) is expected

    def test_bool_is_not_taken_as_int(self, transformer):
        assert transformer.convert(True, bool, int) == 1
        assert type(transformer.convert(True, bool, int)) is int

    def test_iso_datetime(self, transformer):
        assert transformer.convert("2024-03-01T10:30:00", str, datetime) == datetime(2024, 3, 1, 10, 30)

    def test_datetime_to_date(self, transformer):
        assert transformer.convert(datetime(2024, 3, 1, 10, 30), datetime, date) == date(2024, 3, 1)

    def test_date_to_string(self, transformer):
        assert transformer.convert(date(2024, 3, 1), date, str) == "2024-03-01"

    def test_optional_target_is_unwrapped(self, transformer):
        assert transformer.convert("7", str, int | None) == 7

    def test_failed_coercion_leaves_value(self, transformer):
        assert transformer.convert("abc", str, int) == "abc"

    def test_none_stays_none(self, transformer):
        assert transformer.convert(None, str, int) is None

    def test_parse_default(self, transformer):
        assert transformer.parse_default("5", int) == 5
        assert transformer.parse_default("ACTIVE", Status) is Status.ACTIVE


class TestEnums:
    def test_exact_name(self, transformer):
        assert transformer.convert("ACTIVE", str, Status) is Status.ACTIVE

    def test_case_insensitive_name(self, transformer):
        assert transformer.convert("active", str, Status) is Status.ACTIVE

    def test_by_value(self, transformer):
        assert transformer.convert("I", str, Status) is Status.INACTIVE

    def test_enum_to_string_uses_name(self, transformer):
        assert transformer.convert(Status.ACTIVE, Status, str) == "ACTIVE"

    def test_unknown_constant_raises(self, transformer):
        with pytest.raises(InvalidValueException) as exc_info:
            transformer.convert("bogus", str, Status)
        error = exc_info.value
        assert error.accepted == ["ACTIVE", "INACTIVE"]
        assert error.code == "INVALID_VALUE"
        assert "bogus" in str(error)


class TestFormats:
    def test_to_strftime(self):
        assert to_strftime("yyyy-MM-dd HH:mm:ss") == "%Y-%m-%d %H:%M:%S"

    def test_to_strftime_quoted_literal(self):
        assert to_strftime("yyyy-MM-dd'T'HH:mm") == "%Y-%m-%dT%H:%M"

    def test_strftime_pattern_passes_through(self):
        assert to_strftime("%d/%m/%Y") == "%d/%m/%Y"

    def test_format_date_to_string(self, transformer):
        directive = FieldDirective(format="dd/MM/yyyy")
        assert transformer.convert(date(2024, 3, 1), date, str, directive) == "01/03/2024"

    def test_parse_string_to_date(self, transformer):
        directive = FieldDirective(format="yyyy-MM-dd")
        assert transformer.convert("2024-03-01", str, date, directive) == date(2024, 3, 1)

    def test_unparseable_string_is_coerced_instead(self, transformer):
        directive = FieldDirective(format="dd/MM/yyyy")
        assert transformer.convert("2024-03-01", str, date, directive) == date(2024, 3, 1)

    def test_formatters_are_cached(self):
        caches = MappingCacheManager()
        transformer = ValueTransformer(caches)
        transformer.formatter("yyyy-MM-dd")
        transformer.formatter("yyyy-MM-dd")
        assert caches.stats()[FORMATTERS]["hits"] == 1


class TestCollections:
    def test_list_to_set(self, transformer):
        assert transformer.convert([1, 2, 2], list[int], set[int]) == {1, 2}

    def test_elements_are_coerced(self, transformer):
        assert transformer.convert(["1", "2"], list[str], list[int]) == [1, 2]

    def test_tuple_to_list(self, transformer):
        assert transformer.convert((1, 2), tuple[int, ...], list[int]) == [1, 2]
