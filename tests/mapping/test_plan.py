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
"""Tests for mapping plan compilation."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from flymap.kernel.exceptions import ConstructionException, MappingException
from flymap.mapping import (
    Audited,
    MappingDirection,
    ObjectMapper,
    mapped,
    request_mapping,
    response_mapping,
)
from flymap.mapping.resolver import DIRECT, FLATTENED


@dataclass
class Address:
    city: str = ""


@dataclass
class Member(Audited):
    id: int | None = None
    name: str = ""
    age: int = 0
    address: Address | None = None


@response_mapping(Member, include_id=False, include_audit=False)
@dataclass
class MemberSummary:
    id: int | None = None
    name: str = ""
    created_at: str | None = None
    updated_by: str | None = None


@dataclass
class MemberView:
    id: int | None = None
    name: str = ""
    age: str = ""
    address_city: str = ""


@request_mapping(Member)
@dataclass
class MemberRequest:
    name: str = ""
    created_by: str | None = None


@request_mapping(Member, exclude_audit=False)
@dataclass
class MemberImport:
    name: str = ""
    created_by: str | None = None


@request_mapping(Member, strict=True)
@dataclass
class StrictMemberRequest:
    name: str = ""
    created_by: str | None = None
    nickname: str = ""


@dataclass
class MemberPatch:
    id: int | None = mapped(immutable=True)
    name: str | None = None


@dataclass
class Nick:
    nick: str = ""
    age: int = 0


class Requires:
    def __init__(self, name: str) -> None:
        self.name = name


@pytest.fixture
def mapper() -> ObjectMapper:
    return ObjectMapper()


class TestPlanCache:
    def test_plan_is_compiled_once(self, mapper):
        assert mapper.plan(Member, MemberView) is mapper.plan(Member, MemberView)

    def test_create_and_update_plans_are_distinct(self, mapper):
        assert mapper.plan(Member, MemberView) is not mapper.plan(Member, MemberView, update=True)

    def test_direction_is_inferred(self, mapper):
        assert mapper.plan(Member, MemberSummary).key.direction is MappingDirection.RESPONSE
        assert mapper.plan(MemberRequest, Member).key.direction is MappingDirection.REQUEST
        assert mapper.plan(Member, MemberView).key.direction is MappingDirection.GENERIC


class TestFieldMappings:
    def test_generic_plan(self, mapper):
        plan = mapper.plan(Member, MemberView)
        assert plan.field_names == ("id", "name", "age", "address_city")

    def test_conversion_flagged_for_differing_types(self, mapper):
        mappings = {m.name: m for m in mapper.plan(Member, MemberView).mappings}
        assert mappings["age"].needs_conversion
        assert not mappings["name"].needs_conversion

    def test_source_paths(self, mapper):
        mappings = {m.name: m for m in mapper.plan(Member, MemberView).mappings}
        assert mappings["name"].source_path.strategy == DIRECT
        assert mappings["address_city"].source_path.dotted == "address.city"
        assert mappings["address_city"].source_path.strategy == FLATTENED

    def test_unresolved_properties_are_left_out(self, mapper):
        assert mapper.plan(Member, Nick).field_names == ("age",)


class TestDirectionFilters:
    def test_response_excludes_id_and_audit(self, mapper):
        assert mapper.plan(Member, MemberSummary).field_names == ("name",)

    def test_explicit_generic_direction_keeps_everything(self, mapper):
        plan = mapper.plan(Member, MemberSummary, MappingDirection.GENERIC)
        assert plan.field_names == ("id", "name", "created_at", "updated_by")

    def test_request_excludes_target_audit(self, mapper):
        assert mapper.plan(MemberRequest, Member).field_names == ("name",)

    def test_request_may_keep_audit(self, mapper):
        assert mapper.plan(MemberImport, Member).field_names == ("created_by", "name")

    def test_strict_request_rejects_unknown_properties(self, mapper):
        with pytest.raises(MappingException, match="nickname") as exc_info:
            mapper.plan(StrictMemberRequest, Member)
        assert exc_info.value.context["unmatched"] == ["nickname"]


class TestUpdatePlans:
    def test_immutable_skipped_on_update(self, mapper):
        assert mapper.plan(MemberPatch, Member, update=True).field_names == ("name",)

    def test_immutable_kept_on_create(self, mapper):
        assert "id" in mapper.plan(MemberPatch, Member).field_names

    def test_update_plan_does_not_need_a_constructor(self, mapper):
        plan = mapper.plan(Member, Requires, update=True)
        with pytest.raises(ConstructionException):
            plan.new_target()


class TestConstruction:
    def test_missing_constructor_fails_at_compile_time(self, mapper):
        with pytest.raises(ConstructionException):
            mapper.plan(Member, Requires)


class TestOverrides:
    def test_add_mapping_invalidates_plan(self, mapper):
        before = mapper.plan(Member, Nick)
        mapper.add_mapping(Member, Nick, field_map={"name": "nick"})
        after = mapper.plan(Member, Nick)
        assert after is not before
        assert after.field_names == ("nick", "age")

    def test_exclude(self, mapper):
        mapper.add_mapping(Member, MemberView, exclude={"age", "id"})
        assert mapper.plan(Member, MemberView).field_names == ("name", "address_city")

    def test_transformer_attached(self, mapper):
        mapper.add_mapping(Member, MemberView, transformers={"name": str.upper})
        mappings = {m.name: m for m in mapper.plan(Member, MemberView).mappings}
        assert mappings["name"].transform is str.upper
