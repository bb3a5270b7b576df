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
"""Tests for Config: YAML/TOML loading, env overrides and property binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel, Field

from flymap.config.properties import LoggingProperties, MapperProperties
from flymap.core.config import Config, config_properties


@config_properties(prefix="flymap.mapper")
class StrictMapperSettings(BaseModel):
    max_depth: int = Field(default=15, ge=1)
    search_depth: int = 3


class TestConfigAccess:
    def test_get_dotted_key(self):
        config = Config({"flymap": {"mapper": {"max_depth": 7}}})
        assert config.get("flymap.mapper.max_depth") == 7

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_section(self):
        config = Config({"flymap": {"mapper": {"max_depth": 7, "search_depth": 2}}})
        assert config.get_section("flymap.mapper") == {"max_depth": 7, "search_depth": 2}
        assert config.get_section("flymap.unknown") == {}

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("FLYMAP_MAPPER_MAX_DEPTH", "4")
        config = Config({"flymap": {"mapper": {"max_depth": 7}}})
        assert config.get("flymap.mapper.max_depth") == "4"

    def test_env_key_for_keys_outside_flymap_namespace(self, monkeypatch):
        monkeypatch.setenv("FLYMAP_APP_NAME", "env-service")
        config = Config({"app": {"name": "file-service"}})
        assert config.get("app.name") == "env-service"

    def test_placeholder_resolution(self, monkeypatch):
        monkeypatch.setenv("MAPPER_DEPTH", "9")
        config = Config({"depth": "${MAPPER_DEPTH}", "label": "depth=${depth}", "other": "${MISSING:fallback}"})
        assert config.get("depth") == "9"
        assert config.get("label") == "depth=9"
        assert config.get("other") == "fallback"

    def test_circular_placeholder_raises(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="circular"):
            config.get("a")

    def test_unresolvable_placeholder_raises(self):
        config = Config({"a": "${nowhere}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("a")


class TestConfigFiles:
    def test_defaults_are_loaded(self):
        config = Config.defaults()
        assert config.get("flymap.mapper.max_depth") == 15
        assert config.get("flymap.mapper.search_depth") == 3
        assert config.loaded_sources == ["flymap-defaults.yaml (built-in defaults)"]

    def test_yaml_file_overrides_defaults(self, tmp_path: Path):
        config_file = tmp_path / "flymap.yaml"
        config_file.write_text("flymap:\n  mapper:\n    max_depth: 5\n")
        config = Config.from_file(config_file)
        assert config.get("flymap.mapper.max_depth") == 5
        assert config.get("flymap.mapper.search_depth") == 3
        assert config.loaded_sources[-1] == str(config_file)

    def test_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "flymap.toml"
        config_file.write_text("[flymap.mapper]\nparallel_threshold = 10\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("flymap.mapper.parallel_threshold") == 10
        assert config.get("flymap.mapper.max_depth") is None

    def test_profile_overlay_wins(self, tmp_path: Path):
        base = tmp_path / "flymap.yaml"
        base.write_text("flymap:\n  mapper:\n    max_depth: 5\n    max_workers: 2\n")
        (tmp_path / "flymap-batch.yaml").write_text("flymap:\n  mapper:\n    max_workers: 8\n")
        config = Config.from_file(base, active_profiles=["batch", "missing"])
        assert config.get("flymap.mapper.max_depth") == 5
        assert config.get("flymap.mapper.max_workers") == 8

    def test_missing_file_keeps_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("flymap.mapper.max_depth") == 15


class TestConfigBind:
    def test_bind_mapper_properties(self):
        config = Config({"flymap": {"mapper": {"max_depth": 3, "parallel_threshold": 50}}})
        props = config.bind(MapperProperties)
        assert props.max_depth == 3
        assert props.parallel_threshold == 50
        assert props.search_depth == 3

    def test_bind_coerces_env_strings(self, monkeypatch):
        monkeypatch.setenv("FLYMAP_MAPPER_MAX_WORKERS", "12")
        props = Config({}).bind(MapperProperties)
        assert props.max_workers == 12

    def test_bind_logging_properties(self):
        config = Config({"flymap": {"logging": {"format": "json", "level": {"root": "DEBUG"}}}})
        props = config.bind(LoggingProperties)
        assert props.format == "json"
        assert props.level == {"root": "DEBUG"}

    def test_bind_pydantic_model(self):
        config = Config({"flymap": {"mapper": {"max_depth": 4}}})
        settings = config.bind(StrictMapperSettings)
        assert settings.max_depth == 4

    def test_bind_pydantic_validation_error(self):
        config = Config({"flymap": {"mapper": {"max_depth": 0}}})
        with pytest.raises(ValueError, match="Configuration validation failed"):
            config.bind(StrictMapperSettings)

    def test_bind_undecorated_class_raises(self):
        @dataclass
        class Plain:
            value: int = 1

        with pytest.raises(ValueError, match="not decorated"):
            Config({}).bind(Plain)
