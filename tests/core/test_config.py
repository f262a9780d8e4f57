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
"""Tests for configuration system."""

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel, Field

from pyweave.core.config import DEFAULTS_SOURCE, Config, config_properties, env_key_for, merge_tree, read_document
from pyweave.demo.service import DemoProperties
from pyweave.kernel.exceptions import ConfigurationException


class TestConfig:
    def test_load_from_dict(self):
        config = Config({"app": {"name": "test-service", "port": 8080}})
        assert config.get("app.name") == "test-service"
        assert config.get("app.port") == 8080

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_through_scalar_returns_default(self):
        config = Config({"app": "flat"})
        assert config.get("app.name", "x") == "x"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("app:\n  name: my-service\n  port: 9090\n")
        config = Config.from_file(config_file)
        assert config.get("app.name") == "my-service"
        assert config.loaded_sources == [DEFAULTS_SOURCE, str(config_file)]

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.toml"
        config_file.write_text('[pyweave.demo]\norder-delay = 0.25\n')
        config = Config.from_file(config_file)
        assert config.get("pyweave.demo.order-delay") == 0.25
        assert config.get("pyweave.demo.track-delay") == 0.5

    def test_missing_file_keeps_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("pyweave.app.name") == "pyweave-demo"
        assert config.loaded_sources == [DEFAULTS_SOURCE]

    def test_skip_defaults(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("app:\n  name: bare\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("pyweave.app.name") is None

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("PYWEAVE_APP_NAME", "env-service")
        config = Config({"pyweave": {"app": {"name": "file-service"}}})
        assert config.get("pyweave.app.name") == "env-service"

    def test_env_var_override_with_hyphenated_key(self, monkeypatch):
        monkeypatch.setenv("PYWEAVE_DEMO_ORDER_DELAY", "0")
        assert Config.defaults().get("pyweave.demo.order-delay") == "0"

    def test_get_section(self):
        config = Config({"a": {"b": {"c": 1, "d": 2}}})
        assert config.get_section("a.b") == {"c": 1, "d": 2}
        assert config.get_section("a.b.c") == {}
        assert config.get_section("missing") == {}

    def test_with_overrides_deep_merges(self):
        base = Config.defaults()
        merged = base.with_overrides({"pyweave": {"aop": {"showcase-aspect": True}}})
        assert merged.get("pyweave.aop.showcase-aspect") is True
        assert merged.get("pyweave.demo.order-delay") == 1.0
        assert base.get("pyweave.aop.showcase-aspect") is False
        assert merged.loaded_sources[-1] == "overrides"


class TestProfileConfigMerging:
    def test_merge_profile_config(self, tmp_path):
        base = tmp_path / "pyweave.yaml"
        base.write_text("server:\n  port: 8080\n  host: localhost\n")
        (tmp_path / "pyweave-dev.yaml").write_text("server:\n  port: 9090\n  debug: true\n")

        config = Config.from_file(base, active_profiles=["dev"])
        assert config.get("server.port") == 9090
        assert config.get("server.host") == "localhost"
        assert config.get("server.debug") is True

    def test_later_profile_wins(self, tmp_path):
        base = tmp_path / "pyweave.yaml"
        base.write_text("db:\n  url: base\n")
        (tmp_path / "pyweave-dev.yaml").write_text("db:\n  url: dev-url\n")
        (tmp_path / "pyweave-local.yaml").write_text("db:\n  url: local-url\n")

        config = Config.from_file(base, active_profiles=["dev", "local"])
        assert config.get("db.url") == "local-url"

    def test_missing_profile_file_is_skipped(self, tmp_path):
        base = tmp_path / "pyweave.yaml"
        base.write_text("app:\n  name: test\n")

        config = Config.from_file(base, active_profiles=["nonexistent"])
        assert config.get("app.name") == "test"


class TestPlaceholderResolution:
    def test_resolve_env_var(self, monkeypatch):
        monkeypatch.setenv("MY_SECRET", "s3cret")
        config = Config({"db": {"password": "${MY_SECRET}"}})
        assert config.get("db.password") == "s3cret"

    def test_resolve_inside_text(self, monkeypatch):
        monkeypatch.setenv("SHOP_HOST", "shop.local")
        config = Config({"url": "http://${SHOP_HOST}:8080/orders"})
        assert config.get("url") == "http://shop.local:8080/orders"

    def test_resolve_with_default(self):
        config = Config({"key": "${MISSING_VAR_FOR_TEST:fallback_value}"})
        assert config.get("key") == "fallback_value"

    def test_resolve_with_empty_default(self):
        config = Config({"key": "x${MISSING_VAR_FOR_TEST:}y"})
        assert config.get("key") == "xy"

    def test_env_value_beats_default(self, monkeypatch):
        monkeypatch.setenv("MISSING_VAR_FOR_TEST", "set")
        assert Config({"key": "${MISSING_VAR_FOR_TEST:fallback}"}).get("key") == "set"

    def test_unresolvable_raises(self):
        config = Config({"key": "${MISSING_VAR_FOR_TEST}"})
        with pytest.raises(ConfigurationException, match="Cannot resolve placeholder"):
            config.get("key")


class TestReadDocument:
    def test_yml_suffix(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yml"
        config_file.write_text("app:\n  name: short-suffix\n")
        assert read_document(config_file) == {"app": {"name": "short-suffix"}}

    def test_empty_file_is_empty_mapping(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("")
        assert read_document(config_file) == {}

    def test_unsupported_suffix(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.ini"
        config_file.write_text("[app]\nname = x\n")
        with pytest.raises(ConfigurationException, match="Unsupported configuration format"):
            Config.from_file(config_file)

    def test_malformed_yaml(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("app: [unclosed\n")
        with pytest.raises(ConfigurationException, match="Cannot parse"):
            Config.from_file(config_file)

    def test_top_level_must_be_mapping(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationException, match="mapping"):
            read_document(config_file)


def test_env_key_for():
    assert env_key_for("pyweave.demo.order-delay") == "PYWEAVE_DEMO_ORDER_DELAY"
    assert env_key_for("app.name") == "PYWEAVE_APP_NAME"


def test_merge_tree_keeps_siblings():
    merged = merge_tree({"a": {"b": 1, "c": 2}, "x": 1}, {"a": {"b": 3}})
    assert merged == {"a": {"b": 3, "c": 2}, "x": 1}


class TestConfigProperties:
    def test_bind_to_dataclass(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            url: str = "sqlite:///test.db"
            pool_size: int = 5

        config = Config({"database": {"url": "postgresql://localhost/mydb", "pool_size": "20"}})
        db_config = config.bind(DatabaseConfig)
        assert db_config.url == "postgresql://localhost/mydb"
        assert db_config.pool_size == 20

    def test_bind_to_pydantic_model(self):
        @config_properties(prefix="svc")
        class ServiceConfig(BaseModel):
            port: int = Field(default=8080, ge=1, le=65535)

        assert Config({"svc": {"port": 9000}}).bind(ServiceConfig).port == 9000
        assert Config({}).bind(ServiceConfig).port == 8080

    def test_pydantic_validation_failure(self):
        @config_properties(prefix="svc")
        class ServiceConfig(BaseModel):
            port: int = Field(default=8080, ge=1, le=65535)

        with pytest.raises(ConfigurationException, match="validation failed"):
            Config({"svc": {"port": 0}}).bind(ServiceConfig)

    def test_bind_requires_decorator(self):
        @dataclass
        class Plain:
            x: int = 1

        with pytest.raises(ConfigurationException):
            Config({}).bind(Plain)

    def test_bind_demo_properties_from_defaults(self):
        props = Config.defaults().bind(DemoProperties)
        assert props.order_delay == 1.0
        assert props.track_delay == 0.5

    def test_bind_applies_env_override(self, monkeypatch):
        monkeypatch.setenv("PYWEAVE_DEMO_TRACK_DELAY", "0.05")
        props = Config.defaults().bind(DemoProperties)
        assert props.track_delay == 0.05

    def test_bind_bad_scalar_raises(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            pool_size: int = 5

        with pytest.raises(ConfigurationException, match="pool_size"):
            Config({"database": {"pool_size": "many"}}).bind(DatabaseConfig)

    def test_bind_rejects_plain_class(self):
        @config_properties(prefix="svc")
        class Plain:
            pass

        with pytest.raises(ConfigurationException, match="dataclass or a pydantic model"):
            Config({"svc": {}}).bind(Plain)
