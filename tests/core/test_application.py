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
"""Tests for PyWeaveApplication bootstrap."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import structlog

from pyweave.aop.decorators import aspect, before
from pyweave.core.application import PyWeaveApplication
from pyweave.core.config import Config
from pyweave.kernel.exceptions import RegistryFrozenError
from pyweave.logging.port import LoggingPort


@aspect
class CountingAspect:
    def __init__(self) -> None:
        self.count = 0

    @before("**.Greeter.*")
    def count_call(self, jp) -> None:
        self.count += 1


class RecordingLogging:
    """Logging backend that records how the application drives it."""

    level = "INFO"
    format = "console"

    def __init__(self) -> None:
        self.configured_with: Config | None = None
        self.loggers: list[str] = []

    def configure(self, config: Config) -> None:
        self.configured_with = config

    def get_logger(self, name: str) -> Any:
        self.loggers.append(name)
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        pass


class Greeter:
    def hello(self, name: str) -> str:
        return f"hello {name}"


class TestPyWeaveApplication:
    def test_defaults_when_no_config(self) -> None:
        app = PyWeaveApplication()
        assert app.name == "pyweave-demo"
        assert len(app.registry) == 0
        assert app.startup_time_seconds >= 0

    def test_config_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("pyweave:\n  app:\n    name: from-file\n")
        app = PyWeaveApplication(config_path=config_file)
        assert app.name == "from-file"
        assert str(config_file) in app.config.loaded_sources

    def test_profile_overlay(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("pyweave:\n  app:\n    name: base\n")
        (tmp_path / "pyweave-prod.yaml").write_text("pyweave:\n  app:\n    name: prod\n")
        app = PyWeaveApplication(config_path=config_file, active_profiles=["prod"])
        assert app.name == "prod"

    def test_registers_aspects_in_order(self) -> None:
        first, second = CountingAspect(), CountingAspect()
        app = PyWeaveApplication(aspects=[first, second], config=Config({}))
        handlers = [b.handler.__self__ for b in app.registry.get_all_bindings()]
        assert handlers == [first, second]

    def test_weave_applies_advice(self) -> None:
        counter = CountingAspect()
        app = PyWeaveApplication(aspects=[counter], config=Config({}))
        greeter = app.weave(Greeter())
        assert greeter.hello("a") == "hello a"
        assert greeter.hello("b") == "hello b"
        assert counter.count == 2

    def test_weave_freezes_registry(self) -> None:
        app = PyWeaveApplication(config=Config({}))
        app.weave(Greeter())
        assert app.registry.frozen
        with pytest.raises(RegistryFrozenError):
            app.registry.register_aspect(CountingAspect())

    def test_registries_are_independent(self) -> None:
        a = PyWeaveApplication(aspects=[CountingAspect()], config=Config({}))
        b = PyWeaveApplication(config=Config({}))
        assert len(a.registry) == 1
        assert len(b.registry) == 0

    def test_weaving_same_bean_twice_runs_advice_once(self) -> None:
        counter = CountingAspect()
        app = PyWeaveApplication(aspects=[counter], config=Config({}))
        greeter = app.weave(app.weave(Greeter()))
        greeter.hello("a")
        assert counter.count == 1

    def test_custom_logging_backend(self) -> None:
        backend = RecordingLogging()
        app = PyWeaveApplication(config=Config({"pyweave": {"app": {"name": "custom"}}}), logging_backend=backend)
        assert isinstance(backend, LoggingPort)
        assert app.logging is backend
        assert backend.configured_with is app.config
        assert backend.loggers == ["pyweave.core"]
