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
"""Tests for CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from pyweave import __version__
from pyweave.cli.console import console
from pyweave.cli.main import cli


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(console, "width", 200)


class TestCLI:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "PyWeave" in result.output
        assert "demo" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestDemoCommand:
    def test_default_ids(self):
        result = CliRunner().invoke(cli, ["demo", "--no-delay"])
        assert result.exit_code == 0, result.output
        assert "Cannot call method with negative Id" in result.output
        assert "Track Package Successfully with id : 2" in result.output

    def test_custom_ids(self):
        result = CliRunner().invoke(cli, ["demo", "--no-delay", "--order-id", "5", "--track-id", "-1"])
        assert result.exit_code == 0, result.output
        assert "Order Packaged Successfully with Id : 5" in result.output
        assert "Cannot call method with negative Id" in result.output

    def test_showcase_flag_logs_pointcut_examples(self):
        result = CliRunner().invoke(cli, ["demo", "--no-delay", "--showcase", "--order-id", "1"])
        assert result.exit_code == 0, result.output
        assert "within_before" in result.output
        assert "transaction_after" in result.output

    def test_config_file(self, tmp_path: Path):
        config_file = tmp_path / "pyweave.yaml"
        config_file.write_text("pyweave:\n  logging:\n    format: json\n  demo:\n    order-delay: 0\n    track-delay: 0\n")
        result = CliRunner().invoke(cli, ["demo", "--config", str(config_file), "--order-id", "3"])
        assert result.exit_code == 0, result.output
        assert '"event": "before_method"' in result.output
        assert "Order Packaged Successfully with Id : 3" in result.output

    def test_missing_config_file_is_rejected(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["demo", "--config", str(tmp_path / "absent.yaml")])
        assert result.exit_code != 0


class TestInfoCommand:
    def test_lists_registered_advice(self):
        result = CliRunner().invoke(cli, ["info"])
        assert result.exit_code == 0, result.output
        assert "LoggingAdviceAspect.validate_id" in result.output
        assert "around" in result.output
        assert "PointcutShowcaseAspect" not in result.output
        assert "Log format" in result.output

    def test_showcase_listed_when_enabled(self):
        result = CliRunner().invoke(cli, ["info", "--showcase"])
        assert result.exit_code == 0, result.output
        assert "PointcutShowcaseAspect" in result.output
