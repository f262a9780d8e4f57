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
"""PyWeave CLI — run the woven package service demo."""

from __future__ import annotations

import platform
import sys
import time

import click
from rich.table import Table

from pyweave import __version__
from pyweave.cli.console import console, print_banner
from pyweave.core.config import Config
from pyweave.demo.app import create_demo
from pyweave.kernel.exceptions import PyWeaveException


class PyWeaveCLI(click.Group):
    """Custom Click group that shows the PyWeave banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


def _no_delay(_seconds: float) -> None:
    return None


def _load_config(config_path: str | None, profiles: tuple[str, ...], showcase: bool | None) -> Config:
    config = Config.from_file(config_path, list(profiles)) if config_path else Config.defaults()
    if showcase is not None:
        config = config.with_overrides({"pyweave": {"aop": {"showcase-aspect": showcase}}})
    return config


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML or TOML configuration file.",
)
_profile_option = click.option("--profile", "profiles", multiple=True, help="Profile overlay to merge (repeatable).")
_showcase_option = click.option(
    "--showcase/--no-showcase",
    default=None,
    help="Register the pointcut showcase aspect (default: from config).",
)


@click.group(cls=PyWeaveCLI)
@click.version_option(version=__version__, prog_name="pyweave")
def cli() -> None:
    """PyWeave — aspect-oriented logging demo CLI."""


@cli.command("demo")
@click.option("--order-id", type=int, default=-34, show_default=True, help="Identifier passed to order_package.")
@click.option("--track-id", type=int, default=2, show_default=True, help="Identifier passed to track_package.")
@click.option("--no-delay", is_flag=True, help="Skip the simulated processing delays.")
@_config_option
@_profile_option
@_showcase_option
def demo_command(
    order_id: int,
    track_id: int,
    no_delay: bool,
    config_path: str | None,
    profiles: tuple[str, ...],
    showcase: bool | None,
) -> None:
    """Call the woven package service and print each result."""
    config = _load_config(config_path, profiles, showcase)
    demo = create_demo(config, sleep=_no_delay if no_delay else time.sleep)

    calls = [
        ("order_package", order_id, demo.service.order_package),
        ("track_package", track_id, demo.service.track_package),
    ]

    table = Table(title="Results", border_style="dim")
    table.add_column("Operation", style="info")
    table.add_column("Id", justify="right")
    table.add_column("Result")

    failed = False
    for name, package_id, operation in calls:
        try:
            table.add_row(name, str(package_id), operation(package_id))
        except PyWeaveException as exc:
            failed = True
            table.add_row(name, str(package_id), f"[error]{exc}[/error]")

    console.print(table)
    if failed:
        raise SystemExit(1)


@cli.command("info")
@_config_option
@_profile_option
@_showcase_option
def info_command(config_path: str | None, profiles: tuple[str, ...], showcase: bool | None) -> None:
    """Display version information and the registered advice."""
    config = _load_config(config_path, profiles, showcase)
    demo = create_demo(config, sleep=_no_delay)

    console.print(f"\n[pyweave]PyWeave[/pyweave] [dim]v{__version__}[/dim]\n")

    env_table = Table(title="Environment", show_header=False, border_style="dim")
    env_table.add_column("Key", style="info")
    env_table.add_column("Value")
    env_table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    env_table.add_row("Platform", platform.platform())
    env_table.add_row("Config sources", ", ".join(config.loaded_sources) or "-")
    env_table.add_row("Log format", demo.app.logging.format)
    env_table.add_row("Log level", demo.app.logging.level)
    console.print(env_table)

    advice_table = Table(title="\nRegistered Advice", border_style="dim")
    advice_table.add_column("#", justify="right")
    advice_table.add_column("Advice", style="info")
    advice_table.add_column("Kind")
    advice_table.add_column("Pointcut")
    for index, binding in enumerate(demo.app.registry.get_all_bindings(), start=1):
        advice_table.add_row(str(index), binding.name, str(binding.advice_type), str(binding.pointcut))
    console.print(advice_table)
    console.print()


def main() -> None:
    cli()
