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
"""structlog-backed logging for PyWeave applications."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from pyweave.core.config import Config

_RENDERERS: dict[str, Callable[[], Processor]] = {
    "console": structlog.dev.ConsoleRenderer,
    "json": structlog.processors.JSONRenderer,
    "logfmt": structlog.processors.LogfmtRenderer,
}


def _app_name_stamper(app_name: str) -> Processor:
    """Processor adding ``app`` to every event that does not set it."""

    def stamp(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        return event_dict

    return stamp


class StructlogAdapter:
    """Default logging adapter backed by structlog.

    Configuration keys:

    - ``pyweave.logging.level.root`` plus ``pyweave.logging.level.<logger>``
      per-logger overrides.
    - ``pyweave.logging.format``: ``console``, ``json`` or ``logfmt``.
      Unknown values render as ``console``.
    - ``pyweave.app.name``: stamped on each event as ``app``.

    Loggers are not cached so a later :meth:`configure` call, or
    ``structlog.testing.capture_logs``, applies to module-level loggers too.
    """

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}

    @property
    def level(self) -> str:
        return self._root_level

    @property
    def format(self) -> str:
        return self._format

    def configure(self, config: Config) -> None:
        levels = {str(k): str(v).upper() for k, v in config.get_section("pyweave.logging.level").items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels

        fmt = str(config.get("pyweave.logging.format", "console")).lower()
        self._format = fmt if fmt in _RENDERERS else "console"

        app_name = str(config.get("pyweave.app.name", "pyweave-app"))
        structlog.configure(
            processors=self._processors(app_name),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of the stdlib logger *name*; unknown levels mean INFO."""
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _processors(self, app_name: str) -> list[Processor]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _app_name_stamper(app_name),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _RENDERERS[self._format](),
        ]
