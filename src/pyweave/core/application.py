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
"""Application bootstrap — builds the aspect registry and weaves services."""

from __future__ import annotations

import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeVar

from pyweave.aop.registry import AspectRegistry
from pyweave.aop.weaver import weave_bean
from pyweave.core.config import Config
from pyweave.logging.port import LoggingPort
from pyweave.logging.structlog_adapter import StructlogAdapter

T = TypeVar("T")


class PyWeaveApplication:
    """Owns the configuration, logging and the aspect registry of one process.

    Startup sequence:
    1. Load configuration (framework defaults, then *config_path* if given)
    2. Configure logging from the ``pyweave.logging`` section, through
       *logging_backend* when given, otherwise :class:`StructlogAdapter`
    3. Register every aspect passed in, in order
    4. On the first :meth:`weave` call, freeze the registry and wrap the bean

    The registry is never shared implicitly: callers that need it read
    :attr:`registry` from the application they built.
    """

    def __init__(
        self,
        aspects: Iterable[Any] = (),
        config: Config | None = None,
        config_path: str | Path | None = None,
        active_profiles: list[str] | None = None,
        logging_backend: LoggingPort | None = None,
    ) -> None:
        start = time.perf_counter()

        if config is None:
            config = Config.from_file(config_path, active_profiles) if config_path else Config.defaults()
        self.config = config

        self._logging: LoggingPort = logging_backend or StructlogAdapter()
        self._logging.configure(self.config)
        self._logger = self._logging.get_logger("pyweave.core")
        self._name: str = str(self.config.get("pyweave.app.name", "pyweave-app"))

        for source in self.config.loaded_sources:
            self._logger.debug("loaded_config", source=source)

        self._registry = AspectRegistry()
        for aspect_instance in aspects:
            bindings = self._registry.register_aspect(aspect_instance)
            self._logger.info("aspect_registered", aspect=type(aspect_instance).__name__, advices=len(bindings))

        self._startup_time = time.perf_counter() - start

    @property
    def name(self) -> str:
        return self._name

    @property
    def logging(self) -> LoggingPort:
        return self._logging

    @property
    def registry(self) -> AspectRegistry:
        """The aspect registry; frozen once anything has been woven."""
        return self._registry

    @property
    def startup_time_seconds(self) -> float:
        return self._startup_time

    def weave(self, bean: T, qualified_prefix: str | None = None) -> T:
        """Wrap *bean*'s matching public methods with advice and return it."""
        woven = weave_bean(bean, self._registry, qualified_prefix)
        self._logger.info("bean_woven", app=self._name, bean=type(bean).__name__, methods=woven)
        return bean
