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
"""Demo wiring — the package service woven with the logging aspects."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pyweave.core.application import PyWeaveApplication
from pyweave.core.config import Config
from pyweave.demo.aspects import LoggingAdviceAspect, PointcutShowcaseAspect
from pyweave.demo.service import DemoProperties, PackageService


@dataclass
class Demo:
    app: PyWeaveApplication
    service: PackageService


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def create_demo(config: Config | None = None, sleep: Callable[[float], None] = time.sleep) -> Demo:
    """Build an application with the demo aspects and a woven PackageService."""
    config = config or Config.defaults()

    aspects: list[Any] = []
    if _as_bool(config.get("pyweave.aop.showcase-aspect", False)):
        aspects.append(PointcutShowcaseAspect())
    aspects.append(LoggingAdviceAspect())

    app = PyWeaveApplication(aspects=aspects, config=config)
    service = app.weave(PackageService(config.bind(DemoProperties), sleep=sleep))
    return Demo(app=app, service=service)
