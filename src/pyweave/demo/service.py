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
"""Package service — the sample business operations the demo aspects wrap."""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from pyweave.aop.markers import transactional
from pyweave.core.config import config_properties
from pyweave.kernel.exceptions import OperationFailedError

logger = structlog.get_logger("pyweave.demo.service")


@config_properties(prefix="pyweave.demo")
class DemoProperties(BaseModel):
    """Simulated processing delays, in seconds."""

    model_config = ConfigDict(populate_by_name=True)

    order_delay: float = Field(default=1.0, alias="order-delay", ge=0)
    track_delay: float = Field(default=0.5, alias="track-delay", ge=0)


class PackageService:
    """Orders and tracks packages after a simulated processing delay.

    *sleep* is the blocking wait used to simulate work; any exception it
    raises is logged and surfaced as :class:`OperationFailedError` with a
    generic message.
    """

    def __init__(
        self,
        properties: DemoProperties | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._properties = properties or DemoProperties()
        self._sleep = sleep

    @transactional
    def order_package(self, package_id: int) -> str:
        self._process("order", self._properties.order_delay)
        logger.info("order_processing", package_id=package_id)
        return f"Order Packaged Successfully with Id : {package_id}"

    def track_package(self, package_id: int) -> str:
        self._process("tracking", self._properties.track_delay)
        logger.info("tracking_processing", package_id=package_id)
        return f"Track Package Successfully with id : {package_id}"

    def _process(self, operation: str, delay: float) -> None:
        try:
            self._sleep(delay)
        except Exception as exc:
            logger.error("processing_interrupted", operation=operation, error=repr(exc))
            raise OperationFailedError(
                f"{operation.capitalize()} processing failed",
                code="DEMO_PROCESSING_FAILED",
                context={"operation": operation},
            ) from None
