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
"""Logging aspects applied to the package service.

``LoggingAdviceAspect`` shows every advice kind against one named pointcut.
``PointcutShowcaseAspect`` shows the pointcut designators side by side; it is
only registered when ``pyweave.aop.showcase-aspect`` is enabled.
"""

from __future__ import annotations

from typing import Any

import structlog

from pyweave.aop.decorators import after, after_returning, after_throwing, around, aspect, before, pointcut
from pyweave.aop.types import JoinPoint

logger = structlog.get_logger("pyweave.demo.aspects")

NEGATIVE_ID_MESSAGE = "Cannot call method with negative Id "


def _identifier(jp: JoinPoint) -> Any:
    if jp.args:
        return jp.args[0]
    return jp.kwargs.get("package_id")


@aspect
class LoggingAdviceAspect:
    """Before / after / after-returning / after-throwing / around logging."""

    @pointcut("execution(* pyweave.demo.service.*.*(..))")
    def service_operations(self) -> None: ...

    @before("service_operations()")
    def log_before(self, jp: JoinPoint) -> None:
        logger.info("before_method", signature=jp.signature, kind=jp.kind)

    @after("service_operations()")
    def log_after(self, jp: JoinPoint) -> None:
        logger.info("after_method", signature=jp.signature, kind=jp.kind)

    @after_returning("service_operations()")
    def log_after_returning(self, jp: JoinPoint) -> None:
        logger.info("after_returning_method", signature=jp.signature, return_value=jp.return_value)

    @after_throwing("service_operations()")
    def log_after_throwing(self, jp: JoinPoint) -> None:
        logger.info(
            "after_throwing_method",
            signature=jp.signature,
            error=type(jp.exception).__name__,
        )

    @around("service_operations()")
    def validate_id(self, jp: JoinPoint) -> Any:
        """Reject non-positive identifiers without calling the service."""
        package_id = _identifier(jp)
        if isinstance(package_id, int) and not isinstance(package_id, bool) and package_id > 0:
            return jp.proceed()  # type: ignore[misc]
        logger.info("invalid_id_rejected", signature=jp.signature, package_id=package_id)
        return NEGATIVE_ID_MESSAGE


@aspect
class PointcutShowcaseAspect:
    """One before advice per pointcut designator, plus a named pointcut pair."""

    @before("execution(* pyweave.demo.service.PackageService.*(..))")
    def log_execution(self, jp: JoinPoint) -> None:
        logger.info("execution_before", signature=jp.signature, kind=jp.kind)

    @before("within(pyweave.demo.service.*)")
    def log_within(self, jp: JoinPoint) -> None:
        logger.info("within_before", signature=jp.signature, kind=jp.kind)

    @before("@annotation(transactional)")
    def log_annotation(self, jp: JoinPoint) -> None:
        logger.info("annotation_before", signature=jp.signature, kind=jp.kind)

    @pointcut("@annotation(transactional)")
    def transact_annotation(self) -> None: ...

    @before("transact_annotation()")
    def log_transaction_before(self, jp: JoinPoint) -> None:
        logger.info("transaction_before", signature=jp.signature, kind=jp.kind)

    @after("transact_annotation()")
    def log_transaction_after(self, jp: JoinPoint) -> None:
        logger.info("transaction_after", signature=jp.signature, kind=jp.kind)
