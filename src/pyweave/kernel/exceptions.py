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
"""Unified exception hierarchy for PyWeave.

All PyWeave exceptions inherit from PyWeaveException, so callers can catch
the root type to handle every toolkit error.

Categories:
- AopException: Pointcut parsing, registry lifecycle and advice failures
- BusinessException: Domain failures raised by woven services
- ConfigurationException: Configuration could not be loaded or bound
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyweave.aop.registry import AdviceBinding


# =============================================================================
# Base Exception
# =============================================================================


class PyWeaveException(Exception):
    """Base exception for all PyWeave errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "AOP_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# AOP Exceptions
# =============================================================================


class AopException(PyWeaveException):
    """Errors raised by the aspect machinery itself."""


class PointcutSyntaxError(AopException):
    """A pointcut expression could not be parsed or resolved."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(
            f"Invalid pointcut '{expression}': {reason}",
            code="AOP_POINTCUT",
            context={"expression": expression},
        )
        self.expression = expression


class RegistryFrozenError(AopException):
    """Advice was registered after the registry was frozen."""

    def __init__(self) -> None:
        super().__init__("Aspect registry is frozen; registration is closed", code="AOP_FROZEN")


class AdviceError(AopException):
    """An advice handler raised while running around a join point."""

    def __init__(self, message: str, binding: AdviceBinding, operation: str) -> None:
        super().__init__(
            message,
            code="AOP_ADVICE",
            context={"advice": binding.name, "kind": str(binding.advice_type), "operation": operation},
        )
        self.binding = binding
        self.operation = operation


class BeforeAdviceError(AdviceError):
    """A before advice raised; the original operation was not invoked."""


class AfterAdviceError(AdviceError):
    """An after-family advice raised while handling a prior outcome."""


class IncompatibleAdviceError(AopException):
    """A coroutine advice was bound to a synchronous operation."""

    def __init__(self, binding: AdviceBinding, operation: str) -> None:
        super().__init__(
            f"Advice '{binding.name}' is a coroutine and cannot run around synchronous {operation}",
            code="AOP_INCOMPATIBLE",
            context={"advice": binding.name, "operation": operation},
        )
        self.binding = binding
        self.operation = operation


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(PyWeaveException):
    """Domain rule violations and business logic errors."""


class OperationFailedError(BusinessException):
    """A service operation failed internally.

    The message is deliberately generic; the internal cause is logged by the
    service and never copied into the message.
    """


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(PyWeaveException):
    """Configuration could not be loaded, resolved or bound."""
