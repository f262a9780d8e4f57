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
"""AOP core types — advice kinds, invocation states and the JoinPoint."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

METHOD_EXECUTION = "method-execution"


class AdviceKind(str, Enum):
    """When an advice runs relative to the intercepted call."""

    BEFORE = "before"
    AFTER = "after"
    AFTER_RETURNING = "after_returning"
    AFTER_THROWING = "after_throwing"
    AROUND = "around"

    def __str__(self) -> str:
        return self.value


class InvocationState(str, Enum):
    """Lifecycle of a single intercepted call."""

    PENDING = "pending"
    BEFORE_RUNNING = "before_running"
    ORIGINAL_RUNNING = "original_running"
    AROUND_RUNNING = "around_running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    AFTER_RUNNING = "after_running"
    DONE = "done"


@dataclass
class JoinPoint:
    """Represents a point in program execution where advice can be applied.

    Attributes:
        target: The object whose method is being intercepted.
        method_name: Name of the method being called.
        args: Positional arguments passed to the method.
        kwargs: Keyword arguments passed to the method.
        operation: Fully-qualified operation name (``module.Class.method``).
        scope: Containing scope of the operation (``module.Class``).
        markers: Tags declared on the method with :func:`~pyweave.aop.markers.marker`.
        return_value: The return value (set after method execution).
        exception: Any exception raised during execution.
        proceed: Callable to invoke the original method (used in around advice).
        state: Current :class:`InvocationState` of the call.
        advice_errors: Failures raised by after-family advice during this call.
    """

    target: Any
    method_name: str
    args: tuple
    kwargs: dict[str, Any]
    operation: str = ""
    scope: str = ""
    markers: frozenset[str] = frozenset()
    return_value: Any = None
    exception: BaseException | None = None
    proceed: Callable[..., Any] | None = None
    state: InvocationState = InvocationState.PENDING
    advice_errors: list[Exception] = field(default_factory=list)
    replacement_exception: BaseException | None = None

    def __post_init__(self) -> None:
        if not self.operation:
            self.operation = f"{self.scope}.{self.method_name}" if self.scope else self.method_name

    @property
    def kind(self) -> str:
        """The join point kind; PyWeave only intercepts method executions."""
        return METHOD_EXECUTION

    @property
    def signature(self) -> str:
        """Human-readable signature: ``operation(argtype, ...)``."""
        arg_types = [type(a).__name__ for a in self.args]
        arg_types.extend(f"{k}={type(v).__name__}" for k, v in self.kwargs.items())
        return f"{self.operation}({', '.join(arg_types)})"

    def replace_exception(self, exc: BaseException) -> None:
        """Replace the exception propagated to the caller.

        Only meaningful from after-throwing advice. The original exception is
        kept as ``__cause__`` of the replacement.
        """
        self.replacement_exception = exc
