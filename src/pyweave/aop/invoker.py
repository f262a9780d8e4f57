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
"""Invocation interceptor — runs the advice chain around a single call.

Ordering for one invocation:

1. ``@before`` advice, in registration order. A failure aborts the call with
   :class:`BeforeAdviceError`; only ``@after`` advice still runs.
2. The first matching ``@around`` advice wraps the original through
   ``jp.proceed``. Further matching ``@around`` advice is skipped.
   Without an ``@around`` the original runs exactly once.
3. On success ``@after_returning`` then ``@after`` advice runs.
4. On failure ``@after_throwing`` then ``@after`` advice runs and the failure
   is re-raised, unless an ``@after_throwing`` advice called
   :meth:`JoinPoint.replace_exception`. Non-``Exception`` failures such as
   cancellation only run ``@after`` advice.

Failures inside after-family advice never replace the call outcome. They are
logged, collected on ``jp.advice_errors`` and, on the failure path, attached
to the propagated exception as notes.

Synchronous :func:`invoke` never awaits: an advice returning an awaitable
fails with :class:`IncompatibleAdviceError`, handled like any advice failure.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from pyweave.aop.registry import AdviceBinding, AspectRegistry
from pyweave.aop.types import AdviceKind, InvocationState, JoinPoint
from pyweave.kernel.exceptions import AfterAdviceError, BeforeAdviceError, IncompatibleAdviceError

logger = structlog.get_logger("pyweave.aop.invoker")


@dataclass
class _AdviceChain:
    """Matching bindings for one join point, grouped by advice kind."""

    before: list[AdviceBinding]
    around: AdviceBinding | None
    after_returning: list[AdviceBinding]
    after_throwing: list[AdviceBinding]
    after: list[AdviceBinding]

    @classmethod
    def resolve(cls, jp: JoinPoint, registry: AspectRegistry) -> _AdviceChain:
        arounds = registry.get_matching(jp, AdviceKind.AROUND)
        for skipped in arounds[1:]:
            logger.debug(
                "around_advice_skipped",
                advice=skipped.name,
                honoured=arounds[0].name,
                operation=jp.operation,
            )
        return cls(
            before=registry.get_matching(jp, AdviceKind.BEFORE),
            around=arounds[0] if arounds else None,
            after_returning=registry.get_matching(jp, AdviceKind.AFTER_RETURNING),
            after_throwing=registry.get_matching(jp, AdviceKind.AFTER_THROWING),
            after=registry.get_matching(jp, AdviceKind.AFTER),
        )


def _before_failure(jp: JoinPoint, binding: AdviceBinding, exc: Exception) -> BeforeAdviceError:
    logger.warning("before_advice_failed", advice=binding.name, operation=jp.operation, error=str(exc))
    return BeforeAdviceError(
        f"Before advice '{binding.name}' failed for {jp.operation}: {exc}", binding, jp.operation
    )


def _record_after_failure(jp: JoinPoint, binding: AdviceBinding, exc: Exception) -> None:
    error = AfterAdviceError(
        f"{binding.advice_type} advice '{binding.name}' failed for {jp.operation}: {exc}",
        binding,
        jp.operation,
    )
    error.__cause__ = exc
    jp.advice_errors.append(error)
    logger.error(
        "after_advice_failed",
        advice=binding.name,
        kind=str(binding.advice_type),
        operation=jp.operation,
        error=str(exc),
    )


def _finish_failure(jp: JoinPoint, exc: BaseException) -> BaseException | None:
    """Return the replacement exception, if one was chosen.

    Advice failures are attached as notes to whichever exception the caller
    will receive.
    """
    raised = jp.replacement_exception if jp.replacement_exception is not None else exc
    for error in jp.advice_errors:
        raised.add_note(str(error))
    jp.state = InvocationState.DONE
    return jp.replacement_exception


# ---------------------------------------------------------------------------
# Synchronous invocation
# ---------------------------------------------------------------------------


def _call_sync(binding: AdviceBinding, jp: JoinPoint) -> Any:
    result = binding.handler(jp)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise IncompatibleAdviceError(binding, jp.operation)
    return result


def _run_after_family(jp: JoinPoint, bindings: list[AdviceBinding]) -> None:
    for binding in bindings:
        try:
            _call_sync(binding, jp)
        except Exception as exc:
            _record_after_failure(jp, binding, exc)


def invoke(jp: JoinPoint, original: Callable[..., Any], registry: AspectRegistry) -> Any:
    """Run *original* for *jp* inside the matching advice chain."""
    chain = _AdviceChain.resolve(jp, registry)

    jp.state = InvocationState.BEFORE_RUNNING
    for binding in chain.before:
        try:
            _call_sync(binding, jp)
        except Exception as exc:
            failure = _before_failure(jp, binding, exc)
            jp.exception = failure
            jp.state = InvocationState.AFTER_RUNNING
            _run_after_family(jp, chain.after)
            _finish_failure(jp, failure)
            raise failure from exc

    try:
        if chain.around is not None:

            def proceed(*args: Any, **kwargs: Any) -> Any:
                if args or kwargs:
                    return original(*args, **kwargs)
                return original(*jp.args, **jp.kwargs)

            jp.proceed = proceed
            jp.state = InvocationState.AROUND_RUNNING
            result = _call_sync(chain.around, jp)
        else:
            jp.state = InvocationState.ORIGINAL_RUNNING
            result = original(*jp.args, **jp.kwargs)
    except Exception as exc:
        jp.exception = exc
        jp.state = InvocationState.FAILED
        _run_after_family(jp, chain.after_throwing)
        jp.state = InvocationState.AFTER_RUNNING
        _run_after_family(jp, chain.after)
        replacement = _finish_failure(jp, exc)
        if replacement is not None:
            raise replacement from exc
        raise
    except BaseException as exc:
        # Cancellation and interpreter exit skip after-throwing advice.
        jp.exception = exc
        jp.state = InvocationState.AFTER_RUNNING
        _run_after_family(jp, chain.after)
        jp.state = InvocationState.DONE
        raise

    jp.return_value = result
    jp.state = InvocationState.SUCCEEDED
    _run_after_family(jp, chain.after_returning)
    jp.state = InvocationState.AFTER_RUNNING
    _run_after_family(jp, chain.after)
    jp.state = InvocationState.DONE
    return result


# ---------------------------------------------------------------------------
# Asynchronous invocation
# ---------------------------------------------------------------------------


async def _call_handler(binding: AdviceBinding, jp: JoinPoint) -> Any:
    result = binding.handler(jp)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _arun_after_family(jp: JoinPoint, bindings: list[AdviceBinding]) -> None:
    for binding in bindings:
        try:
            await _call_handler(binding, jp)
        except Exception as exc:
            _record_after_failure(jp, binding, exc)


async def invoke_async(
    jp: JoinPoint,
    original: Callable[..., Awaitable[Any]],
    registry: AspectRegistry,
) -> Any:
    """Async counterpart of :func:`invoke`.

    Advice handlers may be plain functions or coroutines. Inside an
    ``@around`` advice, ``jp.proceed()`` returns an awaitable.
    """
    chain = _AdviceChain.resolve(jp, registry)

    jp.state = InvocationState.BEFORE_RUNNING
    for binding in chain.before:
        try:
            await _call_handler(binding, jp)
        except Exception as exc:
            failure = _before_failure(jp, binding, exc)
            jp.exception = failure
            jp.state = InvocationState.AFTER_RUNNING
            await _arun_after_family(jp, chain.after)
            _finish_failure(jp, failure)
            raise failure from exc

    try:
        if chain.around is not None:

            async def proceed(*args: Any, **kwargs: Any) -> Any:
                if args or kwargs:
                    return await original(*args, **kwargs)
                return await original(*jp.args, **jp.kwargs)

            jp.proceed = proceed
            jp.state = InvocationState.AROUND_RUNNING
            result = await _call_handler(chain.around, jp)
        else:
            jp.state = InvocationState.ORIGINAL_RUNNING
            result = await original(*jp.args, **jp.kwargs)
    except Exception as exc:
        jp.exception = exc
        jp.state = InvocationState.FAILED
        await _arun_after_family(jp, chain.after_throwing)
        jp.state = InvocationState.AFTER_RUNNING
        await _arun_after_family(jp, chain.after)
        replacement = _finish_failure(jp, exc)
        if replacement is not None:
            raise replacement from exc
        raise
    except BaseException as exc:
        jp.exception = exc
        jp.state = InvocationState.AFTER_RUNNING
        await _arun_after_family(jp, chain.after)
        jp.state = InvocationState.DONE
        raise

    jp.return_value = result
    jp.state = InvocationState.SUCCEEDED
    await _arun_after_family(jp, chain.after_returning)
    jp.state = InvocationState.AFTER_RUNNING
    await _arun_after_family(jp, chain.after)
    jp.state = InvocationState.DONE
    return result
