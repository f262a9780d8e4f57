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
"""AOP weaver — wraps service methods with matching advice chains."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any

import structlog

from pyweave.aop.invoker import invoke, invoke_async
from pyweave.aop.markers import get_markers
from pyweave.aop.registry import AdviceBinding, AspectRegistry
from pyweave.aop.types import JoinPoint
from pyweave.kernel.exceptions import IncompatibleAdviceError

logger = structlog.get_logger("pyweave.aop.weaver")

_WOVEN_ATTR = "__pyweave_woven__"


def qualified_prefix_for(bean: Any) -> str:
    """Default scope for *bean*: ``module.ClassName``."""
    cls = type(bean)
    return f"{cls.__module__}.{cls.__qualname__}"


def weave_bean(bean: Any, registry: AspectRegistry, qualified_prefix: str | None = None) -> list[str]:
    """Weave advice into public methods of *bean*.

    For each public method (name not starting with ``_``), a probe join point
    with operation ``f"{qualified_prefix}.{method_name}"``, scope
    *qualified_prefix* and the method's declared markers is matched against
    the *registry*. If anything matches, the method is replaced on the
    instance with a wrapper that runs the advice chain on every call.

    Weaving ends the registration phase: the registry is frozen first.
    Methods that are already woven are left alone, so weaving a bean twice
    does not run its advice twice. Nothing is replaced unless every matching
    method can be woven.

    Returns:
        Names of the methods that were wrapped.

    Raises:
        IncompatibleAdviceError: A coroutine advice matches a synchronous method.
    """
    registry.freeze()
    prefix = qualified_prefix or qualified_prefix_for(bean)
    wrappers: dict[str, Callable[..., Any]] = {}

    for attr_name in dir(bean):
        if attr_name.startswith("_"):
            continue

        attr = getattr(bean, attr_name, None)
        if attr is None or not callable(attr) or isinstance(attr, type) or is_woven(attr):
            continue

        markers = get_markers(attr)
        probe = JoinPoint(target=bean, method_name=attr_name, args=(), kwargs={}, scope=prefix, markers=markers)
        bindings = registry.get_matching(probe)
        if not bindings:
            continue

        _check_compatible(attr, bindings, probe.operation)
        wrappers[attr_name] = _build_wrapper(bean, attr_name, attr, prefix, markers, registry)

    for attr_name, wrapper in wrappers.items():
        setattr(bean, attr_name, wrapper)

    woven = list(wrappers)
    if woven:
        logger.debug("bean_woven", scope=prefix, methods=woven)
    return woven


def weave_function(
    fn: Callable[..., Any],
    registry: AspectRegistry,
    qualified_name: str | None = None,
) -> Callable[..., Any]:
    """Return *fn* wrapped with the advice chain, for module-level functions.

    *qualified_name* defaults to ``f"{fn.__module__}.{fn.__qualname__}"``;
    its containing scope is everything before the last dot. An already
    woven *fn* is returned unchanged.
    """
    registry.freeze()
    if is_woven(fn):
        return fn

    name = qualified_name or f"{fn.__module__}.{fn.__qualname__}"
    scope, _, method_name = name.rpartition(".")
    markers = get_markers(fn)
    probe = JoinPoint(target=None, method_name=method_name, args=(), kwargs={}, scope=scope, markers=markers)
    _check_compatible(fn, registry.get_matching(probe), probe.operation)
    return _build_wrapper(None, method_name, fn, scope, markers, registry)


def is_woven(fn: Any) -> bool:
    """True for wrappers produced by the weaver."""
    return getattr(fn, _WOVEN_ATTR, False) is True


def _check_compatible(original: Callable[..., Any], bindings: list[AdviceBinding], operation: str) -> None:
    if inspect.iscoroutinefunction(original):
        return
    for binding in bindings:
        if inspect.iscoroutinefunction(binding.handler):
            raise IncompatibleAdviceError(binding, operation)


def _build_wrapper(
    target: Any,
    method_name: str,
    original: Callable[..., Any],
    scope: str,
    markers: frozenset[str],
    registry: AspectRegistry,
) -> Callable[..., Any]:
    def _join_point(args: tuple, kwargs: dict[str, Any]) -> JoinPoint:
        return JoinPoint(
            target=target,
            method_name=method_name,
            args=args,
            kwargs=kwargs,
            scope=scope,
            markers=markers,
        )

    wrapper: Callable[..., Any]
    if inspect.iscoroutinefunction(original):

        @functools.wraps(original)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            return await invoke_async(_join_point(args, kwargs), original, registry)

        wrapper = async_wrapper
    else:

        @functools.wraps(original)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            return invoke(_join_point(args, kwargs), original, registry)

        wrapper = sync_wrapper

    setattr(wrapper, _WOVEN_ATTR, True)
    return wrapper
