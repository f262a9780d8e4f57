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
"""AOP decorators — @aspect, @pointcut and advice annotations."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pyweave.aop.types import AdviceKind

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# @aspect — marks a class as an AOP aspect
# ---------------------------------------------------------------------------


def aspect(cls: T) -> T:
    """Mark a class as a PyWeave aspect.

    Sets the following metadata on the class:

    * ``__pyweave_aspect__``      = True
    * ``__pyweave_aspect_name__`` = the class name
    """
    cls.__pyweave_aspect__ = True  # type: ignore[attr-defined]
    cls.__pyweave_aspect_name__ = cls.__name__  # type: ignore[attr-defined]
    return cls


def is_aspect(obj: Any) -> bool:
    """Return True if *obj* (class or instance) was decorated with ``@aspect``."""
    cls = obj if isinstance(obj, type) else type(obj)
    return bool(getattr(cls, "__pyweave_aspect__", False))


# ---------------------------------------------------------------------------
# @pointcut — named, reusable pointcut declarations
# ---------------------------------------------------------------------------


def pointcut(expression: str) -> Callable[[F], F]:
    """Declare a named pointcut on an aspect method.

    The method body is never called; its name becomes referable from advice
    expressions in the same aspect as ``name()``::

        @pointcut("@annotation(transactional)")
        def transact_annotation(self): ...

        @before("transact_annotation()")
        def log(self, jp): ...
    """

    def decorator(fn: F) -> F:
        fn.__pyweave_pointcut_expr__ = expression  # type: ignore[attr-defined]
        return fn

    return decorator


# ---------------------------------------------------------------------------
# Advice decorators — @before, @after_returning, @after_throwing, @after, @around
# ---------------------------------------------------------------------------


def _make_advice(advice_type: AdviceKind) -> Callable[[str], Callable[[F], F]]:
    """Create an advice decorator factory for the given *advice_type*.

    The returned factory takes a pointcut expression and returns a decorator
    that annotates the wrapped method with:

    * ``__pyweave_advice_type__`` — an :class:`AdviceKind`
    * ``__pyweave_pointcut__``    — the pointcut expression string
    """

    def factory(expression: str) -> Callable[[F], F]:
        def decorator(fn: F) -> F:
            fn.__pyweave_advice_type__ = advice_type  # type: ignore[attr-defined]
            fn.__pyweave_pointcut__ = expression  # type: ignore[attr-defined]
            return fn

        return decorator

    return factory


before = _make_advice(AdviceKind.BEFORE)
after_returning = _make_advice(AdviceKind.AFTER_RETURNING)
after_throwing = _make_advice(AdviceKind.AFTER_THROWING)
after = _make_advice(AdviceKind.AFTER)
around = _make_advice(AdviceKind.AROUND)
