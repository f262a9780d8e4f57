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
"""AspectRegistry — collects and queries advice bindings for AOP weaving."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

import structlog

from pyweave.aop.decorators import is_aspect
from pyweave.aop.pointcut import Pointcut, parse_pointcut
from pyweave.aop.types import AdviceKind, JoinPoint
from pyweave.kernel.exceptions import RegistryFrozenError

logger = structlog.get_logger("pyweave.aop.registry")


@dataclass(frozen=True)
class AdviceBinding:
    """A single piece of advice bound to a pointcut.

    Attributes:
        advice_type: When the advice runs relative to the call.
        pointcut: The parsed pointcut predicate.
        handler: Callable receiving the :class:`JoinPoint`; for aspects this
            is the bound advice method.
        expression: The pointcut expression as written.
        aspect_name: Name of the aspect that declared the advice.
    """

    advice_type: AdviceKind
    pointcut: Pointcut
    handler: Callable[[JoinPoint], Any]
    expression: str = ""
    aspect_name: str = ""

    @property
    def name(self) -> str:
        handler_name = getattr(self.handler, "__name__", repr(self.handler))
        return f"{self.aspect_name}.{handler_name}" if self.aspect_name else handler_name

    def applies_to(self, jp: JoinPoint) -> bool:
        return self.pointcut.matches(jp.operation, jp.scope, jp.markers)


def _class_members(cls: type) -> Iterator[tuple[str, Any]]:
    """Yield ``(name, attr)`` in definition order, base classes first."""
    seen: set[str] = set()
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, attr in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            # Subclass overrides win but keep the base class position.
            yield name, getattr(cls, name, attr)


class AspectRegistry:
    """Append-only, build-once registry of advice bindings.

    Bindings are kept in registration order. Registration happens during
    startup; :meth:`freeze` closes it, after which the registry is read-only
    and safe to share between concurrent callers.

    Usage::

        registry = AspectRegistry()
        registry.register_aspect(LoggingAspect())
        registry.freeze()

        bindings = registry.get_matching(jp, AdviceKind.BEFORE)
    """

    def __init__(self) -> None:
        self._bindings: list[AdviceBinding] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Close registration. Idempotent."""
        if not self._frozen:
            self._frozen = True
            logger.debug("aspect_registry_frozen", bindings=len(self._bindings))

    def register(self, binding: AdviceBinding) -> None:
        """Append *binding* to the registry.

        Raises:
            RegistryFrozenError: If :meth:`freeze` has been called.
        """
        if self._frozen:
            raise RegistryFrozenError()
        self._bindings.append(binding)
        logger.debug(
            "advice_registered",
            advice=binding.name,
            kind=str(binding.advice_type),
            pointcut=str(binding.pointcut),
        )

    def register_advice(
        self,
        advice_type: AdviceKind | str,
        expression: str,
        handler: Callable[[JoinPoint], Any],
    ) -> AdviceBinding:
        """Parse *expression* and register *handler* as a standalone advice."""
        binding = AdviceBinding(
            advice_type=AdviceKind(advice_type),
            pointcut=parse_pointcut(expression),
            handler=handler,
            expression=expression,
        )
        self.register(binding)
        return binding

    def register_aspect(self, aspect_instance: Any) -> list[AdviceBinding]:
        """Extract advice methods from *aspect_instance* and store bindings.

        Named pointcuts (``@pointcut``) are resolved first, so advice may
        reference any named pointcut of the aspect. A named pointcut may
        itself reference only pointcuts declared above it. Advice methods
        are registered in definition order.

        Raises:
            RegistryFrozenError: If :meth:`freeze` has been called.
            PointcutSyntaxError: If an expression is malformed.
            TypeError: If *aspect_instance* is not an ``@aspect``.
        """
        if self._frozen:
            raise RegistryFrozenError()
        if not is_aspect(aspect_instance):
            raise TypeError(f"{type(aspect_instance).__name__} is not decorated with @aspect")

        aspect_cls = type(aspect_instance)
        aspect_name = getattr(aspect_cls, "__pyweave_aspect_name__", aspect_cls.__name__)
        members = list(_class_members(aspect_cls))

        named: dict[str, Pointcut] = {}
        for name, attr in members:
            expression = getattr(attr, "__pyweave_pointcut_expr__", None)
            if expression is not None:
                named[name] = parse_pointcut(expression, named)

        # Parse everything before appending so a bad expression leaves no
        # partial registration behind.
        pending: list[AdviceBinding] = []
        for name, attr in members:
            advice_type = getattr(attr, "__pyweave_advice_type__", None)
            expression = getattr(attr, "__pyweave_pointcut__", None)
            if advice_type is None or expression is None:
                continue
            pending.append(
                AdviceBinding(
                    advice_type=advice_type,
                    pointcut=parse_pointcut(expression, named),
                    handler=getattr(aspect_instance, name),
                    expression=expression,
                    aspect_name=aspect_name,
                )
            )

        for binding in pending:
            self.register(binding)
        return pending

    def get_all_bindings(self) -> list[AdviceBinding]:
        """Return all registered bindings, in registration order."""
        return list(self._bindings)

    def get_matching(self, jp: JoinPoint, kind: AdviceKind | None = None) -> list[AdviceBinding]:
        """Return bindings of *kind* (or every kind) whose pointcut accepts *jp*."""
        return [
            b for b in self._bindings if (kind is None or b.advice_type == kind) and b.applies_to(jp)
        ]

    def __len__(self) -> int:
        return len(self._bindings)
