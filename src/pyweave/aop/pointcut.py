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
"""Pointcut expressions — parsing and matching for AOP advice targeting.

Expression grammar
------------------
::

    expr     := and_expr ( "||" and_expr )*
    and_expr := unary ( "&&" unary )*
    unary    := "!" unary | "(" expr ")" | primary
    primary  := "execution(" pattern ")"
              | "within(" pattern ")"
              | "@annotation(" tag ")"
              | name "()"
              | pattern

A bare pattern is shorthand for ``execution(pattern)``. Inside
``execution(...)`` a leading return-type token and a trailing ``(..)``
argument list are accepted and ignored, so ``execution(* svc.Impl.*(..))``
and ``execution(svc.Impl.*)`` are equivalent.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import NoReturn

from pyweave.kernel.exceptions import PointcutSyntaxError


def matches_pointcut(pattern: str, qualified_name: str) -> bool:
    """Check whether *qualified_name* matches a glob *pattern*.

    Pattern syntax
    --------------
    * ``*``  — matches exactly one dot-separated segment.
    * ``**`` — matches one or more segments (crosses dots).
    * Partial globs use fnmatch rules within one segment,
      e.g. ``get_*`` matches ``get_order``.

    Examples
    --------
    >>> matches_pointcut("service.*.*", "service.OrderService.create")
    True
    >>> matches_pointcut("**.*Service.*", "a.b.c.OrderService.create")
    True
    >>> matches_pointcut("*.my_method", "a.b.MyClass.my_method")
    False
    """
    return _pattern_to_regex(pattern).fullmatch(qualified_name) is not None


def _segment_to_regex(seg: str) -> str:
    """Convert a single pattern segment to a regex fragment."""
    if seg == "**":
        return r"(?:[^.]+\.)*[^.]+"
    if seg == "*":
        return r"[^.]+"

    parts: list[str] = []
    for ch in seg:
        if ch == "*":
            parts.append("[^.]*")
        elif ch == "?":
            parts.append("[^.]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


@functools.lru_cache(maxsize=256)
def _pattern_to_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(r"\.".join(_segment_to_regex(seg) for seg in pattern.split(".")))


# ---------------------------------------------------------------------------
# Pointcut predicates
# ---------------------------------------------------------------------------


class Pointcut:
    """A pure predicate over an operation, its scope and its declared markers."""

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class ExecutionPointcut(Pointcut):
    """Matches the fully-qualified operation name against a glob."""

    pattern: str

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return matches_pointcut(self.pattern, operation)

    def __str__(self) -> str:
        return f"execution({self.pattern})"


@dataclass(frozen=True)
class WithinPointcut(Pointcut):
    """Matches the containing scope (``module.Class``) against a glob."""

    pattern: str

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return bool(scope) and matches_pointcut(self.pattern, scope)

    def __str__(self) -> str:
        return f"within({self.pattern})"


@dataclass(frozen=True)
class AnnotationPointcut(Pointcut):
    """Matches operations declaring the given marker tag."""

    tag: str

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return self.tag in markers

    def __str__(self) -> str:
        return f"@annotation({self.tag})"


@dataclass(frozen=True)
class AnyOfPointcut(Pointcut):
    parts: tuple[Pointcut, ...]

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return any(p.matches(operation, scope, markers) for p in self.parts)

    def __str__(self) -> str:
        return " || ".join(str(p) for p in self.parts)


@dataclass(frozen=True)
class AllOfPointcut(Pointcut):
    parts: tuple[Pointcut, ...]

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return all(p.matches(operation, scope, markers) for p in self.parts)

    def __str__(self) -> str:
        return " && ".join(f"({p})" if isinstance(p, AnyOfPointcut) else str(p) for p in self.parts)


@dataclass(frozen=True)
class NotPointcut(Pointcut):
    inner: Pointcut

    def matches(self, operation: str, scope: str = "", markers: frozenset[str] = frozenset()) -> bool:
        return not self.inner.matches(operation, scope, markers)

    def __str__(self) -> str:
        return f"!({self.inner})"


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_DESIGNATORS = ("execution", "within", "@annotation")
_PATTERN_RE = re.compile(r"[A-Za-z0-9_.*?]+")
_NAME_REF_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_.]*)\(\)")
_TAG_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")


class _Parser:
    def __init__(self, expression: str, named: Mapping[str, Pointcut]) -> None:
        self._src = expression
        self._pos = 0
        self._named = named

    def parse(self) -> Pointcut:
        if not self._src.strip():
            raise PointcutSyntaxError(self._src, "expression is empty")
        result = self._or()
        self._skip_ws()
        if self._pos != len(self._src):
            self._fail(f"unexpected input at position {self._pos}")
        return result

    def _fail(self, reason: str) -> NoReturn:
        raise PointcutSyntaxError(self._src, reason)

    def _skip_ws(self) -> None:
        while self._pos < len(self._src) and self._src[self._pos].isspace():
            self._pos += 1

    def _accept(self, token: str) -> bool:
        self._skip_ws()
        if self._src.startswith(token, self._pos):
            self._pos += len(token)
            return True
        return False

    def _or(self) -> Pointcut:
        parts = [self._and()]
        while self._accept("||"):
            parts.append(self._and())
        return parts[0] if len(parts) == 1 else AnyOfPointcut(tuple(parts))

    def _and(self) -> Pointcut:
        parts = [self._unary()]
        while self._accept("&&"):
            parts.append(self._unary())
        return parts[0] if len(parts) == 1 else AllOfPointcut(tuple(parts))

    def _unary(self) -> Pointcut:
        if self._accept("!"):
            return NotPointcut(self._unary())
        if self._accept("("):
            inner = self._or()
            if not self._accept(")"):
                self._fail("missing closing ')'")
            return inner
        return self._primary()

    def _primary(self) -> Pointcut:
        self._skip_ws()
        for designator in _DESIGNATORS:
            if self._src.startswith(designator + "(", self._pos):
                self._pos += len(designator) + 1
                body = self._designator_body().strip()
                if not body:
                    self._fail(f"{designator}() requires an argument")
                return self._build(designator, body)

        ref = _NAME_REF_RE.match(self._src, self._pos)
        if ref is not None:
            self._pos = ref.end()
            name = ref.group(1)
            if name not in self._named:
                self._fail(f"unknown named pointcut '{name}'")
            return self._named[name]

        bare = _PATTERN_RE.match(self._src, self._pos)
        if bare is None:
            self._fail(f"expected a pointcut at position {self._pos}")
        self._pos = bare.end()
        return ExecutionPointcut(bare.group(0))

    def _designator_body(self) -> str:
        """Consume up to the ``)`` matching an already-consumed ``(``."""
        depth = 1
        start = self._pos
        while self._pos < len(self._src):
            ch = self._src[self._pos]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    body = self._src[start : self._pos]
                    self._pos += 1
                    return body
            self._pos += 1
        self._fail("missing closing ')'")

    def _build(self, designator: str, body: str) -> Pointcut:
        if designator == "@annotation":
            if _TAG_RE.fullmatch(body) is None:
                self._fail(f"invalid marker tag '{body}'")
            return AnnotationPointcut(body)

        pattern = body
        if designator == "execution":
            if pattern.endswith("(..)"):
                pattern = pattern[: -len("(..)")].rstrip()
            if " " in pattern:
                # Leading return-type token, e.g. "* svc.Impl.*".
                pattern = pattern.split()[-1]
        if _PATTERN_RE.fullmatch(pattern) is None:
            self._fail(f"invalid name pattern '{pattern}'")
        if designator == "within":
            return WithinPointcut(pattern)
        return ExecutionPointcut(pattern)


def parse_pointcut(expression: str, named: Mapping[str, Pointcut] | None = None) -> Pointcut:
    """Parse *expression* into a :class:`Pointcut`.

    *named* maps pointcut names (as referenced with ``name()``) to already
    parsed pointcuts.

    Raises:
        PointcutSyntaxError: If the expression is malformed or references
            an unknown named pointcut.
    """
    return _Parser(expression, named or {}).parse()
