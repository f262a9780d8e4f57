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
"""Declared markers — tags attached to operations for ``@annotation`` pointcuts."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

_MARKERS_ATTR = "__pyweave_markers__"

TRANSACTIONAL = "transactional"


def marker(*tags: str) -> Callable[[F], F]:
    """Attach one or more marker tags to a function declaration.

    Tags accumulate when the decorator is stacked::

        @marker("audited")
        @marker("transactional")
        def transfer(self, amount): ...

    ``get_markers(transfer)`` then returns ``{"audited", "transactional"}``.
    """
    if not tags:
        raise ValueError("marker() requires at least one tag")

    def decorator(fn: F) -> F:
        existing: frozenset[str] = getattr(fn, _MARKERS_ATTR, frozenset())
        setattr(fn, _MARKERS_ATTR, existing | frozenset(tags))
        return fn

    return decorator


def get_markers(fn: Any) -> frozenset[str]:
    """Return the marker tags declared on *fn* (bound methods included)."""
    tags = getattr(fn, _MARKERS_ATTR, None)
    if tags is None:
        tags = getattr(getattr(fn, "__func__", None), _MARKERS_ATTR, frozenset())
    return frozenset(tags)


transactional = marker(TRANSACTIONAL)
