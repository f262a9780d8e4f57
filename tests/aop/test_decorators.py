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
"""Tests for declared markers and the AOP decorators."""

from __future__ import annotations

import pytest

from pyweave.aop.decorators import (
    after,
    after_returning,
    after_throwing,
    around,
    aspect,
    before,
    is_aspect,
    pointcut,
)
from pyweave.aop.markers import TRANSACTIONAL, get_markers, marker, transactional
from pyweave.aop.types import AdviceKind


class TestMarkers:
    def test_marker_sets_tags(self) -> None:
        @marker("audited")
        def fn() -> None: ...

        assert get_markers(fn) == frozenset({"audited"})

    def test_stacked_markers_accumulate(self) -> None:
        @marker("audited")
        @marker("cached", "slow")
        def fn() -> None: ...

        assert get_markers(fn) == frozenset({"audited", "cached", "slow"})

    def test_transactional_marker(self) -> None:
        @transactional
        def fn() -> None: ...

        assert TRANSACTIONAL in get_markers(fn)

    def test_unmarked_function_has_no_markers(self) -> None:
        def fn() -> None: ...

        assert get_markers(fn) == frozenset()

    def test_bound_method_exposes_markers(self) -> None:
        class Svc:
            @transactional
            def save(self) -> None: ...

        assert get_markers(Svc().save) == frozenset({TRANSACTIONAL})

    def test_marker_requires_a_tag(self) -> None:
        with pytest.raises(ValueError):
            marker()


class TestAspectDecorator:
    def test_sets_metadata(self) -> None:
        @aspect
        class Audit:
            pass

        assert Audit.__pyweave_aspect__ is True
        assert Audit.__pyweave_aspect_name__ == "Audit"
        assert is_aspect(Audit)
        assert is_aspect(Audit())

    def test_plain_class_is_not_aspect(self) -> None:
        class Plain:
            pass

        assert not is_aspect(Plain())


class TestAdviceDecorators:
    @pytest.mark.parametrize(
        ("decorator", "kind"),
        [
            (before, AdviceKind.BEFORE),
            (after, AdviceKind.AFTER),
            (after_returning, AdviceKind.AFTER_RETURNING),
            (after_throwing, AdviceKind.AFTER_THROWING),
            (around, AdviceKind.AROUND),
        ],
    )
    def test_annotates_kind_and_expression(self, decorator, kind) -> None:
        @decorator("svc.*.*")
        def advice(self, jp) -> None: ...

        assert advice.__pyweave_advice_type__ is kind
        assert advice.__pyweave_pointcut__ == "svc.*.*"

    def test_returns_same_function(self) -> None:
        def advice(self, jp) -> None: ...

        assert before("x.*")(advice) is advice

    def test_named_pointcut_declaration(self) -> None:
        @pointcut("@annotation(transactional)")
        def tx(self) -> None: ...

        assert tx.__pyweave_pointcut_expr__ == "@annotation(transactional)"
        assert not hasattr(tx, "__pyweave_advice_type__")
