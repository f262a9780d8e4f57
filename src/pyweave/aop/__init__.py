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
"""Aspect-Oriented Programming support for PyWeave."""

from pyweave.aop.decorators import after, after_returning, after_throwing, around, aspect, before, pointcut
from pyweave.aop.invoker import invoke, invoke_async
from pyweave.aop.markers import get_markers, marker, transactional
from pyweave.aop.pointcut import Pointcut, matches_pointcut, parse_pointcut
from pyweave.aop.registry import AdviceBinding, AspectRegistry
from pyweave.aop.types import AdviceKind, InvocationState, JoinPoint
from pyweave.aop.weaver import is_woven, weave_bean, weave_function

__all__ = [
    "AdviceBinding",
    "AdviceKind",
    "AspectRegistry",
    "InvocationState",
    "JoinPoint",
    "Pointcut",
    "after",
    "after_returning",
    "after_throwing",
    "around",
    "aspect",
    "before",
    "get_markers",
    "invoke",
    "invoke_async",
    "is_woven",
    "marker",
    "matches_pointcut",
    "parse_pointcut",
    "pointcut",
    "transactional",
    "weave_bean",
    "weave_function",
]
