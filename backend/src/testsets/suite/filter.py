"""Test filters: what the run, list and update commands select tests with.

A filter is either a test-set expression or an explicit list of test ids.
Expressions are parsed eagerly so syntax errors surface before any test
is collected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from testsets.core.types import TestId, TestSet, TestUniverse
from testsets.expressions.builder import BinaryOp, FunctionCall, Node, SetOp, parse
from testsets.expressions.evaluator import Evaluator
from testsets.expressions.functions import FunctionRegistry
from testsets.expressions.patterns import PatternCache

logger = logging.getLogger(__name__)


class MissingTestsError(Exception):
    """Explicitly requested tests do not exist."""

    def __init__(self, missing: Iterable[TestId]):
        self.missing = sorted(missing)
        super().__init__("Tests not found: " + ", ".join(self.missing))


@dataclass(frozen=True)
class TestFilter:
    """Selects tests from a universe.

    Attributes:
        expression: Source text of the expression, if any
        ast: Parsed expression, None for explicit filters
        tests: Explicit test ids, empty for expression filters
    """

    __test__ = False

    expression: str | None = None
    ast: Node | None = None
    tests: tuple[TestId, ...] = ()

    @classmethod
    def from_expression(cls, expression: str, skip: bool = True) -> TestFilter:
        """Parse ``expression``; with ``skip`` the result excludes skipped tests.

        Equivalent to writing ``(expression) ~ skip()``.

        Raises:
            ParseError: If the expression is malformed
        """
        ast = parse(expression)
        if skip:
            ast = BinaryOp(SetOp.DIFF, ast, FunctionCall("skip"), span=ast.span)
        return cls(expression=expression, ast=ast)

    @classmethod
    def explicit(cls, tests: Iterable[TestId]) -> TestFilter:
        """Select exactly the given tests; skipped tests are kept."""
        return cls(tests=tuple(dict.fromkeys(tests)))

    def apply(
        self,
        universe: TestUniverse,
        registry: FunctionRegistry | None = None,
        cache: PatternCache | None = None,
        max_workers: int | None = None,
    ) -> TestSet:
        """Select tests from ``universe``.

        Raises:
            MissingTestsError: If an explicit test is not in the universe
            TestSetError: If the expression fails to evaluate
        """
        if self.ast is None:
            missing = [test_id for test_id in self.tests if test_id not in universe]
            if missing:
                raise MissingTestsError(missing)
            selected = TestSet(self.tests)
        else:
            evaluator = Evaluator(universe, registry, cache=cache, max_workers=max_workers)
            selected = evaluator.evaluate(self.ast)

        if not selected:
            logger.warning("Test set matched no tests")
        return selected
