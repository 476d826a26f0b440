"""Evaluator for the test-set expression language.

Walks the AST bottom-up and computes a TestSet against a universe
snapshot, resolving names through a FunctionRegistry and compiling
patterns through a PatternCache.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from testsets.core.types import TestSet, TestUniverse
from testsets.expressions.builder import (
    BinaryOp,
    FunctionCall,
    Identifier,
    Literal,
    Node,
    Not,
    Pattern,
    SetOp,
    parse,
)
from testsets.expressions.builtins import get_default_registry
from testsets.expressions.errors import (
    ArgumentKindError,
    ArityError,
    EvaluationError,
    TestSetError,
    UnknownFunctionError,
    UnknownIdentifierError,
)
from testsets.expressions.functions import (
    EvaluationContext,
    FunctionDefinition,
    FunctionRegistry,
)
from testsets.expressions.patterns import PatternCache

logger = logging.getLogger(__name__)

Value = TestSet | str | int

OPERATIONS = {
    SetOp.UNION: TestSet.union,
    SetOp.INTERSECT: TestSet.intersection,
    SetOp.DIFF: TestSet.difference,
    SetOp.SYMDIFF: TestSet.symmetric_difference,
}


class Evaluator:
    """Evaluates an expression AST against a universe.

    Usage:
        evaluator = Evaluator(universe)
        tests = evaluator.evaluate(parse("glob:features/* ~ skip"))

    With ``max_workers`` greater than one, disjoint subtrees of the
    operator tree are evaluated on a thread pool and combined on the
    calling thread. The result is identical to sequential evaluation.
    """

    def __init__(
        self,
        universe: TestUniverse,
        registry: FunctionRegistry | None = None,
        cache: PatternCache | None = None,
        max_workers: int | None = None,
    ):
        self.universe = universe
        self.registry = registry if registry is not None else get_default_registry()
        self.cache = cache if cache is not None else PatternCache()
        self.max_workers = max_workers
        self.context = EvaluationContext(universe)

    def evaluate(self, node: Node) -> TestSet:
        """Evaluate an AST and return the selected tests."""
        if self.max_workers is not None and self.max_workers > 1:
            value = self._evaluate_parallel(node)
        else:
            value = self._eval(node, {})

        result = self._expect_set(value, node, "expression")
        logger.debug("Selected %d of %d tests", len(result), len(self.universe))
        return result

    # -------------------------------------------------------------------------
    # Node evaluation
    # -------------------------------------------------------------------------

    def _eval(self, node: Node, done: dict[int, Future]) -> Value:
        if id(node) in done:
            return done[id(node)].result()

        match node:
            case Pattern(kind=kind, text=text):
                pattern = self.cache.get(kind, text)
                return self.universe.filter(lambda test_id, _: pattern.matches(test_id))

            case Literal(value=value):
                return value

            case Identifier():
                return self._resolve_identifier(node)

            case FunctionCall():
                return self._call(node, done)

            case Not(operand=operand):
                value = self._expect_set(self._eval(operand, done), operand, "not")
                return self.universe.complement(value)

            case BinaryOp(op=op, lhs=lhs, rhs=rhs):
                left = self._expect_set(self._eval(lhs, done), lhs, op.value)
                right = self._expect_set(self._eval(rhs, done), rhs, op.value)
                return OPERATIONS[op](left, right)

        raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _resolve_identifier(self, node: Identifier) -> Value:
        """Resolve a bare name: named set first, then an exact test id."""
        name = node.name
        func_def = self.registry.get(name) if name in self.registry else None

        if func_def is not None and func_def.is_named_set:
            return self._invoke(func_def, [])

        if name in self.universe:
            return TestSet([name])

        if func_def is not None:
            raise ArityError(name, func_def.min_args, 0, func_def.variadic, span=node.span)

        raise UnknownIdentifierError(name, node.span)

    def _call(self, node: FunctionCall, done: dict[int, Future]) -> Value:
        if node.name not in self.registry:
            raise UnknownFunctionError(node.name, node.span)

        func_def = self.registry.get(node.name)
        if not func_def.accepts_count(len(node.args)):
            raise ArityError(
                node.name,
                func_def.min_args,
                len(node.args),
                func_def.variadic,
                span=node.span,
            )

        args: list[Value] = []
        for index, arg in enumerate(node.args):
            value = self._eval(arg, done)
            param = func_def.parameter_for(index)
            if not param.kind.accepts(value):
                raise ArgumentKindError(
                    node.name, param.kind.value, _kind_name(value), index, arg.span
                )
            args.append(value)

        return self._invoke(func_def, args)

    def _invoke(self, func_def: FunctionDefinition, args: list[Value]) -> TestSet:
        try:
            selected = func_def.implementation(self.context, *args)
        except TestSetError:
            raise
        except Exception as e:
            raise EvaluationError(f"Error calling {func_def.name}: {e}") from e

        return self.universe.restrict(selected)

    def _expect_set(self, value: Value, node: Node, where: str) -> TestSet:
        if isinstance(value, TestSet):
            return value
        raise ArgumentKindError(where, "set", _kind_name(value), span=node.span)

    # -------------------------------------------------------------------------
    # Parallel evaluation
    # -------------------------------------------------------------------------

    def _evaluate_parallel(self, node: Node) -> Value:
        frontier = self._frontier(node, self.max_workers * 2)
        if len(frontier) <= 1:
            return self._eval(node, {})

        logger.debug(
            "Evaluating %d subtrees on %d workers", len(frontier), self.max_workers
        )
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="testsets-eval"
        ) as pool:
            done = {id(sub): pool.submit(self._eval, sub, {}) for sub in frontier}

        # Failed subtrees raise only when read, in sequential order
        return self._eval(node, done)

    def _frontier(self, node: Node, target: int) -> list[Node]:
        """Split the operator tree into disjoint subtrees, left to right."""
        frontier = [node]
        expanded = True

        while expanded and len(frontier) < target:
            expanded = False
            next_frontier: list[Node] = []
            for sub in frontier:
                match sub:
                    case BinaryOp(lhs=lhs, rhs=rhs):
                        next_frontier.extend((lhs, rhs))
                        expanded = True
                    case Not(operand=operand):
                        next_frontier.append(operand)
                        expanded = True
                    case _:
                        next_frontier.append(sub)
            frontier = next_frontier

        return frontier


def _kind_name(value: Any) -> str:
    if isinstance(value, TestSet):
        return "set"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int):
        return "number"
    return type(value).__name__


# -----------------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------------


def evaluate(
    expression: str | Node,
    universe: TestUniverse,
    registry: FunctionRegistry | None = None,
    *,
    cache: PatternCache | None = None,
    max_workers: int | None = None,
) -> TestSet:
    """Evaluate an expression against a universe.

    This is the main entry point for expression evaluation.

    Args:
        expression: The expression string, or an already parsed AST
        universe: The tests to select from
        registry: Named sets and functions (defaults to the built-ins)
        cache: Pattern cache to share between evaluations
        max_workers: Evaluate independent subtrees on this many threads

    Returns:
        The selected tests, sorted by id

    Example:
        tests = evaluate('glob:features/* and not skip', universe)
    """
    node = parse(expression) if isinstance(expression, str) else expression
    evaluator = Evaluator(universe, registry, cache=cache, max_workers=max_workers)
    return evaluator.evaluate(node)
