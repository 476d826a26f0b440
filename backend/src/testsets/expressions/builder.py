"""AST for the test-set expression language and the precedence resolver.

The parser leaves infix operators in one flat chain. This module turns
that chain into a typed tree using precedence climbing.

Operator Precedence (highest to lowest):
1. ! not (complement, prefix)
2. & and (intersection)
3. ^ xor (symmetric difference), ~ diff (difference)
4. | or (union)

All binary operators are left-associative.
"""

from dataclasses import dataclass, field
from enum import Enum

from testsets.expressions.parser import (
    CallTerm,
    ExprChain,
    GroupTerm,
    IdentTerm,
    NumberTerm,
    ParseNode,
    PatternTerm,
    PrefixedTerm,
    Parser,
    StringTerm,
)
from testsets.expressions.patterns import PatternKind
from testsets.expressions.scanner import Token, TokenType


class SetOp(Enum):
    """Binary set operators."""

    UNION = "union"
    INTERSECT = "intersect"
    DIFF = "diff"
    SYMDIFF = "symdiff"

    @property
    def precedence(self) -> int:
        return PRECEDENCE[self]


PRECEDENCE = {
    SetOp.INTERSECT: 3,
    SetOp.SYMDIFF: 2,
    SetOp.DIFF: 2,
    SetOp.UNION: 1,
}

INFIX_OPS = {
    TokenType.AND: SetOp.INTERSECT,
    TokenType.XOR: SetOp.SYMDIFF,
    TokenType.DIFF: SetOp.DIFF,
    TokenType.OR: SetOp.UNION,
}


# -----------------------------------------------------------------------------
# AST Node Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Pattern:
    """A kind-tagged text matcher (e.g. ``glob:features/*``)."""
    kind: PatternKind
    text: str
    span: tuple[int, int] = field(default=(0, 0), compare=False)


@dataclass(frozen=True)
class Literal:
    """A string or number, only meaningful as a function argument."""
    value: str | int
    span: tuple[int, int] = field(default=(0, 0), compare=False)


@dataclass(frozen=True)
class Identifier:
    """A bare name, resolved against the registry and the universe.

    Names may contain ``-``, ``.`` and ``/``; ids with other characters
    need an ``e:`` pattern.
    """
    name: str
    span: tuple[int, int] = field(default=(0, 0), compare=False)


@dataclass(frozen=True)
class FunctionCall:
    """Function call (e.g. ``custom("slow")``)."""
    name: str
    args: tuple["Node", ...] = ()
    span: tuple[int, int] = field(default=(0, 0), compare=False)


@dataclass(frozen=True)
class Not:
    """Complement with respect to the universe."""
    operand: "Node"
    span: tuple[int, int] = field(default=(0, 0), compare=False)


@dataclass(frozen=True)
class BinaryOp:
    """Binary set operation."""
    op: SetOp
    lhs: "Node"
    rhs: "Node"
    span: tuple[int, int] = field(default=(0, 0), compare=False)


Node = Pattern | Literal | Identifier | FunctionCall | Not | BinaryOp


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------


class AstBuilder:
    """Re-associates a flat parse tree into a precedence-correct AST.

    Usage:
        chain = Parser("a or b and c").parse()
        ast = AstBuilder().build(chain)
    """

    def build(self, chain: ExprChain) -> Node:
        """Build the AST for a chain."""
        if len(chain.operators) != len(chain.operands) - 1:
            raise ValueError(
                f"Malformed parse tree: {len(chain.operands)} operands "
                f"for {len(chain.operators)} operators"
            )

        operands = [self._build_operand(operand) for operand in chain.operands]
        operators = [self._to_op(token) for token in chain.operators]

        node, consumed = self._climb(operands, operators, 0, 1)
        if consumed != len(operators):
            raise ValueError("Malformed parse tree: operators left unreduced")
        return node

    def _climb(
        self,
        operands: list[Node],
        operators: list[SetOp],
        index: int,
        min_precedence: int,
    ) -> tuple[Node, int]:
        """Precedence climbing over the flat chain.

        ``index`` is the position of the next operator (and of the operand
        to its left). Returns the reduced node and the index of the first
        operator not consumed.
        """
        lhs = operands[index]

        while index < len(operators) and operators[index].precedence >= min_precedence:
            op = operators[index]
            # Left associative: the right side only absorbs tighter operators
            rhs, next_index = self._climb(operands, operators, index + 1, op.precedence + 1)
            lhs = BinaryOp(op, lhs, rhs, span=(_start(lhs), _end(rhs)))
            index = next_index

        return lhs, index

    def _to_op(self, token: Token) -> SetOp:
        if token.type not in INFIX_OPS:
            raise ValueError(f"Malformed parse tree: {token.type.name} is not an infix operator")
        return INFIX_OPS[token.type]

    def _build_operand(self, operand: PrefixedTerm) -> Node:
        node = self._build_term(operand.term)
        for prefix in reversed(operand.prefixes):
            node = Not(node, span=(prefix.position, _end(node)))
        return node

    def _build_term(self, term: ParseNode) -> Node:
        span = (term.position, term.end)

        match term:
            case PatternTerm(kind=kind, text=text):
                return Pattern(PatternKind.parse(kind), text, span=span)
            case StringTerm(value=value) | NumberTerm(value=value):
                return Literal(value, span=span)
            case IdentTerm(name=name):
                return Identifier(name, span=span)
            case CallTerm(name=name, arguments=arguments):
                return FunctionCall(
                    name, tuple(self.build(arg) for arg in arguments), span=span
                )
            case GroupTerm(expr=expr):
                return self.build(expr)
            case _:
                raise ValueError(f"Malformed parse tree: unexpected {type(term).__name__}")


def _start(node: Node) -> int:
    return node.span[0]


def _end(node: Node) -> int:
    return node.span[1]


def parse(source: str) -> Node:
    """Parse an expression string into its AST.

    Args:
        source: The expression string

    Returns:
        The AST root node

    Raises:
        ParseError: If the expression is malformed
    """
    return AstBuilder().build(Parser(source).parse())
