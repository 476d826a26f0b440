"""Parser for the test-set expression language.

Converts a stream of tokens into a flat parse tree:

    expr      := prefix* term (infix prefix* term)*
    term      := pattern | string | func-call | identifier | number | "(" expr ")"
    prefix    := "!" | "not"
    infix     := "^" | "&" | "~" | "|" | "xor" | "and" | "diff" | "or"
    func-call := identifier "(" (expr ("," expr)* ","?)? ")"

All infix operators live on one level; the resulting chain is
re-associated by precedence in ``testsets.expressions.builder``.
"""

from dataclasses import dataclass, field

from testsets.expressions.errors import ParseError
from testsets.expressions.scanner import Scanner, Token, TokenType


# -----------------------------------------------------------------------------
# Parse tree
# -----------------------------------------------------------------------------


@dataclass
class ParseNode:
    """Base class for parse tree nodes."""
    position: int = field(default=0, kw_only=True)
    end: int = field(default=0, kw_only=True)


@dataclass
class PatternTerm(ParseNode):
    """``kind:text`` pattern."""
    kind: str
    text: str


@dataclass
class StringTerm(ParseNode):
    value: str


@dataclass
class NumberTerm(ParseNode):
    value: int


@dataclass
class IdentTerm(ParseNode):
    """Bare identifier not followed by ``(``."""
    name: str


@dataclass
class CallTerm(ParseNode):
    name: str
    arguments: list["ExprChain"]


@dataclass
class GroupTerm(ParseNode):
    """Parenthesized sub-expression."""
    expr: "ExprChain"


@dataclass
class PrefixedTerm(ParseNode):
    """A term with its prefix operators, outermost first."""
    prefixes: list[Token]
    term: ParseNode


@dataclass
class ExprChain(ParseNode):
    """Flat ``operand (operator operand)*`` chain.

    ``len(operators) == len(operands) - 1`` for any chain produced by the
    parser.
    """
    operands: list[PrefixedTerm]
    operators: list[Token]


INFIX_TYPES = (TokenType.AND, TokenType.OR, TokenType.XOR, TokenType.DIFF)

TERM_EXPECTED = ("pattern", "string", "number", "identifier", "function call", "(")


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class Parser:
    """Recursive descent parser producing a flat parse tree.

    Usage:
        parser = Parser('glob:features/* and not skip')
        chain = parser.parse()
    """

    def __init__(self, source: str):
        self.source = source
        self.scanner = Scanner(source)
        self.tokens = self.scanner.tokenize()
        self.position = 0

    def parse(self) -> ExprChain:
        """Parse the expression and return the root chain."""
        if self._is_at_end():
            raise ParseError("Empty expression", 0, TERM_EXPECTED, self.source)

        chain = self._parse_expr()

        if not self._is_at_end():
            token = self._current()
            if token.type == TokenType.RPAREN:
                message = "Unmatched ')'"
            else:
                message = f"Unexpected token '{self._text(token)}'"
            raise ParseError(
                message, token.position, ("infix operator", "end of input"), self.source
            )

        return chain

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _current(self) -> Token:
        """Get current token."""
        if self.position >= len(self.tokens):
            return Token(TokenType.EOF, None, len(self.source), len(self.source))
        return self.tokens[self.position]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        self.position += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self._current().type in types

    def _consume(self, token_type: TokenType, message: str, expected: str) -> Token:
        """Consume a token of the expected type, or raise error."""
        if self._current().type == token_type:
            return self._advance()
        raise ParseError(message, self._current().position, (expected,), self.source)

    def _text(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return self.source[token.position:token.end]

    # -------------------------------------------------------------------------
    # Productions
    # -------------------------------------------------------------------------

    def _parse_expr(self) -> ExprChain:
        """Parse a flat chain of prefixed terms joined by infix operators."""
        start = self._current().position
        operands = [self._parse_operand()]
        operators: list[Token] = []

        while self._match(*INFIX_TYPES):
            operators.append(self._advance())
            operands.append(self._parse_operand())

        return ExprChain(operands, operators, position=start, end=operands[-1].end)

    def _parse_operand(self) -> PrefixedTerm:
        """Parse ``prefix* term``."""
        start = self._current().position
        prefixes: list[Token] = []

        while self._match(TokenType.NOT):
            prefixes.append(self._advance())

        term = self._parse_term()
        return PrefixedTerm(prefixes, term, position=start, end=term.end)

    def _parse_term(self) -> ParseNode:
        token = self._current()

        if token.type == TokenType.PATTERN:
            self._advance()
            kind, text = token.value
            return PatternTerm(kind, text, position=token.position, end=token.end)

        if token.type == TokenType.STRING:
            self._advance()
            return StringTerm(token.value, position=token.position, end=token.end)

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberTerm(token.value, position=token.position, end=token.end)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._match(TokenType.LPAREN):
                return self._parse_function_call(token)
            return IdentTerm(token.value, position=token.position, end=token.end)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expr()
            closing = self._consume(
                TokenType.RPAREN,
                f"Unmatched '(' at position {token.position}",
                ")",
            )
            return GroupTerm(expr, position=token.position, end=closing.end)

        if token.type == TokenType.EOF:
            raise ParseError(
                "Expected operand, found end of input",
                token.position,
                TERM_EXPECTED,
                self.source,
            )

        raise ParseError(
            f"Unexpected token '{self._text(token)}'",
            token.position,
            TERM_EXPECTED,
            self.source,
        )

    def _parse_function_call(self, name: Token) -> CallTerm:
        """Parse the argument list of a call, allowing a trailing comma."""
        opening = self._consume(TokenType.LPAREN, "Expected '(' after function name", "(")

        arguments: list[ExprChain] = []

        while not self._match(TokenType.RPAREN):
            arguments.append(self._parse_expr())
            if not self._match(TokenType.COMMA):
                break
            self._advance()

        closing = self._consume(
            TokenType.RPAREN,
            f"Unmatched '(' at position {opening.position}",
            ")",
        )

        return CallTerm(name.value, arguments, position=name.position, end=closing.end)


def parse_tree(source: str) -> ExprChain:
    """Convenience function to parse an expression into its flat parse tree."""
    return Parser(source).parse()
