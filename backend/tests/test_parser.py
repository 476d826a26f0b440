"""Tests for the parser and the precedence resolver.

Tests cover:
- Parser: flat parse tree shape and syntax errors
- AstBuilder: operator precedence and associativity
"""

import pytest

from testsets.expressions import (
    AstBuilder,
    BinaryOp,
    ExprChain,
    FunctionCall,
    Identifier,
    Literal,
    Not,
    ParseError,
    Pattern,
    PatternKind,
    SetOp,
    Token,
    TokenType,
    parse,
    parse_tree,
)
from testsets.expressions.parser import (
    CallTerm,
    GroupTerm,
    IdentTerm,
    PatternTerm,
    PrefixedTerm,
    StringTerm,
)

a, b, c, d = (Identifier(name) for name in "abcd")


# =============================================================================
# Parser Tests
# =============================================================================


class TestParseTree:
    def test_flat_chain(self):
        chain = parse_tree("a or b and c")
        assert isinstance(chain, ExprChain)
        assert [op.type for op in chain.operators] == [TokenType.OR, TokenType.AND]
        assert [operand.term.name for operand in chain.operands] == ["a", "b", "c"]

    def test_prefixes(self):
        chain = parse_tree("! not a")
        operand = chain.operands[0]
        assert [p.type for p in operand.prefixes] == [TokenType.NOT, TokenType.NOT]
        assert isinstance(operand.term, IdentTerm)

    def test_function_call_with_trailing_comma(self):
        term = parse_tree("f(a, b,)").operands[0].term
        assert isinstance(term, CallTerm)
        assert term.name == "f"
        assert len(term.arguments) == 2

    def test_function_call_without_arguments(self):
        term = parse_tree("all()").operands[0].term
        assert isinstance(term, CallTerm)
        assert term.arguments == []

    def test_whitespace_before_call_parenthesis(self):
        assert isinstance(parse_tree("all ()").operands[0].term, CallTerm)

    def test_group(self):
        term = parse_tree("(a | b)").operands[0].term
        assert isinstance(term, GroupTerm)
        assert len(term.expr.operands) == 2

    def test_pattern_and_string_terms(self):
        chain = parse_tree('e:foo | "bar"')
        assert chain.operands[0].term == PatternTerm("e", "foo", position=0, end=5)
        assert isinstance(chain.operands[1].term, StringTerm)


class TestSyntaxErrors:
    def test_missing_operand(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a and")
        assert exc_info.value.offset == 5
        assert "pattern" in exc_info.value.expected

    def test_unmatched_open_parenthesis(self):
        with pytest.raises(ParseError, match="Unmatched '\\('") as exc_info:
            parse("(a")
        assert exc_info.value.offset == 2
        assert exc_info.value.expected == (")",)

    def test_unmatched_close_parenthesis(self):
        with pytest.raises(ParseError, match="Unmatched '\\)'") as exc_info:
            parse("a)")
        assert exc_info.value.offset == 1

    def test_trailing_input(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a b")
        assert exc_info.value.offset == 2
        assert exc_info.value.expected == ("infix operator", "end of input")

    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_expression(self, source):
        with pytest.raises(ParseError, match="Empty expression"):
            parse(source)

    def test_leading_infix_operator(self):
        with pytest.raises(ParseError) as exc_info:
            parse("and a")
        assert exc_info.value.offset == 0

    def test_unclosed_call(self):
        with pytest.raises(ParseError, match="Unmatched"):
            parse("f(a")

    def test_empty_argument(self):
        with pytest.raises(ParseError):
            parse("f(,)")

    def test_byte_offset_counts_utf8(self):
        with pytest.raises(ParseError) as exc_info:
            parse('"é" and')
        assert exc_info.value.offset == 7
        assert exc_info.value.byte_offset == 8

    def test_structured_form(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a and")
        data = exc_info.value.to_dict()
        assert data["kind"] == "syntax"
        assert data["offset"] == 5


# =============================================================================
# Builder Tests
# =============================================================================


class TestPrecedence:
    def test_and_binds_tighter_than_or(self):
        assert parse("a or b and c") == BinaryOp(
            SetOp.UNION, a, BinaryOp(SetOp.INTERSECT, b, c)
        )

    def test_not_binds_tightest(self):
        assert parse("not a and b") == BinaryOp(SetOp.INTERSECT, Not(a), b)

    def test_diff_is_left_associative(self):
        assert parse("a ~ b ~ c") == BinaryOp(
            SetOp.DIFF, BinaryOp(SetOp.DIFF, a, b), c
        )

    def test_xor_and_diff_share_a_tier(self):
        assert parse("a ^ b ~ c") == BinaryOp(
            SetOp.DIFF, BinaryOp(SetOp.SYMDIFF, a, b), c
        )
        assert parse("a diff b xor c") == BinaryOp(
            SetOp.SYMDIFF, BinaryOp(SetOp.DIFF, a, b), c
        )

    def test_and_binds_tighter_than_diff(self):
        assert parse("a ~ b & c") == BinaryOp(
            SetOp.DIFF, a, BinaryOp(SetOp.INTERSECT, b, c)
        )

    def test_xor_binds_tighter_than_or(self):
        assert parse("a | b ^ c") == BinaryOp(
            SetOp.UNION, a, BinaryOp(SetOp.SYMDIFF, b, c)
        )

    def test_mixed_chain(self):
        assert parse("a & b | c & d") == BinaryOp(
            SetOp.UNION,
            BinaryOp(SetOp.INTERSECT, a, b),
            BinaryOp(SetOp.INTERSECT, c, d),
        )

    def test_or_is_left_associative(self):
        assert parse("a | b | c") == BinaryOp(
            SetOp.UNION, BinaryOp(SetOp.UNION, a, b), c
        )

    def test_group_is_atomic(self):
        assert parse("(a or b) and c") == BinaryOp(
            SetOp.INTERSECT, BinaryOp(SetOp.UNION, a, b), c
        )

    def test_double_negation(self):
        assert parse("!!a") == Not(Not(a))

    def test_not_applies_to_group(self):
        assert parse("not (a or b)") == Not(BinaryOp(SetOp.UNION, a, b))


class TestTerms:
    @pytest.mark.parametrize(
        "source,kind,text",
        [
            ("glob:x*", PatternKind.GLOB, "x*"),
            ("g:x*", PatternKind.GLOB, "x*"),
            ('e:"x y"', PatternKind.EXACT, "x y"),
            ("r:^a$", PatternKind.REGEX, "^a$"),
        ],
    )
    def test_patterns(self, source, kind, text):
        assert parse(source) == Pattern(kind, text)

    def test_literals(self):
        assert parse("42") == Literal(42)
        assert parse("'x'") == Literal("x")

    def test_function_call_arguments(self):
        assert parse('custom("slow")') == FunctionCall("custom", (Literal("slow"),))
        assert parse("f(a | b, c)") == FunctionCall(
            "f", (BinaryOp(SetOp.UNION, a, b), c)
        )

    def test_spans(self):
        ast = parse("a or b")
        assert ast.span == (0, 6)
        assert ast.rhs.span == (5, 6)
        assert parse("not  a").span == (0, 6)


class TestBuilderInvariants:
    def test_operator_count_mismatch(self):
        chain = ExprChain(
            [PrefixedTerm([], IdentTerm("a"))],
            [Token(TokenType.AND, "and", 2, 5)],
        )
        with pytest.raises(ValueError, match="Malformed parse tree"):
            AstBuilder().build(chain)
