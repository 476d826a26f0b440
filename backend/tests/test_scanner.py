"""Tests for the expression scanner.

Tests cover:
- Operators, keywords, identifiers and numbers
- Quoted strings and escape decoding
- Raw pattern literals with bracket-aware scanning
- Scanner errors and their offsets
"""

import pytest

from testsets.expressions import (
    EscapeError,
    ParseError,
    Scanner,
    Token,
    TokenType,
    UnterminatedLiteralError,
)


def types(source: str) -> list[TokenType]:
    return [t.type for t in Scanner(source).tokenize()[:-1]]  # Exclude EOF


def single(source: str) -> Token:
    tokens = Scanner(source).tokenize()
    assert len(tokens) == 2, tokens
    return tokens[0]


class TestOperators:
    def test_punctuation_and_symbols(self):
        assert types("( ) , ! & | ^ ~") == [
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.COMMA,
            TokenType.NOT,
            TokenType.AND,
            TokenType.OR,
            TokenType.XOR,
            TokenType.DIFF,
        ]

    def test_keywords(self):
        assert types("not and or xor diff") == [
            TokenType.NOT,
            TokenType.AND,
            TokenType.OR,
            TokenType.XOR,
            TokenType.DIFF,
        ]

    def test_positions(self):
        tokens = Scanner("a  &\tb").tokenize()
        assert [(t.position, t.end) for t in tokens] == [(0, 1), (3, 4), (5, 6), (6, 6)]

    def test_all_whitespace_kinds_separate_tokens(self):
        assert types("a\r\nor\tb") == [TokenType.IDENTIFIER, TokenType.OR, TokenType.IDENTIFIER]


class TestWords:
    def test_identifiers(self):
        tokens = Scanner("compile-only features/a _x1").tokenize()
        assert [t.value for t in tokens[:-1]] == ["compile-only", "features/a", "_x1"]
        assert all(t.type == TokenType.IDENTIFIER for t in tokens[:-1])

    def test_identifier_with_dots(self):
        assert single("a.typ") == Token(TokenType.IDENTIFIER, "a.typ", 0, 5)

    def test_keyword_prefix_is_identifier(self):
        assert single("order") == Token(TokenType.IDENTIFIER, "order", 0, 5)

    def test_number(self):
        assert single("42") == Token(TokenType.NUMBER, 42, 0, 2)

    def test_pattern_kind_without_colon_is_identifier(self):
        assert single("glob") == Token(TokenType.IDENTIFIER, "glob", 0, 4)


class TestStrings:
    def test_double_quoted(self):
        assert single('"hello world"') == Token(TokenType.STRING, "hello world", 0, 13)

    def test_escape_decoding(self):
        assert single(r'"a\tb\u{41}"').value == "a\tbA"

    def test_simple_escapes(self):
        assert single(r'"\"q\" \\ \n\r"').value == '"q" \\ \n\r'

    def test_unicode_escape_lengths(self):
        assert single(r'"\u{9}"').value == "\t"
        assert single(r'"\u{263A}"').value == "\u263a"

    def test_single_quoted_is_verbatim(self):
        assert single(r"'a\nb'").value == r"a\nb"

    def test_single_quoted_escaped_delimiter(self):
        assert single(r"'it\'s'").value == r"it\'s"

    def test_unterminated_string(self):
        with pytest.raises(UnterminatedLiteralError) as exc_info:
            Scanner('a or "abc').tokenize()
        assert exc_info.value.offset == 5

    def test_unknown_escape(self):
        with pytest.raises(EscapeError) as exc_info:
            Scanner(r'"\q"').tokenize()
        assert exc_info.value.offset == 1
        assert "\\q" in str(exc_info.value)

    @pytest.mark.parametrize(
        "source",
        [r'"\u{zz}"', r'"\u{12345}"', r'"\u{}"', r'"\u41"', r'"\u{41"'],
    )
    def test_malformed_unicode_escape(self, source):
        with pytest.raises(EscapeError):
            Scanner(source).tokenize()

    def test_surrogate_code_point_rejected(self):
        with pytest.raises(EscapeError, match="Invalid code point"):
            Scanner(r'"\u{D800}"').tokenize()


class TestPatterns:
    def test_raw_pattern(self):
        assert single("glob:foo*") == Token(TokenType.PATTERN, ("glob", "foo*"), 0, 9)

    def test_quoted_pattern(self):
        assert single('g:"a b"') == Token(TokenType.PATTERN, ("g", "a b"), 0, 7)

    def test_braces_keep_commas(self):
        raw = single("glob:{a,b}.typ")
        quoted = single('glob:"{a,b}.typ"')
        assert raw.value == ("glob", "{a,b}.typ")
        assert quoted.value == raw.value

    def test_raw_pattern_stops_at_whitespace(self):
        tokens = Scanner("glob:a* and b").tokenize()
        assert tokens[0].value == ("glob", "a*")
        assert [t.type for t in tokens[1:-1]] == [TokenType.AND, TokenType.IDENTIFIER]

    def test_raw_pattern_stops_at_top_level_comma(self):
        assert types("f(glob:a,e:b)") == [
            TokenType.IDENTIFIER,
            TokenType.LPAREN,
            TokenType.PATTERN,
            TokenType.COMMA,
            TokenType.PATTERN,
            TokenType.RPAREN,
        ]

    def test_raw_pattern_stops_at_unmatched_closer(self):
        tokens = Scanner("(glob:a*)").tokenize()
        assert tokens[1].value == ("glob", "a*")
        assert tokens[2].type == TokenType.RPAREN

    def test_nested_regions(self):
        assert single("r:(a|(b c))x").value == ("r", "(a|(b c))x")

    def test_mismatched_closer_inside_region_is_literal(self):
        assert single("r:[)]").value == ("r", "[)]")

    def test_backslash_escapes_and_is_kept(self):
        assert single(r"g:a\ b").value == ("g", r"a\ b")
        assert single(r"r:\(x").value == ("r", r"\(x")

    def test_unterminated_class(self):
        with pytest.raises(UnterminatedLiteralError) as exc_info:
            Scanner("glob:[abc").tokenize()
        assert exc_info.value.offset == 5
        assert exc_info.value.expected == ("]",)

    def test_unterminated_nested_region(self):
        with pytest.raises(UnterminatedLiteralError) as exc_info:
            Scanner("glob:{a,[b}").tokenize()
        assert exc_info.value.offset == 8

    def test_dangling_backslash(self):
        with pytest.raises(UnterminatedLiteralError):
            Scanner("g:abc\\").tokenize()

    def test_empty_payload(self):
        with pytest.raises(ParseError) as exc_info:
            Scanner("glob: foo").tokenize()
        assert exc_info.type is ParseError
        assert exc_info.value.offset == 5


class TestScannerErrors:
    def test_unexpected_character(self):
        with pytest.raises(ParseError) as exc_info:
            Scanner("a @ b").tokenize()
        assert exc_info.value.offset == 2
        assert "@" in str(exc_info.value)

    def test_error_keeps_source(self):
        with pytest.raises(ParseError) as exc_info:
            Scanner("a @ b").tokenize()
        assert exc_info.value.source == "a @ b"
