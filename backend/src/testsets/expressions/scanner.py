"""Scanner for the test-set expression language.

Converts expression strings into a stream of tokens for the parser.

Token types:
- Literals: STRING, NUMBER, PATTERN
- Identifiers: IDENTIFIER (named sets, function names, bare test ids)
- Operators: NOT (prefix), AND, OR, XOR, DIFF (infix)
- Punctuation: LPAREN, RPAREN, COMMA

Patterns are scanned as a single token: a pattern kind word directly
followed by ``:`` and then either a quoted string or a raw literal. Raw
literals track nested ``()``, ``[]`` and ``{}`` regions so that glob
alternations and regex groups are not split on whitespace or commas.
"""

import re
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from testsets.expressions.errors import (
    EscapeError,
    ParseError,
    UnterminatedLiteralError,
)


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    STRING = auto()
    NUMBER = auto()
    PATTERN = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Prefix operators
    NOT = auto()         # ! or not

    # Infix operators
    AND = auto()         # & or and
    OR = auto()          # | or or
    XOR = auto()         # ^ or xor
    DIFF = auto()        # ~ or diff

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    COMMA = auto()       # ,

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the scanner.

    Attributes:
        type: The token type
        value: Decoded value: string contents, number, identifier name,
            or a ``(kind, text)`` pair for patterns
        position: Offset of the first character in the source string
        end: Offset one past the last character
    """

    type: TokenType
    value: str | int | tuple[str, str] | None
    position: int
    end: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


WHITESPACE = " \t\r\n"

# Token patterns for everything except quoted strings and patterns
TOKEN_PATTERNS = [
    # Whitespace (skip)
    (r"[ \t\r\n]+", None),

    # Punctuation
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r",", TokenType.COMMA),

    # Symbolic operators
    (r"!", TokenType.NOT),
    (r"&", TokenType.AND),
    (r"\|", TokenType.OR),
    (r"\^", TokenType.XOR),
    (r"~", TokenType.DIFF),

    # Numbers
    (r"\d+", TokenType.NUMBER),

    # Keywords and identifiers
    (r"[A-Za-z_][A-Za-z0-9_./-]*", TokenType.IDENTIFIER),
]

KEYWORDS = {
    "not": TokenType.NOT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "xor": TokenType.XOR,
    "diff": TokenType.DIFF,
}

PATTERN_KINDS = frozenset({"glob", "g", "regex", "r", "exact", "e"})

SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

BRACKETS = {"(": ")", "[": "]", "{": "}"}


class Scanner:
    """Tokenizer for the expression language.

    Usage:
        scanner = Scanner('glob:features/* and not skip')
        for token in scanner:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self._compiled_patterns = [
            (re.compile(pattern), token_type)
            for pattern, token_type in TOKEN_PATTERNS
        ]

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)

    def next_token(self) -> Token:
        """Get the next token from the source."""
        while True:
            if self.position >= len(self.source):
                return Token(TokenType.EOF, None, self.position, self.position)

            start = self.position
            char = self.source[start]

            if char in "\"'":
                value, self.position = self.scan_string(start)
                return Token(TokenType.STRING, value, start, self.position)

            for pattern, token_type in self._compiled_patterns:
                match = pattern.match(self.source, start)
                if match:
                    break
            else:
                raise ParseError(
                    f"Unexpected character '{char}'",
                    start,
                    ("expression",),
                    self.source,
                )

            value = match.group()
            self.position = match.end()

            if token_type is None:
                continue

            if token_type == TokenType.NUMBER:
                return Token(TokenType.NUMBER, int(value), start, self.position)

            if token_type == TokenType.IDENTIFIER:
                if value in KEYWORDS:
                    return Token(KEYWORDS[value], value, start, self.position)
                if value in PATTERN_KINDS and self._peek_char() == ":":
                    return self._scan_pattern(value, start)

            return Token(token_type, value, start, self.position)

    def _peek_char(self) -> str:
        if self.position < len(self.source):
            return self.source[self.position]
        return ""

    # -------------------------------------------------------------------------
    # Literal scanning
    # -------------------------------------------------------------------------

    def _scan_pattern(self, kind: str, start: int) -> Token:
        """Scan ``kind:payload`` where the scanner sits on the colon."""
        payload_start = self.position + 1

        if payload_start < len(self.source) and self.source[payload_start] in "\"'":
            text, self.position = self.scan_string(payload_start)
        else:
            text, self.position = self.scan_raw(payload_start)
            if not text:
                raise ParseError(
                    f"Expected pattern after '{kind}:'",
                    payload_start,
                    ("string", "pattern"),
                    self.source,
                )

        return Token(TokenType.PATTERN, (kind, text), start, self.position)

    def scan_string(self, start: int) -> tuple[str, int]:
        """Scan a quoted string starting at its opening delimiter.

        Returns the string contents and the offset past the closing
        delimiter. Double-quoted strings have their escapes decoded,
        single-quoted strings are returned verbatim.
        """
        source = self.source
        quote = source[start]
        position = start + 1
        chars: list[str] = []

        while position < len(source):
            char = source[position]

            if char == quote:
                return "".join(chars), position + 1

            if char == "\\":
                if quote == "'":
                    # Escaped character only hides the delimiter
                    if position + 1 >= len(source):
                        break
                    chars.append(source[position:position + 2])
                    position += 2
                    continue
                decoded, position = self._decode_escape(position)
                chars.append(decoded)
                continue

            chars.append(char)
            position += 1

        raise UnterminatedLiteralError(
            "Unterminated string literal", start, (quote,), self.source
        )

    def _decode_escape(self, position: int) -> tuple[str, int]:
        """Decode the escape sequence whose backslash is at ``position``."""
        source = self.source

        if position + 1 >= len(source):
            raise UnterminatedLiteralError(
                "Unterminated string literal", position, ('"',), source
            )

        escape = source[position + 1]
        if escape in SIMPLE_ESCAPES:
            return SIMPLE_ESCAPES[escape], position + 2

        if escape != "u":
            raise EscapeError(
                f"Unknown escape sequence '\\{escape}'",
                position,
                tuple(f"\\{e}" for e in SIMPLE_ESCAPES) + ("\\u{...}",),
                source,
            )

        if source[position + 2:position + 3] != "{":
            raise EscapeError(
                "Expected '{' after '\\u'", position + 2, ("{",), source
            )

        close = source.find("}", position + 3)
        if close == -1:
            raise EscapeError(
                "Unterminated unicode escape", position, ("}",), source
            )

        digits = source[position + 3:close]
        if not 1 <= len(digits) <= 4 or any(c not in string.hexdigits for c in digits):
            raise EscapeError(
                f"Malformed unicode escape '\\u{{{digits}}}', expected 1 to 4 hex digits",
                position,
                ("hex digit",),
                source,
            )

        codepoint = int(digits, 16)
        if 0xD800 <= codepoint <= 0xDFFF:
            raise EscapeError(
                f"Invalid code point U+{codepoint:04X} in unicode escape",
                position,
                (),
                source,
            )

        return chr(codepoint), close + 1

    def scan_raw(self, start: int) -> tuple[str, int]:
        """Scan an unquoted pattern payload starting at ``start``.

        Stops at whitespace, a comma or an unmatched closing bracket, but
        only outside of bracketed regions. Regions nest and may only be
        closed by their matching bracket. Backslashes escape the next
        character and are kept in the returned text.
        """
        source = self.source
        stack: list[tuple[str, int]] = []
        position = start

        while position < len(source):
            char = source[position]

            if char == "\\":
                if position + 1 >= len(source):
                    raise UnterminatedLiteralError(
                        "Dangling escape at end of pattern",
                        position,
                        ("character",),
                        source,
                    )
                position += 2
                continue

            if char in BRACKETS:
                stack.append((BRACKETS[char], position))
            elif stack:
                if char == stack[-1][0]:
                    stack.pop()
            elif char in WHITESPACE or char == "," or char in ")]}":
                break

            position += 1

        if stack:
            closer, opened_at = stack[-1]
            raise UnterminatedLiteralError(
                f"Unclosed '{source[opened_at]}' in pattern",
                opened_at,
                (closer,),
                source,
            )

        return source[start:position], position
