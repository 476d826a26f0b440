"""Error types for the test-set expression language.

Errors carry structured position and kind data only. Rendering a
diagnostic against the source text is left to the caller.

Hierarchy:
- TestSetError
  - ParseError (UnterminatedLiteralError, EscapeError)
  - PatternCompileError (GlobCompileError, RegexCompileError)
  - ResolutionError (UnknownFunctionError, UnknownIdentifierError,
    ArityError, ArgumentKindError)
  - EvaluationError
"""

from typing import Any

Span = tuple[int, int]


class TestSetError(Exception):
    """Base class for all expression errors."""

    __test__ = False

    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured form of the error, for JSON output."""
        return {"kind": self.kind, "message": self.message}


# -----------------------------------------------------------------------------
# Syntax
# -----------------------------------------------------------------------------


class ParseError(TestSetError):
    """Malformed expression."""

    kind = "syntax"

    def __init__(
        self,
        message: str,
        offset: int,
        expected: tuple[str, ...] = (),
        source: str | None = None,
    ):
        self.offset = offset
        self.expected = tuple(expected)
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message} at position {self.offset}"

    @property
    def byte_offset(self) -> int:
        """Offset into the UTF-8 encoding of the source."""
        if self.source is None:
            return self.offset
        return len(self.source[: self.offset].encode("utf-8"))

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["offset"] = self.offset
        data["byteOffset"] = self.byte_offset
        data["expected"] = list(self.expected)
        return data


class UnterminatedLiteralError(ParseError):
    """A quoted string or bracketed pattern region never closes."""

    kind = "unterminated-literal"


class EscapeError(ParseError):
    """Invalid escape sequence inside a double-quoted string."""

    kind = "escape"


# -----------------------------------------------------------------------------
# Pattern compilation
# -----------------------------------------------------------------------------


class PatternCompileError(TestSetError):
    """A pattern's kind-specific compilation failed."""

    kind = "compile"

    def __init__(self, message: str, pattern_kind: str, text: str):
        self.pattern_kind = pattern_kind
        self.text = text
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["patternKind"] = self.pattern_kind
        data["text"] = self.text
        return data


class GlobCompileError(PatternCompileError):
    """Malformed glob class or brace syntax."""


class RegexCompileError(PatternCompileError):
    """Invalid regular expression."""


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------


class ResolutionError(TestSetError):
    """A name or argument could not be resolved during evaluation."""

    kind = "resolution"

    def __init__(self, message: str, name: str, span: Span | None = None):
        self.name = name
        self.span = span
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["name"] = self.name
        data["span"] = list(self.span) if self.span is not None else None
        return data


class UnknownFunctionError(ResolutionError):
    def __init__(self, name: str, span: Span | None = None):
        super().__init__(f"Unknown function: {name}", name, span)


class UnknownIdentifierError(ResolutionError):
    def __init__(self, name: str, span: Span | None = None):
        super().__init__(
            f"Unknown identifier '{name}': not a named test set or an existing test",
            name,
            span,
        )


class ArityError(ResolutionError):
    """Wrong number of arguments for a registered function."""

    def __init__(
        self,
        name: str,
        expected: int,
        found: int,
        variadic: bool = False,
        span: Span | None = None,
    ):
        self.expected = expected
        self.found = found
        self.variadic = variadic
        qualifier = "at least " if variadic else ""
        super().__init__(
            f"Function '{name}' expects {qualifier}{expected} argument(s), got {found}",
            name,
            span,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(expected=self.expected, found=self.found, variadic=self.variadic)
        return data


class ArgumentKindError(ResolutionError):
    """A value of the wrong kind was supplied (e.g. a string where a set is needed)."""

    def __init__(
        self,
        name: str,
        expected: str,
        found: str,
        index: int | None = None,
        span: Span | None = None,
    ):
        self.expected = expected
        self.found = found
        self.index = index
        where = f"argument {index + 1} of '{name}'" if index is not None else f"'{name}'"
        super().__init__(f"Expected {expected} for {where}, found {found}", name, span)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(expected=self.expected, found=self.found, index=self.index)
        return data


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------


class EvaluationError(TestSetError):
    """A registered function failed while producing its set."""

    kind = "evaluation"
