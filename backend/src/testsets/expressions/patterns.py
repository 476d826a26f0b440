"""Pattern compilation for the test-set expression language.

Three pattern kinds share one interface:

- exact: the whole test id must equal the text
- glob: shell-style wildcards matched against the whole test id
- regex: Python regular expression searched anywhere in the test id
"""

import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum

from testsets.expressions.errors import GlobCompileError, RegexCompileError

logger = logging.getLogger(__name__)


class PatternKind(Enum):
    """Kinds of pattern, as written before the ``:``."""

    EXACT = "exact"
    GLOB = "glob"
    REGEX = "regex"

    @classmethod
    def parse(cls, word: str) -> "PatternKind":
        """Resolve a kind word or its one-letter alias."""
        if word in KIND_ALIASES:
            return KIND_ALIASES[word]
        raise ValueError(f"Unknown pattern kind '{word}'")


KIND_ALIASES = {
    "exact": PatternKind.EXACT,
    "e": PatternKind.EXACT,
    "glob": PatternKind.GLOB,
    "g": PatternKind.GLOB,
    "regex": PatternKind.REGEX,
    "r": PatternKind.REGEX,
}


@dataclass(frozen=True)
class CompiledPattern:
    """A pattern ready to be matched against test ids."""

    kind: PatternKind
    text: str
    regex: re.Pattern[str] | None = None

    def matches(self, test_id: str) -> bool:
        match self.kind:
            case PatternKind.EXACT:
                return test_id == self.text
            case PatternKind.GLOB:
                return self.regex.fullmatch(test_id) is not None
            case PatternKind.REGEX:
                return self.regex.search(test_id) is not None


def compile_pattern(kind: PatternKind, text: str) -> CompiledPattern:
    """Compile a pattern of the given kind.

    Raises:
        GlobCompileError: On malformed class or brace syntax
        RegexCompileError: On invalid regular expression syntax
    """
    if kind == PatternKind.EXACT:
        return CompiledPattern(kind, text)

    if kind == PatternKind.GLOB:
        return CompiledPattern(kind, text, re.compile(glob_to_regex(text), re.DOTALL))

    try:
        regex = re.compile(text)
    except re.error as e:
        raise RegexCompileError(f"Invalid regex '{text}': {e}", kind.value, text) from e
    return CompiledPattern(kind, text, regex)


# -----------------------------------------------------------------------------
# Glob translation
# -----------------------------------------------------------------------------


def glob_to_regex(text: str) -> str:
    """Translate a glob into an (unanchored) regular expression.

    Supported syntax:
    - ``*`` any run of characters except ``/``
    - ``**`` any run of characters, including ``/``
    - ``?`` exactly one character
    - ``[abc]``, ``[a-z]``, ``[!abc]``/``[^abc]`` character classes
    - ``{a,b}`` alternation, nestable
    - ``\\x`` the literal character ``x``
    """
    parts: list[str] = []
    braces: list[int] = []
    i = 0

    while i < len(text):
        char = text[i]

        if char == "\\":
            if i + 1 >= len(text):
                raise _glob_error("Dangling escape at end of glob", text)
            parts.append(re.escape(text[i + 1]))
            i += 2
            continue

        if char == "[":
            class_regex, i = _translate_class(text, i)
            parts.append(class_regex)
            continue

        if char == "*":
            if text.startswith("**", i):
                while i < len(text) and text[i] == "*":
                    i += 1
                parts.append(".*")
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append(".")
        elif char == "{":
            braces.append(i)
            parts.append("(?:")
        elif char == "}":
            if not braces:
                raise _glob_error(f"Unopened '}}' at position {i}", text)
            braces.pop()
            parts.append(")")
        elif char == "," and braces:
            parts.append("|")
        else:
            parts.append(re.escape(char))

        i += 1

    if braces:
        raise _glob_error(f"Unclosed '{{' at position {braces[-1]}", text)

    return "".join(parts)


def _translate_class(text: str, start: int) -> tuple[str, int]:
    """Translate the class opening at ``start``; returns regex and end offset."""
    i = start + 1
    negate = False
    if i < len(text) and text[i] in "!^":
        negate = True
        i += 1

    items: list[str] = []
    first = True

    while i < len(text):
        if text[i] == "]" and not first:
            break
        first = False

        low, i = _class_char(text, i)

        if i + 1 < len(text) and text[i] == "-" and text[i + 1] != "]":
            high, i = _class_char(text, i + 1)
            if high < low:
                raise _glob_error(f"Invalid range '{low}-{high}' in class", text)
            items.append(f"{_escape_class(low)}-{_escape_class(high)}")
        else:
            items.append(_escape_class(low))
    else:
        raise _glob_error(f"Unclosed '[' at position {start}", text)

    body = "".join(items)
    return (f"[^{body}]" if negate else f"[{body}]"), i + 1


def _class_char(text: str, i: int) -> tuple[str, int]:
    if text[i] == "\\":
        if i + 1 >= len(text):
            raise _glob_error("Dangling escape in class", text)
        return text[i + 1], i + 2
    return text[i], i + 1


def _escape_class(char: str) -> str:
    if char in "\\]-^[":
        return "\\" + char
    return char


def _glob_error(message: str, text: str) -> GlobCompileError:
    return GlobCompileError(f"Invalid glob '{text}': {message}", PatternKind.GLOB.value, text)


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


class PatternCache:
    """Thread-safe cache of compiled patterns keyed on (kind, text).

    Lookups do not lock; a compilation happens at most once per key.
    """

    def __init__(self) -> None:
        self._patterns: dict[tuple[PatternKind, str], CompiledPattern] = {}
        self._lock = threading.Lock()

    def get(self, kind: PatternKind, text: str) -> CompiledPattern:
        key = (kind, text)
        pattern = self._patterns.get(key)
        if pattern is not None:
            return pattern

        with self._lock:
            pattern = self._patterns.get(key)
            if pattern is None:
                logger.debug("Compiling %s pattern %r", kind.value, text)
                pattern = compile_pattern(kind, text)
                self._patterns[key] = pattern
        return pattern

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, key: object) -> bool:
        return key in self._patterns

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()
