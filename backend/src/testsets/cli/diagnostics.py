"""Render expression errors against their source text."""

from testsets.expressions.errors import ParseError, ResolutionError, TestSetError


def error_span(error: TestSetError) -> tuple[int, int] | None:
    """Source span an error points at, if it carries one."""
    if isinstance(error, ParseError):
        return error.offset, error.offset + 1
    if isinstance(error, ResolutionError) and error.span is not None:
        return error.span
    return None


def render_error(source: str, error: TestSetError) -> str:
    """Format ``error`` with the offending source line and a caret marker.

    Example:
        error: Expected operand, found end of input
          | a and
          |      ^
          = expected: pattern, string, number, identifier, function call, (
    """
    lines = [f"error: {error.message}"]

    span = error_span(error)
    if span is not None:
        start, end = span
        line_start = source.rfind("\n", 0, start) + 1
        line_end = source.find("\n", line_start)
        if line_end == -1:
            line_end = len(source)

        column = start - line_start
        width = max(1, min(end, line_end) - start)
        lines.append(f"  | {source[line_start:line_end]}")
        lines.append(f"  | {' ' * column}{'^' * width}")

    if isinstance(error, ParseError) and error.expected:
        lines.append(f"  = expected: {', '.join(error.expected)}")

    return "\n".join(lines)
