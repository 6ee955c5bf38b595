"""
Error types raised at the BQL host API boundary.

Inside the evaluator, runtime failures are ordinary ``Error`` objects;
these exceptions are what a host application sees.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class BqlError(Exception):
    """Base exception for all BQL errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(str(context) + "\n" + message if context else message)


class BqlSyntaxError(BqlError):
    """
    Raised when source text cannot be parsed.

    Carries every syntax error found in the pass, in source order; the
    message is the errors joined by newlines.
    """

    def __init__(self, errors: list[str], context: ErrorContext | None = None):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors), context)


class EvaluationError(BqlError):
    """
    Raised when a program evaluates to a runtime error.

    Examples:
    - type mismatch: INTEGER + STRING
    - identifier not found: x
    - non boolean condition in if statement
    """


class ConversionError(BqlError):
    """
    Raised when a value cannot cross the host boundary.

    Examples:
    - Unsupported native type in the input bindings
    - Integer outside the signed 64-bit range
    - A function value as the program result
    """


@dataclass
class ErrorContext:
    """
    Source location of an error, optionally with the surrounding lines.

    Attributes:
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        source_name: File name the source was read from, if any
        lines: Source lines shown around the error
        first_line: Line number of ``lines[0]``
    """

    line: int
    column: int
    source_name: str | None = None
    lines: list[str] = field(default_factory=list)
    first_line: int = 1

    @classmethod
    def from_source(
        cls,
        source: str,
        line: int,
        column: int,
        source_name: str | None = None,
        radius: int = 2,
    ) -> ErrorContext:
        """Build a context that shows up to ``radius`` lines either side of ``line``."""
        all_lines = source.split("\n")
        first = max(1, line - radius)
        last = min(len(all_lines), line + radius)
        return cls(
            line=line,
            column=column,
            source_name=source_name,
            lines=all_lines[first - 1 : last],
            first_line=first,
        )

    @property
    def location(self) -> str:
        """``name:line:column``, or ``line:column`` without a name."""
        loc = f"{self.line}:{self.column}"
        return f"{self.source_name}:{loc}" if self.source_name else loc

    def __str__(self) -> str:
        out = [self.location]
        for number, text in enumerate(self.lines, start=self.first_line):
            gutter = f"{number:4d} | "
            out.append(gutter + text)
            if number == self.line:
                out.append(" " * (len(gutter) + self.column - 1) + "^")
        return "\n".join(out)


def make_syntax_error(
    errors: list[str],
    source: str | None = None,
    source_name: str | None = None,
) -> BqlSyntaxError:
    """
    Build a BqlSyntaxError located at the first error.

    Args:
        errors: Ordered "line:column: message" strings from the parser
        source: Optional source text, used to show the offending lines
        source_name: Optional file name

    Returns:
        BqlSyntaxError with context when the first error carries a position
    """
    context = None
    if errors and source is not None:
        head = errors[0].split(":", 2)
        if len(head) == 3 and head[0].isdigit() and head[1].isdigit():
            context = ErrorContext.from_source(
                source, int(head[0]), int(head[1]), source_name=source_name
            )
    return BqlSyntaxError(errors, context)
