"""
exprcc Error Hierarchy
======================

This module defines the exception hierarchy for the expression compiler.
All exceptions inherit from ExprError, allowing callers to catch every
compiler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
ExprError (base)
├── CompileError (carries a source location)
│   ├── LexicalError - input character matches no token rule
│   │   ├── InvalidTokenError - unknown character
│   │   └── NumberRangeError - literal does not fit in 64 bits
│   └── ExprSyntaxError - grammar violation found by the parser
│       ├── ExpectedNumberError - numeric literal missing
│       ├── MissingTokenError - required punctuator missing
│       ├── NestingDepthError - parentheses nested too deeply
│       └── UnexpectedTokenError - input left over after the expression
└── ExecutionError - fault while simulating generated code

Error Message Format
--------------------
Compile errors reprint the source and point at the failing offset:

    1+@
      ^ invalid token

The first error found terminates compilation. There is no recovery and
no multiple-error reporting.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class ExprError(Exception):
    """
    Base exception for all exprcc errors.

        try:
            compile_expression("1+")
        except ExprError as e:
            print(e)
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A span of the original source text.

    Attributes:
        offset: Character offset of the span start (0-indexed)
        length: Number of characters in the span
    """
    offset: int
    length: int = 0

    def __str__(self) -> str:
        return f"offset {self.offset}"


# =============================================================================
# Compile Errors
# =============================================================================

class CompileError(ExprError):
    """
    Base exception for errors detected while compiling an expression.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        source: The complete source text, reprinted in the diagnostic
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source = source
        super().__init__(self._format_message())

    @property
    def offset(self) -> Optional[int]:
        """Offset of the error in the source, if known."""
        return self.location.offset if self.location else None

    def _format_message(self) -> str:
        """
        Format the two-line caret diagnostic.

        The first line is the source as given; the second line places
        a caret under the failing character followed by the message.
        Without a source or location only the message is returned.
        """
        if self.source is None or self.location is None:
            return f"error: {self.message}"

        padding = " " * self.location.offset
        return f"{self.source}\n{padding}^ {self.message}"


class LexicalError(CompileError):
    """An input character sequence matches no token rule."""
    pass


class InvalidTokenError(LexicalError):
    """
    Unknown character in the input.

    Example:
        1@2     # '@' is not an operator
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.char = char
        super().__init__("invalid token", location=location, source=source)


class NumberRangeError(LexicalError):
    """Integer literal too large for a signed 64-bit value."""

    def __init__(
        self,
        text: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.text = text
        super().__init__("number out of range", location=location, source=source)


class ExprSyntaxError(CompileError):
    """
    Grammar violation found by the parser.

    Examples:
        - Trailing operator with no operand
        - Unbalanced parentheses
        - Two numbers with no operator between them
    """
    pass


class ExpectedNumberError(ExprSyntaxError):
    """A numeric literal was required but something else was found."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        super().__init__("expected a number", location=location, source=source)


class MissingTokenError(ExprSyntaxError):
    """
    Required punctuator is missing.

    Raised when a closing ')' is not found where expected.
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(f"expected '{expected}'", location=location, source=source)


class NestingDepthError(ExprSyntaxError):
    """Parentheses nest deeper than the parser accepts."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        super().__init__("expression too deeply nested", location=location, source=source)


class UnexpectedTokenError(ExprSyntaxError):
    """Tokens remain after a complete expression was parsed."""

    def __init__(
        self,
        found: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.found = found
        super().__init__("extra token", location=location, source=source)


# =============================================================================
# Execution Errors
# =============================================================================

class ExecutionError(ExprError):
    """
    Fault raised by the stack machine while running generated code.

    Mirrors the conditions under which real hardware would trap, such as
    dividing by zero, as well as malformed instruction streams.

    Attributes:
        message: The error description
        line_number: 1-indexed line of the faulting instruction (optional)
        instruction: Text of the faulting instruction (optional)
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        instruction: Optional[str] = None,
    ):
        self.message = message
        self.line_number = line_number
        self.instruction = instruction

        text = message
        if line_number is not None and instruction is not None:
            text = f"line {line_number}: {message} ({instruction.strip()})"
        super().__init__(text)
