"""
exprc Error Hierarchy
=====================

This module defines the exception hierarchy for the expression compiler.
All exceptions inherit from ExprError, allowing callers to catch every
compiler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
ExprError (base)
├── LexError (tokenizer)
│   ├── InvalidCharacterError - character outside the surface syntax
│   └── LiteralOverflowError - numeric literal wider than the target
├── ParseError (parser)
│   ├── UnexpectedTokenError - token of the wrong kind
│   ├── UnexpectedEndError - input ended while a token was required
│   └── TrailingTokenError - tokens left after a complete expression
└── StackMachineError (reference interpreter faults)

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source text for error reporting.

    Expressions are single-line, but the line number is kept so that
    diagnostics read the same as any other compiler's.

    Attributes:
        filename: Name of the source (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base Exception Class
# =============================================================================

class ExprError(Exception):
    """
    Base exception for all exprc errors.

    Provides common formatting for error messages including source
    location, the offending source line with a caret pointer, and an
    optional hint.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            <input>:1:5: error: invalid character '$' (0x24)
                1 + $
                    ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Tokenizer Errors
# =============================================================================

class LexError(ExprError):
    """
    Error raised while converting source characters into tokens.

    Tokenization stops at the first LexError; no partial token list
    is ever handed to the parser.
    """
    pass


class InvalidCharacterError(LexError):
    """
    Character that is not part of the expression syntax.

    Raised for letters, punctuation such as '$' or '.', and for a lone
    '=' or '!' that is not followed by '='.
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char

        hint = None
        if char in "=!":
            hint = f"did you mean '{char}='?"

        super().__init__(
            f"invalid character '{char}' (0x{ord(char):02X})",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class LiteralOverflowError(LexError):
    """
    Numeric literal that does not fit the target integer width.

    Literals are never wrapped or saturated.
    """

    def __init__(
        self,
        literal: str,
        max_value: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.literal = literal
        self.max_value = max_value
        super().__init__(
            f"integer literal {literal} is too large",
            location=location,
            hint=f"literals must be at most {max_value}",
            source_line=source_line,
        )


# =============================================================================
# Parser Errors
# =============================================================================

class ParseError(ExprError):
    """
    A required token is absent or of the wrong kind.

    Attributes:
        position: Index of the offending token in the token list
                  (equal to the list length when input ran out)
        expected: Description of what the parser was looking for
        found: Text of the offending token, or "end of input"
    """

    def __init__(
        self,
        message: str,
        position: int,
        expected: Optional[str] = None,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.position = position
        self.expected = expected
        self.found = found
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnexpectedTokenError(ParseError):
    """Token present but not what the grammar allows at this point."""

    def __init__(
        self,
        found: str,
        expected: str,
        position: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            f"unexpected token '{found}'",
            position,
            expected=expected,
            found=found,
            location=location,
            source_line=source_line,
            hint=f"expected {expected}",
        )


class UnexpectedEndError(ParseError):
    """Input ended while a production still required a token."""

    def __init__(
        self,
        expected: str,
        position: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            f"unexpected end of input, expected {expected}",
            position,
            expected=expected,
            found="end of input",
            location=location,
            source_line=source_line,
        )


class TrailingTokenError(ParseError):
    """Tokens remain after a structurally complete expression."""

    def __init__(
        self,
        found: str,
        position: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            f"unexpected token '{found}' after end of expression",
            position,
            expected="end of input",
            found=found,
            location=location,
            source_line=source_line,
            hint="check for a missing operator or an unbalanced ')'",
        )


# =============================================================================
# Reference Interpreter Errors
# =============================================================================

class StackMachineError(ExprError):
    """
    Fault raised by the reference stack-machine interpreter.

    Examples:
        - Division by zero (the hardware would raise #DE)
        - Pop from an empty operand stack
        - Instruction outside the supported subset
    """

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f"instruction {index}: {message}"
        super().__init__(message)
