"""
Expression Lexer (Tokenizer)
============================

This module converts expression source text into a list of tokens for
the parser.

Token Categories
----------------
- Numbers: maximal runs of ASCII decimal digits (no sign, no fraction)
- Operators: + - * / ( ) < > and the two-character == != <= >=

Whitespace is skipped and never tokenized. There are no identifiers,
comments, or negative literals; a leading '-' is a separate operator
token that the parser turns into a subtraction from zero.

Two-character operators are matched before single-character ones at
the same position, so "<=" is always one token and never '<' then '='.

Example Usage
-------------
>>> from exprc.lexer import tokenize
>>> tokenize("3 + 14 - 1")
[Token(NUMBER, 3, 1:1), Token(OPERATOR, '+', 1:3), Token(NUMBER, 14, 1:5), Token(OPERATOR, '-', 1:8), Token(NUMBER, 1, 1:10)]
"""

import logging
import string
from dataclasses import dataclass, field
from enum import Enum, auto

from exprc.errors import (
    SourceLocation,
    InvalidCharacterError,
    LiteralOverflowError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Largest literal `push imm32` can encode without sign-extending it to a
# negative 64-bit value.
MAX_LITERAL = 2**31 - 1

# Checked before SINGLE_CHAR_OPERATORS at every position
TWO_CHAR_OPERATORS = ("==", "!=", "<=", ">=")

SINGLE_CHAR_OPERATORS = "+-*/()<>"


# =============================================================================
# Token Types
# =============================================================================

class TokenType(Enum):
    """The two kinds of lexical token."""
    OPERATOR = auto()   # + - * / ( ) < > <= >= == !=
    NUMBER = auto()     # unsigned integer literal


@dataclass(frozen=True)
class Token:
    """
    A single token from expression source.

    Equality only considers type and value, so tests and callers can
    compare against tokens built without position information.

    Attributes:
        type: OPERATOR or NUMBER
        value: Operator symbol (str) or literal value (int)
        column: Column in source (1-indexed)
        filename: Name of the source
        line: Line in source (1-indexed)
    """
    type: TokenType
    value: str | int
    column: int = field(default=0, compare=False)
    filename: str = field(default="<input>", compare=False)
    line: int = field(default=1, compare=False)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    def __str__(self) -> str:
        return str(self.value)

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_operator(self, *symbols: str) -> bool:
        """Return True if this is an operator token with one of the symbols."""
        return self.type == TokenType.OPERATOR and self.value in symbols


def is_two_char_operator(source: str, index: int) -> bool:
    """Return True if a two-character operator starts at source[index]."""
    return source[index:index + 2] in TWO_CHAR_OPERATORS


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes expression source.

    The whole input is scanned before anything is returned; the first
    unrecognized character or oversized literal raises a LexError.

    Usage:
        tokens = Lexer("1 + 2").tokenize()

    Attributes:
        source: The expression being tokenized
        filename: Name of the source (for error reporting)
        max_literal: Largest accepted literal value
    """

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        max_literal: int = MAX_LITERAL,
    ):
        self.source = source
        self.filename = filename
        self.max_literal = max_literal
        self._pos = 0
        self._line = 1
        self._line_start_pos = 0

    def tokenize(self) -> list[Token]:
        """
        Scan the complete source into tokens.

        Returns:
            Tokens in source order

        Raises:
            InvalidCharacterError: On a character outside the syntax
            LiteralOverflowError: On a literal larger than max_literal
        """
        self._pos = 0
        self._line = 1
        self._line_start_pos = 0
        tokens: list[Token] = []

        while not self._at_end():
            char = self._peek()

            if char.isspace():
                self._pos += 1
                if char == "\n":
                    self._line += 1
                    self._line_start_pos = self._pos
                continue

            if char in string.digits:
                tokens.append(self._scan_number())
                continue

            tokens.append(self._scan_operator())

        logger.debug(f"Tokenized {len(self.source)} chars into {len(tokens)} tokens")
        return tokens

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _make_token(self, token_type: TokenType, value: str | int, start: int) -> Token:
        return Token(
            token_type,
            value,
            column=start - self._line_start_pos + 1,
            filename=self.filename,
            line=self._line,
        )

    def _location(self, index: int) -> SourceLocation:
        return SourceLocation(self.filename, self._line, index - self._line_start_pos + 1)

    def _current_line(self) -> str:
        """Text of the line being scanned, for error context."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end].rstrip("\r")

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_number(self) -> Token:
        """Scan a maximal run of ASCII digits into one NUMBER token."""
        start = self._pos
        while self._peek() and self._peek() in string.digits:
            self._pos += 1

        text = self.source[start:self._pos]
        value = int(text)
        if value > self.max_literal:
            raise LiteralOverflowError(
                text,
                self.max_literal,
                self._location(start),
                self._current_line(),
            )

        return self._make_token(TokenType.NUMBER, value, start)

    def _scan_operator(self) -> Token:
        """Scan an operator, longest match first."""
        start = self._pos

        if is_two_char_operator(self.source, start):
            self._pos += 2
            return self._make_token(TokenType.OPERATOR, self.source[start:start + 2], start)

        char = self._peek()
        if char in SINGLE_CHAR_OPERATORS:
            self._pos += 1
            return self._make_token(TokenType.OPERATOR, char, start)

        raise InvalidCharacterError(char, self._location(start), self._current_line())


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(
    source: str,
    filename: str = "<input>",
    max_literal: int = MAX_LITERAL,
) -> list[Token]:
    """
    Tokenize expression source.

    Args:
        source: The expression text
        filename: Source name for error messages
        max_literal: Largest accepted literal value

    Returns:
        List of tokens in source order

    Raises:
        LexError: On the first unrecognized character or oversized literal
    """
    return Lexer(source, filename, max_literal).tokenize()
