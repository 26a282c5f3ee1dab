"""
Expression Recursive Descent Parser
===================================

This module implements a recursive descent parser for arithmetic and
relational expressions. It takes the token list from the lexer and
builds an Abstract Syntax Tree (AST).

Grammar (EBNF, lowest to highest precedence)
--------------------------------------------
expr       ::= equality
equality   ::= relational (('==' | '!=') relational)*
relational ::= add (('<' | '<=' | '>' | '>=') add)*
add        ::= mul (('+' | '-') mul)*
mul        ::= unary (('*' | '/') unary)*
unary      ::= ('+' | '-') unary | primary
primary    ::= NUMBER | '(' expr ')'

The grammar is LL(1): each step is decided by the current token alone,
so the cursor only ever moves forward.

Rewrites
--------
- a > b   parses as  Lt(b, a)
- a >= b  parses as  Le(b, a)
- -e      parses as  Sub(Literal(0), e)
- +e      parses as  e

Example Usage
-------------
>>> from exprc.parser import parse_source
>>> parse_source("1+2*3")
Add(Literal(1), Mul(Literal(2), Literal(3)))
"""

import logging
from typing import Callable, Optional

from exprc.ast import Expression, Literal, BinaryOp, NodeKind
from exprc.errors import (
    SourceLocation,
    ParseError,
    UnexpectedTokenError,
    UnexpectedEndError,
    TrailingTokenError,
)
from exprc.lexer import Token, TokenType, MAX_LITERAL, tokenize

logger = logging.getLogger(__name__)


# Operator symbol -> (kind, swap operands)
EQUALITY_OPERATORS: dict[str, tuple[NodeKind, bool]] = {
    "==": (NodeKind.EQ, False),
    "!=": (NodeKind.NE, False),
}

# '>' and '>=' reuse LT/LE with the operands swapped
RELATIONAL_OPERATORS: dict[str, tuple[NodeKind, bool]] = {
    "<": (NodeKind.LT, False),
    "<=": (NodeKind.LE, False),
    ">": (NodeKind.LT, True),
    ">=": (NodeKind.LE, True),
}

ADDITIVE_OPERATORS: dict[str, tuple[NodeKind, bool]] = {
    "+": (NodeKind.ADD, False),
    "-": (NodeKind.SUB, False),
}

MULTIPLICATIVE_OPERATORS: dict[str, tuple[NodeKind, bool]] = {
    "*": (NodeKind.MUL, False),
    "/": (NodeKind.DIV, False),
}


class Parser:
    """
    Recursive descent parser for expressions.

    There is no error recovery: the first missing or mismatched token
    raises a ParseError.

    Attributes:
        tokens: Token list from the lexer
        source: Original source text, used for error context (optional)
        filename: Source filename for error reporting
    """

    def __init__(
        self,
        tokens: list[Token],
        source: Optional[str] = None,
        filename: str = "<input>",
    ):
        self.tokens = tokens
        self.source = source
        self.filename = filename

        # Current position in token list
        self._pos = 0

    def parse(self) -> Expression:
        """
        Parse the complete token list into an expression tree.

        Returns:
            Root node of the tree

        Raises:
            ParseError: If a required token is missing or mismatched,
                        or tokens remain after the expression
        """
        self._pos = 0

        try:
            node = self._parse_expr()
        except RecursionError:
            location = self._location_at(self._pos)
            raise ParseError(
                "expression is nested too deeply",
                self._pos,
                location=location,
                source_line=self._source_line(location),
            ) from None

        if not self._at_end():
            token = self._peek()
            raise TrailingTokenError(
                str(token),
                self._pos,
                token.location,
                self._source_line(token.location),
            )

        logger.debug(f"Parsed {len(self.tokens)} tokens")
        return node

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.tokens)

    def _peek(self) -> Optional[Token]:
        if self._at_end():
            return None
        return self.tokens[self._pos]

    def _advance(self) -> Token:
        token = self.tokens[self._pos]
        self._pos += 1
        return token

    def _check_operator(self, operators: dict) -> bool:
        """Check if the current token is one of the given operators."""
        token = self._peek()
        return token is not None and token.type == TokenType.OPERATOR and token.value in operators

    def _expect_operator(self, symbol: str) -> Token:
        """
        Expect and consume a specific operator.

        Raises:
            UnexpectedEndError: If input ran out
            UnexpectedTokenError: If a different token is present
        """
        token = self._peek()
        if token is not None and token.is_operator(symbol):
            return self._advance()
        raise self._error(f"'{symbol}'")

    def _error(self, expected: str) -> ParseError:
        """Build the error for the token at the cursor."""
        token = self._peek()
        if token is None:
            location = self._location_at(self._pos)
            return UnexpectedEndError(
                expected,
                self._pos,
                location,
                self._source_line(location),
            )
        return UnexpectedTokenError(
            str(token),
            expected,
            self._pos,
            token.location,
            self._source_line(token.location),
        )

    def _location_at(self, position: int) -> SourceLocation:
        """Location of the token at position, or just past the source end."""
        if position < len(self.tokens):
            return self.tokens[position].location
        if self.source is not None:
            text = self.source.rstrip()
            line = text.count("\n") + 1
            column = len(text) - (text.rfind("\n") + 1) + 1
        elif self.tokens:
            last = self.tokens[-1]
            line = last.line
            column = last.column + len(str(last))
        else:
            line, column = 1, 1
        return SourceLocation(self.filename, line, column)

    def _source_line(self, location: SourceLocation) -> Optional[str]:
        """Text of the source line a location points into, if known."""
        if self.source is None:
            return None
        lines = self.source.split("\n")
        if location.line > len(lines):
            return None
        return lines[location.line - 1].rstrip("\r")

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def _parse_expr(self) -> Expression:
        """expr ::= equality"""
        return self._parse_equality()

    def _parse_equality(self) -> Expression:
        """equality ::= relational (('==' | '!=') relational)*"""
        return self._parse_binary(self._parse_relational, EQUALITY_OPERATORS)

    def _parse_relational(self) -> Expression:
        """relational ::= add (('<' | '<=' | '>' | '>=') add)*"""
        return self._parse_binary(self._parse_add, RELATIONAL_OPERATORS)

    def _parse_add(self) -> Expression:
        """add ::= mul (('+' | '-') mul)*"""
        return self._parse_binary(self._parse_mul, ADDITIVE_OPERATORS)

    def _parse_mul(self) -> Expression:
        """mul ::= unary (('*' | '/') unary)*"""
        return self._parse_binary(self._parse_unary, MULTIPLICATIVE_OPERATORS)

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[str, tuple[NodeKind, bool]],
    ) -> Expression:
        """
        Generic left-associative binary level.

        Args:
            operand_parser: Parser for the next tighter level
            operators: Map of operator symbols to (kind, swap operands)
        """
        node = operand_parser()

        while self._check_operator(operators):
            op_token = self._advance()
            kind, swap = operators[op_token.value]
            right = operand_parser()
            if swap:
                # a > b  ==  b < a
                node = BinaryOp(kind, right, node, location=op_token.location)
            else:
                node = BinaryOp(kind, node, right, location=op_token.location)

        return node

    def _parse_unary(self) -> Expression:
        """unary ::= ('+' | '-') unary | primary"""
        negations: list[Token] = []
        while True:
            token = self._peek()
            if token is not None and token.is_operator("+"):
                self._advance()
            elif token is not None and token.is_operator("-"):
                negations.append(self._advance())
            else:
                break

        node = self._parse_primary()

        # The sign nearest the operand applies first
        for token in reversed(negations):
            node = BinaryOp(
                NodeKind.SUB,
                Literal(0, location=token.location),
                node,
                location=token.location,
            )
        return node

    def _parse_primary(self) -> Expression:
        """primary ::= NUMBER | '(' expr ')'"""
        token = self._peek()

        if token is not None and token.type == TokenType.NUMBER:
            self._advance()
            return Literal(token.value, location=token.location)

        if token is not None and token.is_operator("("):
            self._advance()
            node = self._parse_expr()
            self._expect_operator(")")
            return node

        raise self._error("a number or '('")


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(tokens: list[Token], source: Optional[str] = None) -> Expression:
    """
    Parse a token list into an expression tree.

    Args:
        tokens: Tokens from the lexer
        source: Original source text for error context

    Raises:
        ParseError: If the tokens do not form exactly one expression
    """
    return Parser(tokens, source).parse()


def parse_source(
    source: str,
    filename: str = "<input>",
    max_literal: int = MAX_LITERAL,
) -> Expression:
    """
    Tokenize and parse expression source in one step.

    Raises:
        LexError: If tokenization fails
        ParseError: If parsing fails
    """
    tokens = tokenize(source, filename, max_literal)
    return Parser(tokens, source, filename).parse()
