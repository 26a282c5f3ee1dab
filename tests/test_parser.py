"""
Parser Test Suite
=================

Tests for the recursive descent parser: precedence, associativity,
the '>'/'>=' operand swap, unary rewrites, and error reporting.
"""

import pytest
from exprc.ast import (
    Literal,
    BinaryOp,
    NodeKind,
    ASTPrinter,
    ASTVisitor,
    format_tree,
    format_infix,
    postorder,
)
from exprc.lexer import tokenize
from exprc.parser import Parser, parse, parse_source
from exprc.errors import (
    ParseError,
    UnexpectedTokenError,
    UnexpectedEndError,
    TrailingTokenError,
)


def lit(value: int) -> Literal:
    return Literal(value)


def node(kind: NodeKind, left, right) -> BinaryOp:
    return BinaryOp(kind, left, right)


# =============================================================================
# Precedence and Associativity
# =============================================================================

class TestPrecedence:
    """Each grammar level binds tighter than the one above it."""

    def test_single_literal(self):
        assert parse_source("42") == lit(42)

    def test_mul_binds_tighter_than_add(self):
        """1+2*3 is 1+(2*3)."""
        expected = node(NodeKind.ADD, lit(1), node(NodeKind.MUL, lit(2), lit(3)))
        assert parse_source("1+2*3") == expected

    def test_parentheses_override_precedence(self):
        """(1+2)*3 multiplies the sum."""
        expected = node(NodeKind.MUL, node(NodeKind.ADD, lit(1), lit(2)), lit(3))
        assert parse_source("(1+2)*3") == expected

    def test_add_binds_tighter_than_relational(self):
        """1+2<3 compares the sum."""
        expected = node(NodeKind.LT, node(NodeKind.ADD, lit(1), lit(2)), lit(3))
        assert parse_source("1+2<3") == expected

    def test_relational_binds_tighter_than_equality(self):
        """1<2==1 compares the comparison result."""
        expected = node(NodeKind.EQ, node(NodeKind.LT, lit(1), lit(2)), lit(1))
        assert parse_source("1<2==1") == expected

    def test_le_right_operand_is_additive(self):
        """The right side of '<=' is a full additive expression."""
        expected = node(NodeKind.LE, lit(1), node(NodeKind.ADD, lit(2), lit(3)))
        assert parse_source("1<=2+3") == expected

    def test_nested_parentheses(self):
        assert parse_source("((7))") == lit(7)

    def test_all_levels(self):
        """One operator from every level."""
        tree = parse_source("1 == 2 < 3 + 4 * -5")
        assert format_tree(tree) == (
            "Eq(Literal(1), Lt(Literal(2), Add(Literal(3), "
            "Mul(Literal(4), Sub(Literal(0), Literal(5))))))"
        )


class TestAssociativity:
    """All binary levels are left-associative."""

    def test_subtraction(self):
        """10-3-2 is (10-3)-2."""
        expected = node(NodeKind.SUB, node(NodeKind.SUB, lit(10), lit(3)), lit(2))
        assert parse_source("10-3-2") == expected

    def test_division(self):
        """8/4/2 is (8/4)/2."""
        expected = node(NodeKind.DIV, node(NodeKind.DIV, lit(8), lit(4)), lit(2))
        assert parse_source("8/4/2") == expected

    def test_mixed_additive(self):
        """1-2+3 is (1-2)+3."""
        expected = node(NodeKind.ADD, node(NodeKind.SUB, lit(1), lit(2)), lit(3))
        assert parse_source("1-2+3") == expected

    def test_equality_chain(self):
        """1==1!=0 is (1==1)!=0."""
        expected = node(NodeKind.NE, node(NodeKind.EQ, lit(1), lit(1)), lit(0))
        assert parse_source("1==1!=0") == expected


# =============================================================================
# Rewrites
# =============================================================================

class TestRewrites:
    """Operand swapping for '>'/'>=' and unary operator rewrites."""

    def test_greater_than_swaps_operands(self):
        """1>2 parses to the same tree as 2<1."""
        expected = node(NodeKind.LT, lit(2), lit(1))
        assert parse_source("1>2") == expected
        assert parse_source("1>2") == parse_source("2<1")

    def test_greater_equal_swaps_operands(self):
        """a>=b parses to Le(b, a)."""
        assert parse_source("1>=2") == node(NodeKind.LE, lit(2), lit(1))

    def test_greater_than_chain(self):
        """3>2>1 is (3>2)>1, i.e. Lt(1, Lt(2, 3))."""
        expected = node(NodeKind.LT, lit(1), node(NodeKind.LT, lit(2), lit(3)))
        assert parse_source("3>2>1") == expected

    def test_unary_minus(self):
        """-3+5 parses to Add(Sub(0, 3), 5)."""
        expected = node(NodeKind.ADD, node(NodeKind.SUB, lit(0), lit(3)), lit(5))
        assert parse_source("-3+5") == expected

    def test_unary_plus_is_transparent(self):
        """+3 is just 3."""
        assert parse_source("+3") == lit(3)

    def test_repeated_unary_plus(self):
        """'+ + 3' is valid and equals 3."""
        assert parse_source("+ + 3") == lit(3)

    def test_double_negation(self):
        """--3 is 0-(0-3)."""
        expected = node(NodeKind.SUB, lit(0), node(NodeKind.SUB, lit(0), lit(3)))
        assert parse_source("--3") == expected

    def test_unary_minus_binds_tighter_than_mul(self):
        """-2*3 is (0-2)*3."""
        expected = node(NodeKind.MUL, node(NodeKind.SUB, lit(0), lit(2)), lit(3))
        assert parse_source("-2*3") == expected

    def test_unary_minus_on_group(self):
        """-(1+2) negates the whole group."""
        expected = node(NodeKind.SUB, lit(0), node(NodeKind.ADD, lit(1), lit(2)))
        assert parse_source("-(1+2)") == expected


# =============================================================================
# Error Handling
# =============================================================================

class TestParserErrors:
    """Missing and mismatched tokens raise ParseError."""

    def test_dangling_operator(self):
        """'1+' fails, never returns a partial tree."""
        with pytest.raises(ParseError):
            parse_source("1+")

    def test_dangling_operator_details(self):
        """The error names the position and what was expected."""
        with pytest.raises(UnexpectedEndError) as exc_info:
            parse_source("1+")
        error = exc_info.value
        assert error.position == 2
        assert error.expected == "a number or '('"
        assert error.found == "end of input"

    def test_empty_input(self):
        with pytest.raises(UnexpectedEndError):
            parse_source("")

    def test_missing_close_paren(self):
        with pytest.raises(UnexpectedEndError) as exc_info:
            parse_source("(1+2")
        assert exc_info.value.expected == "')'"

    def test_wrong_token_instead_of_close_paren(self):
        """'(1 2' has a number where ')' is required."""
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("(1 2")
        error = exc_info.value
        assert error.found == "2"
        assert error.expected == "')'"
        assert error.position == 2

    def test_missing_operand_between_operators(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("1 * / 2")
        assert exc_info.value.found == "/"
        assert exc_info.value.location.column == 5

    def test_empty_parentheses(self):
        with pytest.raises(UnexpectedTokenError):
            parse_source("()")

    def test_close_paren_first(self):
        with pytest.raises(UnexpectedTokenError):
            parse_source(")")

    def test_trailing_tokens_rejected(self):
        """Tokens after a complete expression are an error."""
        with pytest.raises(TrailingTokenError) as exc_info:
            parse_source("1 2")
        assert exc_info.value.position == 1
        assert exc_info.value.found == "2"

    def test_unbalanced_close_paren(self):
        with pytest.raises(TrailingTokenError):
            parse_source("(1))")

    def test_end_of_input_location(self):
        """End-of-input errors point just past the source."""
        with pytest.raises(UnexpectedEndError) as exc_info:
            parse_source("1 +  ")
        assert exc_info.value.location.column == 4

    def test_error_without_source_text(self):
        """parse() works on bare token lists and still locates errors."""
        with pytest.raises(UnexpectedEndError) as exc_info:
            parse(tokenize("12 *"))
        assert exc_info.value.location.column == 5

    def test_deep_nesting_is_parse_error(self):
        """Nesting past the recursion limit is reported, not crashed."""
        depth = 5000
        source = "(" * depth + "1" + ")" * depth
        with pytest.raises(ParseError, match="nested too deeply"):
            parse_source(source)

    def test_moderate_nesting_parses(self):
        source = "(" * 30 + "1" + ")" * 30
        assert parse_source(source) == lit(1)


# =============================================================================
# Parser State
# =============================================================================

class TestParserState:

    def test_parser_is_reusable(self):
        """parse() resets the cursor."""
        parser = Parser(tokenize("1+2"))
        assert parser.parse() == parser.parse()

    def test_nodes_carry_locations(self):
        """Operators and literals record their columns."""
        tree = parse_source("10 * 2")
        assert tree.location.column == 4
        assert tree.left.location.column == 1
        assert tree.right.location.column == 6


# =============================================================================
# AST Helpers
# =============================================================================

class TestASTHelpers:

    def test_repr_uses_constructor_notation(self):
        assert repr(parse_source("1>2")) == "Lt(Literal(2), Literal(1))"

    def test_format_infix(self):
        assert format_infix(parse_source("1+2*3")) == "(1 + (2 * 3))"

    def test_format_infix_reparses(self):
        tree = parse_source("-(4 - 2) >= 3 / 1 != 0")
        assert parse_source(format_infix(tree)) == tree

    def test_printer(self):
        output = ASTPrinter().print(parse_source("1+2*3"))
        assert output.splitlines() == [
            "BinaryOp: ADD",
            "  Literal: 1",
            "  BinaryOp: MUL",
            "    Literal: 2",
            "    Literal: 3",
        ]

    def test_visitor_default_walks_children(self):
        class LiteralCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_Literal(self, node):
                self.count += 1

        counter = LiteralCounter()
        counter.visit(parse_source("(1+2)*(3-4)/5"))
        assert counter.count == 5

    def test_tree_is_hashable(self):
        """Frozen nodes can be used as dict keys."""
        assert hash(parse_source("1+2")) == hash(parse_source("1 + 2"))

    def test_long_chain_helpers(self):
        """Printing and formatting work on trees deeper than the recursion limit."""
        tree = parse_source("+".join(["1"] * 3000))
        assert format_tree(tree).count("Add(") == 2999
        assert format_infix(tree).count("+") == 2999
        lines = ASTPrinter().print(tree).splitlines()
        assert len(lines) == 2999 + 3000
        assert lines[-1] == "  Literal: 1"

    def test_postorder(self):
        tree = parse_source("1+2*3")
        assert [format_tree(n) for n in postorder(tree) if isinstance(n, Literal)] == [
            "Literal(1)", "Literal(2)", "Literal(3)",
        ]
        assert list(postorder(tree))[-1] is tree


# =============================================================================
# Long Inputs and Source Positions
# =============================================================================

class TestLongInputs:

    def test_long_unary_run(self):
        """A run of signs parses without recursing per sign."""
        tree = parse_source("-" * 3000 + "1")
        depth = 0
        while isinstance(tree, BinaryOp):
            assert tree.left == lit(0)
            tree = tree.right
            depth += 1
        assert depth == 3000
        assert tree == lit(1)

    def test_unary_locations(self):
        """Each negation records the column of its own sign."""
        tree = parse_source("- -5")
        assert tree.location.column == 1
        assert tree.right.location.column == 3


class TestMultilineSource:

    def test_token_lines(self):
        tree = parse_source("1 +\n  2")
        assert tree.right.location.line == 2
        assert tree.right.location.column == 3

    def test_unexpected_token_on_second_line(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("(1 +\n 2 3)")
        error = exc_info.value
        assert (error.location.line, error.location.column) == (2, 4)
        assert error.source_line == " 2 3)"

    def test_end_of_input_on_last_line(self):
        with pytest.raises(UnexpectedEndError) as exc_info:
            parse_source("1 +\n 2 *\n\n")
        error = exc_info.value
        assert (error.location.line, error.location.column) == (2, 5)
        assert error.source_line == " 2 *"
