"""
Expression Abstract Syntax Tree (AST) Definitions
=================================================

This module defines the AST node types produced by the parser and
consumed by the code generator.

Node Hierarchy
--------------
Expression (base)
├── Literal - unsigned integer constant (always a leaf)
└── BinaryOp - binary operation with exactly two children

Binary Operation Kinds
----------------------
| Kind | Source       | Meaning                         |
|------|--------------|---------------------------------|
| ADD  | a + b        | signed addition                 |
| SUB  | a - b, -a    | signed subtraction              |
| MUL  | a * b        | signed multiplication           |
| DIV  | a / b        | signed division, truncating     |
| EQ   | a == b       | 1 if equal, else 0              |
| NE   | a != b       | 1 if different, else 0          |
| LT   | a < b, b > a | 1 if less, else 0               |
| LE   | a <= b, b >= a | 1 if less or equal, else 0    |

There are no GT/GE kinds: the parser swaps operands instead.

Design Notes
------------
- Nodes are frozen dataclasses; a node owns its children exclusively
- Each node may record the source location it came from
- Locations are excluded from equality so trees compare structurally
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Iterator, Optional

from exprc.errors import SourceLocation


# =============================================================================
# Node Types
# =============================================================================

class NodeKind(Enum):
    """Binary operation kinds."""
    ADD = auto()    # +
    SUB = auto()    # -
    MUL = auto()    # *
    DIV = auto()    # /
    EQ = auto()     # ==
    NE = auto()     # !=
    LT = auto()     # <  (and > with swapped operands)
    LE = auto()     # <= (and >= with swapped operands)


# Source symbol for each kind, used when printing trees
KIND_SYMBOLS: dict[NodeKind, str] = {
    NodeKind.ADD: "+",
    NodeKind.SUB: "-",
    NodeKind.MUL: "*",
    NodeKind.DIV: "/",
    NodeKind.EQ: "==",
    NodeKind.NE: "!=",
    NodeKind.LT: "<",
    NodeKind.LE: "<=",
}


@dataclass(frozen=True)
class Expression:
    """Base class for all AST nodes."""

    def __repr__(self) -> str:
        return format_tree(self)


@dataclass(frozen=True, repr=False)
class Literal(Expression):
    """
    Unsigned integer constant.

    Attributes:
        value: The literal value
        location: Where the literal appears in source
    """
    value: int
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True, repr=False)
class BinaryOp(Expression):
    """
    Binary operation (left kind right).

    Attributes:
        kind: The operation
        left: Left operand (popped second at run time)
        right: Right operand (popped first at run time)
        location: Where the operator appears in source
    """
    kind: NodeKind
    left: Expression
    right: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_Literal and visit_BinaryOp. The default
    implementation of visit_BinaryOp visits both children, left first.

    Usage:
        class LiteralCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_Literal(self, node):
                self.count += 1
    """

    def visit(self, node: Expression) -> Any:
        """Dispatch to the visit method for the node's class."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Expression) -> None:
        """Visit the children of an unhandled node."""
        if isinstance(node, BinaryOp):
            self.visit(node.left)
            self.visit(node.right)

    def visit_Literal(self, node: Literal): return self.generic_visit(node)
    def visit_BinaryOp(self, node: BinaryOp): return self.generic_visit(node)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter:
    """
    Pretty printer for AST debugging.

    Walks the tree with an explicit stack.

    Usage:
        printer = ASTPrinter()
        print(printer.print(tree))

    Output for "1+2*3":
        BinaryOp: ADD
          Literal: 1
          BinaryOp: MUL
            Literal: 2
            Literal: 3
    """

    def __init__(self):
        self.output: list[str] = []

    def print(self, node: Expression) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        stack = [(node, 0)]
        while stack:
            current, depth = stack.pop()
            indent = "  " * depth
            if isinstance(current, BinaryOp):
                self.output.append(f"{indent}BinaryOp: {current.kind.name}")
                # Right pushed first so the left child prints first
                stack.append((current.right, depth + 1))
                stack.append((current.left, depth + 1))
            elif isinstance(current, Literal):
                self.output.append(f"{indent}Literal: {current.value}")
            else:
                self.output.append(f"{indent}<{type(current).__name__}>")
        return "\n".join(self.output)


# =============================================================================
# Traversal and Formatting Helpers
# =============================================================================

def postorder(root: Expression) -> Iterator[Expression]:
    """
    Yield every node after its children, left subtree first.

    Uses an explicit stack: tree depth is limited only by memory.

    >>> [type(n).__name__ for n in postorder(BinaryOp(NodeKind.ADD, Literal(1), Literal(2)))]
    ['Literal', 'Literal', 'BinaryOp']
    """
    stack: list[tuple[Expression, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, BinaryOp) and not expanded:
            stack.append((node, True))
            stack.append((node.right, False))
            stack.append((node.left, False))
        else:
            yield node


def _render(root: Expression, literal: Callable[[Literal], str],
            binary: Callable[[BinaryOp, str, str], str]) -> str:
    """Fold a tree bottom-up into text."""
    parts: list[str] = []
    for node in postorder(root):
        if isinstance(node, Literal):
            parts.append(literal(node))
        elif isinstance(node, BinaryOp):
            right = parts.pop()
            left = parts.pop()
            parts.append(binary(node, left, right))
        else:
            parts.append(f"<{type(node).__name__}>")
    return parts.pop()


def format_tree(node: Expression) -> str:
    """
    Render a tree in constructor notation.

    >>> format_tree(BinaryOp(NodeKind.LT, Literal(2), Literal(1)))
    'Lt(Literal(2), Literal(1))'
    """
    return _render(
        node,
        lambda leaf: f"Literal({leaf.value})",
        lambda op, left, right: f"{op.kind.name.capitalize()}({left}, {right})",
    )


def format_infix(node: Expression) -> str:
    """
    Render a tree as fully parenthesized source.

    The result parses back to an equal tree, except that a LT/LE node
    is always written with '<'/'<=' (the parser never produces '>').

    >>> format_infix(BinaryOp(NodeKind.ADD, Literal(1), Literal(2)))
    '(1 + 2)'
    """
    return _render(
        node,
        lambda leaf: str(leaf.value),
        lambda op, left, right: f"({left} {KIND_SYMBOLS[op.kind]} {right})",
    )
