"""
exprc - Arithmetic Expression Compiler for x86-64
=================================================

This package compiles arithmetic and relational expressions over
non-negative integers into x86-64 assembly that evaluates them on the
machine stack.

Main Components
---------------
- **lexer**: converts source text into Operator and Number tokens
- **parser**: recursive descent over a six-level precedence grammar
- **codegen**: post-order emission of stack-machine instructions
- **compiler**: pipeline driver, header and trailer lines
- **vm**: reference interpreter for the generated instructions

Supported Syntax
----------------
    + - * /          arithmetic (division truncates toward zero)
    == != < <= > >=  comparisons, yielding 0 or 1
    ( )              grouping
    unary + and -    sign

Quick Start
-----------
Compile an expression:
    >>> from exprc import compile_expression
    >>> asm = compile_expression("(1 + 2) * 3")

Inspect each stage:
    >>> from exprc import tokenize, parse, generate
    >>> tokens = tokenize("1 > 2")
    >>> tree = parse(tokens)          # Lt(Literal(2), Literal(1))
    >>> code = generate(tree)

Or use the command-line tool:
    $ exprc "1 + 2 * 3" -o expr.s
    $ exprc --run "10 / -3"
    -3
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from exprc.errors import (
    ExprError,
    SourceLocation,
    LexError,
    InvalidCharacterError,
    LiteralOverflowError,
    ParseError,
    UnexpectedTokenError,
    UnexpectedEndError,
    TrailingTokenError,
    StackMachineError,
)
from exprc.lexer import Lexer, Token, TokenType, MAX_LITERAL, tokenize
from exprc.ast import (
    Expression,
    Literal,
    BinaryOp,
    NodeKind,
    ASTVisitor,
    ASTPrinter,
    format_tree,
    format_infix,
    postorder,
)
from exprc.parser import Parser, parse, parse_source
from exprc.codegen import CodeGenerator, Instruction, generate
from exprc.compiler import (
    ExpressionCompiler,
    CompilerOptions,
    CompilerResult,
    compile_expression,
    compile_file,
)
from exprc.vm import StackMachine, run_assembly

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "ExprError",
    "SourceLocation",
    "LexError",
    "InvalidCharacterError",
    "LiteralOverflowError",
    "ParseError",
    "UnexpectedTokenError",
    "UnexpectedEndError",
    "TrailingTokenError",
    "StackMachineError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "MAX_LITERAL",
    "tokenize",
    # AST
    "Expression",
    "Literal",
    "BinaryOp",
    "NodeKind",
    "ASTVisitor",
    "ASTPrinter",
    "format_tree",
    "format_infix",
    "postorder",
    # Parser
    "Parser",
    "parse",
    "parse_source",
    # Code generator
    "CodeGenerator",
    "Instruction",
    "generate",
    # Compiler
    "ExpressionCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_expression",
    "compile_file",
    # Reference interpreter
    "StackMachine",
    "run_assembly",
]
