"""
Expression Compiler Main Module
===============================

This module provides the main compiler interface. It runs the complete
translation pipeline:

    Source → Lex → Parse → Generate → Assembly

Usage
-----
Command line:
    $ exprc "1 + 2 * 3" > expr.s
    $ cc -o expr expr.s && ./expr; echo $?

Programmatic:
    >>> from exprc import compile_expression
    >>> print(compile_expression("42"), end="")
    .intel_syntax noprefix
    .globl main
    main:
      push 42
      pop rax
      ret

Output Layout
-------------
1. Syntax mode declaration
2. Entry symbol declaration
3. Entry label
4. Generated instructions (leave the value on the stack)
5. Trailer: pop the value into RAX and return it

Error Handling
--------------
The first LexError or ParseError aborts compilation; nothing is
generated for a failing expression.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from exprc.ast import Expression
from exprc.codegen import CodeGenerator, Instruction
from exprc.lexer import Lexer, Token, MAX_LITERAL
from exprc.parser import Parser

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"[A-Za-z_.$][A-Za-z0-9_.$]*")

# Pops the expression's value into the return register
TRAILER: tuple[Instruction, ...] = (
    Instruction("pop", ("rax",)),
    Instruction("ret"),
)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        entry_symbol: Name of the exported entry point
        syntax: Assembler syntax directive emitted first
        max_literal: Largest accepted integer literal
    """
    entry_symbol: str = "main"
    syntax: str = ".intel_syntax noprefix"
    max_literal: int = MAX_LITERAL

    def __post_init__(self):
        if not SYMBOL_PATTERN.fullmatch(self.entry_symbol or ""):
            raise ValueError(f"invalid entry symbol: {self.entry_symbol!r}")
        if self.max_literal < 0:
            raise ValueError(f"max_literal must be non-negative, got {self.max_literal}")


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        source: The expression text
        tokens: Tokens produced by the lexer
        ast: Parsed expression tree
        instructions: Generated instructions (without header and trailer)
        assembly: Complete assembly text
    """
    filename: str = ""
    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    ast: Optional[Expression] = None
    instructions: list[Instruction] = field(default_factory=list)
    assembly: str = ""

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class ExpressionCompiler:
    """
    Compiles expressions to x86-64 assembly.

    Example:
        compiler = ExpressionCompiler()
        result = compiler.compile_source("1 + 2")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile expression source to assembly.

        Args:
            source: Expression text
            filename: Source name for error messages

        Returns:
            CompilerResult with every intermediate artifact

        Raises:
            LexError: If tokenization fails
            ParseError: If parsing fails
        """
        result = CompilerResult(filename=filename, source=source)

        start = time.perf_counter()
        result.tokens = self._lex(source, filename)
        lexed = time.perf_counter()
        result.ast = self._parse(result.tokens, source, filename)
        parsed = time.perf_counter()
        result.instructions = self._generate(result.ast)
        generated = time.perf_counter()

        result.assembly = self.render(result.instructions)

        logger.debug(
            f"Compiled {filename}: lex {(lexed - start) * 1000:.2f}ms, "
            f"parse {(parsed - lexed) * 1000:.2f}ms, "
            f"codegen {(generated - parsed) * 1000:.2f}ms"
        )
        return result

    def compile_file(self, filepath: str) -> CompilerResult:
        """
        Compile an expression stored in a file.

        Surrounding whitespace, including the final newline, is ignored.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))

    def render(self, instructions: list[Instruction]) -> str:
        """Wrap instructions in the header and trailer lines."""
        lines = [
            self.options.syntax,
            f".globl {self.options.entry_symbol}",
            f"{self.options.entry_symbol}:",
        ]
        lines.extend(str(instruction) for instruction in instructions)
        lines.extend(str(instruction) for instruction in TRAILER)
        return "\n".join(lines) + "\n"

    def _lex(self, source: str, filename: str) -> list[Token]:
        lexer = Lexer(source, filename, self.options.max_literal)
        return lexer.tokenize()

    def _parse(self, tokens: list[Token], source: str, filename: str) -> Expression:
        parser = Parser(tokens, source, filename)
        return parser.parse()

    def _generate(self, ast: Expression) -> list[Instruction]:
        return CodeGenerator().generate(ast)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_expression(source: str, filename: str = "<input>") -> str:
    """
    Compile an expression to x86-64 assembly.

    Args:
        source: Expression text
        filename: Source name for error messages

    Returns:
        Complete assembly text

    Raises:
        ExprError: If compilation fails
    """
    return ExpressionCompiler().compile_source(source, filename).assembly


def compile_file(filepath: str, output_path: Optional[str] = None) -> str:
    """
    Compile an expression file, optionally writing the assembly.

    Example:
        >>> asm = compile_file("expr.txt", "expr.s")
    """
    result = ExpressionCompiler().compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")

    return result.assembly
