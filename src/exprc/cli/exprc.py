"""
exprc - Expression Compiler Command-Line Interface
==================================================

This module implements the command-line interface for the expression
compiler.

Usage Examples
--------------
Compile to stdout:
    $ exprc "1 + 2 * 3"

Write to a file, then assemble and run:
    $ exprc "(1 + 2) * 3" -o expr.s
    $ cc -o expr expr.s && ./expr; echo $?

Expressions starting with '-' go after "--":
    $ exprc -- "-3 + 5"

Inspect intermediate stages:
    $ exprc --tokens "1 <= 2"
    $ exprc --ast "1 > 2"

Evaluate with the reference interpreter:
    $ exprc --run "10 / -3"
"""

import logging
from pathlib import Path
from typing import Optional

import click

from exprc import __version__
from exprc.ast import ASTPrinter
from exprc.cli.errors import handle_cli_exception
from exprc.compiler import ExpressionCompiler, CompilerOptions
from exprc.lexer import MAX_LITERAL
from exprc.vm import StackMachine, parse_assembly

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("expression", required=False)
@click.option(
    "-f", "--file", "source_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the expression from a file instead of the command line",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: stdout)",
)
@click.option(
    "-e", "--entry",
    default="main",
    show_default=True,
    help="Entry point symbol",
)
@click.option(
    "--max-literal",
    type=click.IntRange(min=0),
    default=MAX_LITERAL,
    show_default=True,
    help="Largest accepted integer literal",
)
@click.option(
    "--tokens",
    "show_tokens",
    is_flag=True,
    help="Print tokens and exit",
)
@click.option(
    "--ast",
    "show_ast",
    is_flag=True,
    help="Print AST and exit",
)
@click.option(
    "--run",
    is_flag=True,
    help="Evaluate the generated code with the reference interpreter",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="exprc")
def main(
    expression: Optional[str],
    source_file: Optional[Path],
    output: Optional[Path],
    entry: str,
    max_literal: int,
    show_tokens: bool,
    show_ast: bool,
    run: bool,
    verbose: bool,
) -> None:
    """
    Compile an arithmetic expression to x86-64 assembly.

    EXPRESSION uses non-negative integers, + - * /, the comparisons
    == != < <= > >=, parentheses, and unary + and -.

    \b
    Examples:
        exprc "1 + 2 * 3"            # Assembly to stdout
        exprc "5 > 2" -o expr.s      # Assembly to a file
        exprc --run "(4 + 6) / 3"    # Prints 3
        exprc -- "-3 + 5"            # Leading '-' needs "--"
    """
    setup_logging(verbose)

    if (expression is None) == (source_file is None):
        raise click.UsageError("provide exactly one of EXPRESSION or --file")

    try:
        options = CompilerOptions(entry_symbol=entry, max_literal=max_literal)
        compiler = ExpressionCompiler(options)

        if source_file is not None:
            logger.debug(f"Reading expression from {source_file}")
            result = compiler.compile_file(str(source_file))
        else:
            result = compiler.compile_source(expression, "<command-line>")

        if show_tokens:
            for token in result.tokens:
                click.echo(f"{token.type.name:<8} {token}")
            return

        if show_ast:
            click.echo(ASTPrinter().print(result.ast))
            return

        if run:
            value = StackMachine().run(parse_assembly(result.assembly))
            click.echo(str(value))
            return

        if output is not None:
            output.write_text(result.assembly, encoding="utf-8")
            logger.info(f"Wrote {len(result.instructions)} instructions to {output}")
        else:
            click.echo(result.assembly, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
