"""
exprcc - Expression Compiler Command-Line Interface
===================================================

This module implements the command-line interface for the expression
compiler. It takes exactly one argument, the expression, and writes
x86-64 assembly to standard output.

Usage Examples
--------------
Basic compilation:
    $ exprcc "2+3*4"

With output file:
    $ exprcc "2+3*4" -o prog.s

Build and run with the system C compiler:
    $ exprcc "2+3*4" > prog.s && cc -o prog prog.s && ./prog; echo $?

Leading minus (an unknown option is taken as the expression):
    $ exprcc -5+8
    $ exprcc -- "-(3+2)"

Evaluate in the built-in stack machine:
    $ exprcc --run "(2+3)*4"
    20
"""

import logging
from pathlib import Path
from typing import Optional

import click

from exprcc import __version__
from exprcc.ast import ASTPrinter
from exprcc.compiler import ExpressionCompiler, CompilerOptions
from exprcc.lexer import tokenize
from exprcc.machine import StackMachine
from exprcc.cli.errors import handle_cli_exception

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity. Log records go to stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("expression")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write assembly to a file instead of stdout",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print tokens and exit (for debugging)",
)
@click.option(
    "--run",
    is_flag=True,
    help="Execute the generated code in the stack machine and print the result",
)
@click.option(
    "--comments",
    is_flag=True,
    help="Emit the expression as a comment at the top of the assembly",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (logged to stderr)",
)
@click.version_option(version=__version__, prog_name="exprcc")
def main(
    expression: str,
    output: Optional[Path],
    ast: bool,
    tokens: bool,
    run: bool,
    comments: bool,
    verbose: bool,
) -> None:
    """
    Compile an arithmetic expression to x86-64 assembly.

    EXPRESSION is a single integer expression such as "(2+3)*4".

    The generated function `main` returns the value of the expression.

    \b
    Supported syntax:
        - Decimal integer literals
        - + - * /  (division truncates toward zero)
        - == != < <= > >=  (result is 0 or 1)
        - Unary + and -
        - Parentheses
    """
    setup_logging(verbose)

    try:
        if sum((ast, tokens, run)) > 1:
            raise click.UsageError(
                "--ast, --tokens and --run are mutually exclusive",
                ctx=click.get_current_context(),
            )

        # Token dump mode
        if tokens:
            for token in tokenize(expression):
                click.echo(repr(token))
            return

        options = CompilerOptions(output_comments=comments)
        compiler = ExpressionCompiler(options)

        logger.debug(f"Compiling {expression!r}")
        result = compiler.compile_source(expression)
        logger.debug(f"Tokenized: {result.token_count} tokens")

        # AST dump mode
        if ast:
            click.echo(ASTPrinter().print(result.ast))
            return

        # Run mode
        if run:
            value = StackMachine().run(result.assembly)
            click.echo(str(value))
            return

        if output is not None:
            output.write_text(result.assembly)
            logger.debug(f"Wrote {len(result.assembly)} bytes to {output}")
        else:
            click.echo(result.assembly, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
