"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes for the CLI.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for the CLI."""
    SUCCESS = 0
    BUILD_ERROR = 1       # Lexical or syntax error in the expression
    INVALID_ARGS = 2      # Wrong argument count or unwritable output
    INTERNAL_ERROR = 3    # Unexpected internal error
    EXECUTION_ERROR = 4   # Fault while running code with --run


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Unified exception handler for the CLI.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from exprcc.errors import CompileError, ExecutionError

    if isinstance(error, CompileError):
        # Already formatted as source line plus caret line
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, ExecutionError):
        click.echo(f"Execution error: {error}", err=True)
        sys.exit(ExitCode.EXECUTION_ERROR)

    elif isinstance(error, click.UsageError):
        error.show()
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
