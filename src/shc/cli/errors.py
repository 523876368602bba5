"""
CLI Error Handling
==================

Provides consistent error reporting and exit codes for the shcc driver.
"""

import traceback
from enum import IntEnum

import click

from shc.errors import ShcError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Lexical, syntax, name or code generation error
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> ExitCode:
    """
    Report an exception on stderr and classify it.

    The driver keeps going after a failed file, so this returns the
    exit code instead of exiting; the caller exits with the worst code
    seen once every file has been processed.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Returns:
        The exit code for this failure
    """
    if isinstance(error, ShcError):
        # Compiler errors already carry the "error:" prefix
        click.echo(str(error), err=True)
        return ExitCode.BUILD_ERROR

    if isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        return ExitCode.INVALID_ARGS

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    return ExitCode.INTERNAL_ERROR
