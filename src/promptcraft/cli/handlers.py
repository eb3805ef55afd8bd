"""
Error handling for the CLI.

Maps library exceptions and failed operations to exit codes and user messages.
"""

import sys
from collections.abc import Callable

import click

from promptcraft import (
    ConfigurationError,
    ImageProcessingError,
    Operation,
    PromptcraftError,
    ValidationError,
)
from promptcraft.cli import progress
from promptcraft.cli.utils import EXIT_API_OR_NETWORK, EXIT_VALIDATION_OR_CONFIG


class OperationFailed(PromptcraftError):
    """A session operation finished FAILED; carries its underlying cause, if any."""

    def __init__(self, op: Operation) -> None:
        super().__init__(op.error or "Operation failed.")
        self.operation = op


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map library and known exceptions to (exit_code, user_message)."""
    if isinstance(exc, OperationFailed):
        cause = exc.operation.cause
        if cause is not None and not isinstance(cause, OperationFailed):
            code, _ = map_exception_to_exit(cause)
            return (code, exc.message)
        return (EXIT_API_OR_NETWORK, exc.message)
    if isinstance(exc, ValidationError):
        msg = exc.message
        if exc.field:
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_VALIDATION_OR_CONFIG, msg)
    if isinstance(exc, (ConfigurationError, ImageProcessingError)):
        return (EXIT_VALIDATION_OR_CONFIG, exc.message)
    if isinstance(exc, PromptcraftError):
        return (EXIT_API_OR_NETWORK, exc.message)
    return (EXIT_API_OR_NETWORK, str(exc) if exc.args else "An unexpected error occurred.")


def raise_if_failed(op: Operation) -> Operation:
    """Return op unchanged, or raise OperationFailed if it did not succeed."""
    if op.failed:
        raise OperationFailed(op)
    return op


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn(); on exception map to exit code and message, print and sys.exit.
    Used so command bodies stay free of try/except for known errors.
    """
    try:
        fn()
    except PromptcraftError as e:
        code, msg = map_exception_to_exit(e)
        if quiet:
            click.echo(msg, err=True)
        else:
            progress.print_error(msg)
        sys.exit(code)
    except Exception as e:
        if debug:
            raise
        code, msg = map_exception_to_exit(e)
        if quiet:
            click.echo(msg, err=True)
        else:
            progress.print_error(msg)
        sys.exit(EXIT_API_OR_NETWORK)


__all__ = [
    "OperationFailed",
    "map_exception_to_exit",
    "raise_if_failed",
    "run_with_error_handling",
]
