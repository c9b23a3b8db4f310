"""CLI error handling for fake-time-series-cli.

Wraps core exceptions, YAML errors and pydantic validation errors into
user-friendly messages with appropriate exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError as PydanticValidationError

from fake_time_series.errors import FakeTimeSeriesError
from fake_time_series_cli.output import error

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


# Exit codes following sysexits.h convention
EXIT_USER_ERROR = 1  # User error (validation, parse failure, missing sink URL)
EXIT_SYSTEM_ERROR = 2  # System error (missing config file, permissions)


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        """Initialize CLIError.

        Args:
            message: User-facing error message.
            exit_code: Exit code for the CLI.
        """
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format Pydantic validation error into user-friendly message.

    Args:
        err: Pydantic ValidationError instance.

    Returns:
        Formatted error message with field paths and issues.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - batchShuffleProbability: Input should be less than or equal to 1"
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        msg = e["msg"]
        lines.append(f"  - {loc}: {msg}")

    return "\n".join(lines)


def handle_yaml_error(err: Exception, file_path: str) -> NoReturn:
    """Handle YAML parsing errors with line number information.

    Raises:
        CLIError: Always raises with formatted error message.
    """
    # yaml.YAMLError has mark attribute with line info
    error_msg = str(err)
    if hasattr(err, "problem_mark") and err.problem_mark is not None:
        mark = err.problem_mark
        line = mark.line + 1
        col = mark.column + 1
        error_msg = f"YAML syntax error at line {line}, column {col}: {err.problem}"  # type: ignore[attr-defined]

    raise CLIError(f"Invalid YAML in {file_path}: {error_msg}")


def handle_validation_error(err: PydanticValidationError, file_path: str | None = None) -> NoReturn:
    """Handle Pydantic validation errors with user-friendly messages.

    Raises:
        CLIError: Always raises with formatted error message.
    """
    formatted = format_pydantic_error(err)
    if file_path:
        raise CLIError(f"Invalid configuration in {file_path}:\n{formatted}")
    raise CLIError(f"Invalid options:\n{formatted}")


def handle_core_error(err: FakeTimeSeriesError) -> NoReturn:
    """Turn a parse, validation or configuration failure into a CLI error.

    Raises:
        CLIError: Always raises with the error's user-facing message.
    """
    raise CLIError(err.user_message)


def handle_file_not_found(file_path: str) -> NoReturn:
    """Handle a missing config file.

    Raises:
        CLIError: Always raises with exit code 2.
    """
    raise CLIError(
        f"Config file not found: {file_path}",
        exit_code=EXIT_SYSTEM_ERROR,
    )
