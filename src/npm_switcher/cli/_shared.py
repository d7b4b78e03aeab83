# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Output formats and the JSON formatter
- Configuration loading with error reporting
- Console utilities for error handling
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Never

from npm_switcher.config import AppConfig, load_config
from npm_switcher.exceptions import ConfigLoadError, ConfigValidationError

if TYPE_CHECKING:
    from rich.console import Console

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any] | list[Any]

DEFAULT_CONFIG_PATH: Final = Path("config.yml")

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ExitCode",
    "FormattableData",
    "OutputFormat",
    "exit_with_error",
    "format_json",
    "get_console",
    "get_error_console",
    "load_config_or_exit",
]


class ExitCode(IntEnum):
    """Standard exit codes for npm-switcher commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


class OutputFormat(StrEnum):
    """Supported output formats for listing commands."""

    TABLE = "table"
    JSON = "json"


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary or list to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson  # noqa: PLC0415

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def get_console() -> Console:
    """Get a Rich console writing to stdout."""
    from rich.console import Console  # noqa: PLC0415

    return Console(highlight=False)


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console  # noqa: PLC0415

    return Console(stderr=True, highlight=False)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", markup=True)
    raise SystemExit(code)


def load_config_or_exit(path: Path) -> AppConfig:
    """Load the configuration, exiting with a diagnostic on failure.

    Args:
        path: Configuration file path.

    Returns:
        The validated configuration.

    Raises:
        SystemExit: With LOAD_ERROR or VALIDATION_ERROR.
    """
    try:
        return load_config(path)
    except ConfigLoadError as e:
        exit_with_error(str(e), ExitCode.LOAD_ERROR)
    except ConfigValidationError as e:
        console = get_error_console()
        console.print(f"[red]Invalid configuration:[/red] {path}")
        for key, message in e.issues or [(e.key, str(e))]:
            console.print(f"  {key or '<root>'}: {message}", markup=False)
        raise SystemExit(ExitCode.VALIDATION_ERROR) from e
