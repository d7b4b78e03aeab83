"""Command-line interface for npm-switcher."""

from ._app import app, create_app, main
from ._shared import ExitCode, OutputFormat

__all__ = ["ExitCode", "OutputFormat", "app", "create_app", "main"]
