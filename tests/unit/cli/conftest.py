from collections.abc import Callable

import pytest
from rich.console import Console

from npm_switcher.cli import create_app


@pytest.fixture
def switcher_cli(console: Console) -> Callable[..., int]:
    """Create the CLI app for testing and return a runner yielding the exit code."""

    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        """Run CLI app and return exit code (0 if no SystemExit)."""

        try:
            app(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
