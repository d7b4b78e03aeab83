"""The command-line interface for npm-switcher."""

from cyclopts import App
from rich.console import Console

from npm_switcher import __version__

from ._check import check_config
from ._run import run
from ._snapshots import create_snapshots_app

HELP = "Health-driven upstream failover for Nginx Proxy Manager."


def register_commands(app: App) -> None:
    """Register every command on ``app``; monitoring is the default."""
    app.default(run)
    app.command(run, name="run")
    app.command(check_config, name="check-config")
    app.command(create_snapshots_app())


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="npm-switcher",
        help=HELP,
        version=__version__,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `npm-switcher` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
