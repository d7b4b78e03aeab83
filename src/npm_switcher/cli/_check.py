# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Check-config command: validate a configuration file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter
from rich.table import Table

from ._shared import (
    DEFAULT_CONFIG_PATH,
    OutputFormat,
    format_json,
    get_console,
    load_config_or_exit,
)

if TYPE_CHECKING:
    from npm_switcher.config import AppConfig, TargetSpec


def _describe_target(target: TargetSpec | None) -> str:
    if target is None:
        return "(original)"
    scheme = f"{target.scheme}://" if target.scheme else ""
    return f"{scheme}{target.host}:{target.port}"


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


def _service_rows(config: AppConfig) -> list[dict[str, object]]:
    return [
        {
            "name": name,
            "domain": spec.domain,
            "check": spec.check,
            "interval": spec.interval,
            "error_delay": spec.error_delay,
            "retries": spec.retries,
            "if_success": _describe_target(spec.if_success),
            "if_failed": _describe_target(spec.if_failed),
        }
        for name, spec in config.services.items()
    ]


def check_config(
    *,
    config: Annotated[
        Path, Parameter(name=["--config", "-c"], help="Path to the YAML config file")
    ] = DEFAULT_CONFIG_PATH,
    format: Annotated[  # noqa: A002
        OutputFormat, Parameter(name="--format", help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Validate the configuration and summarize the monitored services.

    Exits with 1 if the file cannot be loaded and 2 if it is invalid.
    """
    app_config = load_config_or_exit(config)
    console = get_console()

    if format is OutputFormat.JSON:
        data = {"config": str(config), "services": _service_rows(app_config)}
        print(format_json(data))  # noqa: T201
        return

    console.print(f"[green]Configuration OK:[/green] {config}")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Service", style="cyan")
    table.add_column("Domain")
    table.add_column("Check")
    table.add_column("Interval", justify="right")
    table.add_column("Error delay", justify="right")
    table.add_column("Retries", justify="right")
    table.add_column("If success")
    table.add_column("If failed")
    for name, spec in app_config.services.items():
        table.add_row(
            name,
            spec.domain,
            spec.check,
            _format_seconds(spec.interval),
            _format_seconds(spec.error_delay),
            str(spec.retries),
            _describe_target(spec.if_success),
            _describe_target(spec.if_failed),
        )
    console.print(table)
