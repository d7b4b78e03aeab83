# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003, A002  # Path needed at runtime for cyclopts parameter parsing
"""Snapshot commands: list, show, create and delete numbered snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import anyio
from cyclopts import App, Parameter, validators
from rich.markup import escape
from rich.table import Table

from npm_switcher.archive import SnapshotArchive, SnapshotService
from npm_switcher.exceptions import ArchiveError, SnapshotNotFoundError, StoreError
from npm_switcher.store import SQLiteRecordStore
from npm_switcher.utils import create_logger

from ._shared import (
    DEFAULT_CONFIG_PATH,
    ExitCode,
    OutputFormat,
    exit_with_error,
    format_json,
    get_console,
    load_config_or_exit,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from npm_switcher.config import AppConfig

ConfigOption = Annotated[
    Path, Parameter(name=["--config", "-c"], help="Path to the YAML config file")
]
FormatOption = Annotated[OutputFormat, Parameter(name="--format", help="Output format")]
SnapshotId = Annotated[
    int, Parameter(help="Snapshot number", validator=validators.Number(gte=1))
]


def _file_logger(config: AppConfig) -> FilteringBoundLogger:
    return create_logger(config.log_file, level=config.log_level.value, echo=False)


def _archive(config: AppConfig) -> SnapshotArchive:
    return SnapshotArchive(config.snapshot_dir, logger=_file_logger(config))


def list_snapshots(
    *,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
    format: FormatOption = OutputFormat.TABLE,
) -> None:
    """List all stored snapshots."""
    archive = _archive(load_config_or_exit(config))
    summaries = anyio.run(archive.list_snapshots)

    if format is OutputFormat.JSON:
        print(format_json([s.model_dump() for s in summaries]))  # noqa: T201
        return

    console = get_console()
    if not summaries:
        console.print("No snapshots found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Created")
    table.add_column("Description")
    table.add_column("Services", justify="right")
    for summary in summaries:
        table.add_row(
            str(summary.id),
            summary.timestamp,
            escape(summary.description),
            str(summary.services_count),
        )
    console.print(table)


def show_snapshot(
    snapshot_id: SnapshotId,
    *,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
    format: FormatOption = OutputFormat.TABLE,
) -> None:
    """Show the targets captured in a snapshot."""
    archive = _archive(load_config_or_exit(config))
    try:
        snapshot = anyio.run(archive.load_snapshot, snapshot_id)
    except SnapshotNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND)
    except ArchiveError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    if format is OutputFormat.JSON:
        print(format_json(snapshot.model_dump()))  # noqa: T201
        return

    console = get_console()
    title = escape(snapshot.description)
    console.print(f"[bold]Snapshot {snapshot.id}[/bold]: {title}")
    console.print(f"[dim]Created: {snapshot.timestamp}[/dim]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Service", style="cyan")
    table.add_column("Domain")
    table.add_column("Target")
    for name, service in snapshot.services.items():
        table.add_row(name, service.domain, str(service.target))
    console.print(table)


async def _capture_targets(
    config: AppConfig, logger: FilteringBoundLogger
) -> tuple[dict[str, SnapshotService], list[str]]:
    store = SQLiteRecordStore(config.sqlite_file, logger=logger)
    services: dict[str, SnapshotService] = {}
    missing: list[str] = []
    await store.connect()
    try:
        for name, spec in config.services.items():
            record = await store.find_by_domain(spec.domain)
            if record is None:
                missing.append(name)
                continue
            services[name] = SnapshotService.from_target(record.target, spec.domain)
    finally:
        await store.close()
    return services, missing


def create_snapshot(
    *,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
    description: Annotated[
        str, Parameter(name=["--description", "-d"], help="Snapshot description")
    ] = "Manual snapshot",
) -> None:
    """Snapshot every configured service's current proxy record target."""
    app_config = load_config_or_exit(config)
    logger = _file_logger(app_config)
    archive = SnapshotArchive(app_config.snapshot_dir, logger=logger)

    async def _create() -> tuple[int, list[str]]:
        services, missing = await _capture_targets(app_config, logger)
        return await archive.create_snapshot(description, services), missing

    try:
        snapshot_id, missing = anyio.run(_create)
    except StoreError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)
    except ArchiveError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    console = get_console()
    for name in missing:
        console.print(f"[yellow]Skipped {name}:[/yellow] no proxy record found")
    console.print(f"Created snapshot {snapshot_id}: {escape(description)}")


def delete_snapshot(
    snapshot_id: SnapshotId,
    *,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Delete a snapshot."""
    archive = _archive(load_config_or_exit(config))
    try:
        deleted = anyio.run(archive.delete_snapshot, snapshot_id)
    except ArchiveError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    if not deleted:
        exit_with_error(f"Snapshot {snapshot_id} not found", ExitCode.NOT_FOUND)
    get_console().print(f"Deleted snapshot {snapshot_id}")


def create_snapshots_app() -> App:
    """Build the ``snapshots`` command group."""
    app = App(
        name="snapshots", help="Manage numbered target snapshots", help_on_error=True
    )
    app.command(list_snapshots, name="list")
    app.command(show_snapshot, name="show")
    app.command(create_snapshot, name="create")
    app.command(delete_snapshot, name="delete")
    return app
