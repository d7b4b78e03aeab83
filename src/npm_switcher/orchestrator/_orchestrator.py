"""Failover orchestrator.

The orchestrator prepares every service at startup, fans out the initial
probes, then runs one self-paced monitor task per service until shutdown.
It uses anyio task groups for structured concurrency.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING, Final, final

import anyio

from npm_switcher.archive import BackupArchive, SnapshotArchive, SnapshotService
from npm_switcher.exceptions import (
    ArchiveError,
    FileSyncError,
    ReloadError,
    StartupError,
    StoreError,
)
from npm_switcher.health import HealthEvaluator
from npm_switcher.nginx import NginxConfigSynchronizer
from npm_switcher.store import SQLiteRecordStore
from npm_switcher.utils import get_null_logger

from ._monitor import ServiceMonitor

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from npm_switcher.archive import Snapshot
    from npm_switcher.config import AppConfig
    from npm_switcher.store import RecordStore

STARTUP_SNAPSHOT_DESCRIPTION: Final = "Startup snapshot"


@final
class FailoverOrchestrator:
    """Coordinates the service monitors of one configuration.

    Collaborators default to the production implementations built from the
    configuration and may be replaced, e.g. with test doubles.
    """

    __slots__ = (
        "_backups",
        "_config",
        "_initialized",
        "_logger",
        "_monitors",
        "_running",
        "_shutdown_event",
        "_shutdown_requested",
        "_snapshots",
        "_store",
        "_synchronizer",
    )

    def __init__(  # noqa: PLR0913
        self,
        config: AppConfig,
        *,
        store: RecordStore | None = None,
        synchronizer: NginxConfigSynchronizer | None = None,
        evaluator: HealthEvaluator | None = None,
        backups: BackupArchive | None = None,
        snapshots: SnapshotArchive | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the orchestrator without touching any resource.

        Args:
            config: Validated application configuration.
            store: Record store. Defaults to SQLite at ``config.sqlite_file``.
            synchronizer: Config synchronizer. Defaults to ``config.nginx_conf_dir``.
            evaluator: Health evaluator shared by all services.
            backups: Backup archive. Defaults to ``config.backup_dir``.
            snapshots: Snapshot archive. Defaults to ``config.snapshot_dir``.
            logger: Application logger.
        """
        base_logger = logger or get_null_logger()
        self._config = config
        self._logger = base_logger.bind(component="orchestrator")
        self._store: RecordStore = store or SQLiteRecordStore(
            config.sqlite_file, logger=base_logger
        )
        self._synchronizer = synchronizer or NginxConfigSynchronizer(
            config.nginx_conf_dir, config.nginx_refresh_cmd, logger=base_logger
        )
        self._backups = backups or BackupArchive(config.backup_dir, logger=base_logger)
        self._snapshots = snapshots or SnapshotArchive(
            config.snapshot_dir, logger=base_logger
        )
        shared_evaluator = evaluator or HealthEvaluator(base_logger)

        self._monitors: dict[str, ServiceMonitor] = {
            name: ServiceMonitor(
                name,
                spec,
                evaluator=shared_evaluator,
                store=self._store,
                synchronizer=self._synchronizer,
                logger=base_logger,
            )
            for name, spec in config.services.items()
        }
        self._shutdown_event: anyio.Event | None = None
        self._shutdown_requested = False
        self._initialized = False
        self._running = False

    @property
    def monitors(self) -> dict[str, ServiceMonitor]:
        """Return the monitors keyed by service name."""
        return self._monitors

    @property
    def running(self) -> bool:
        return self._running

    async def initialize(
        self,
        *,
        snapshot_id: int | None = None,
        force_snapshot: bool = False,
    ) -> None:
        """Prepare every service for monitoring.

        Connects the store, ensures the config directory exists, runs the
        proxy syntax self-test, then captures each service's original
        target from its record and writes the initial backup. A service
        whose record is missing is still monitored.

        Args:
            snapshot_id: Snapshot whose targets replace the captured originals.
            force_snapshot: Create a snapshot of the originals once captured.

        Raises:
            StartupError: If any preparation step fails.
            SnapshotNotFoundError: If ``snapshot_id`` does not exist.
        """
        self._logger.info("starting", services=len(self._monitors))
        try:
            await self._prepare(snapshot_id, force_snapshot=force_snapshot)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await self._store.close()
            raise
        self._initialized = True

    async def _prepare(self, snapshot_id: int | None, *, force_snapshot: bool) -> None:
        try:
            await self._store.connect()
            await self._synchronizer.ensure_config_directory()
            _ = await self._synchronizer.test_syntax()
        except (StoreError, FileSyncError, ReloadError) as e:
            msg = f"Startup failed: {e}"
            raise StartupError(msg) from e

        snapshot = (
            await self._snapshots.load_snapshot(snapshot_id)
            if snapshot_id is not None
            else None
        )

        for name, monitor in self._monitors.items():
            try:
                record = await self._store.find_by_domain(monitor.spec.domain)
            except StoreError as e:
                msg = f"Cannot read proxy record for {name}: {e}"
                raise StartupError(msg) from e

            if record is None:
                self._logger.warning(
                    "no proxy record at startup, monitoring anyway",
                    service=name,
                    domain=monitor.spec.domain,
                )
                continue

            monitor.state.record_id = record.id
            monitor.state.original = record.target
            monitor.state.applied = record.target
            self._logger.info(
                "captured original target",
                service=name,
                record_id=record.id,
                target=str(record.target),
            )

            try:
                _ = await self._backups.backup_initial(name, record)
            except ArchiveError as e:
                msg = f"Cannot back up proxy record for {name}: {e}"
                raise StartupError(msg) from e

        if snapshot is not None:
            self._apply_snapshot(snapshot)

        if force_snapshot:
            try:
                _ = await self.create_snapshot(STARTUP_SNAPSHOT_DESCRIPTION)
            except ArchiveError as e:
                msg = f"Cannot create startup snapshot: {e}"
                raise StartupError(msg) from e

    def _apply_snapshot(self, snapshot: Snapshot) -> None:
        for name, service in snapshot.services.items():
            monitor = self._monitors.get(name)
            if monitor is None:
                self._logger.warning(
                    "snapshot names an unconfigured service",
                    service=name,
                    snapshot_id=snapshot.id,
                )
                continue
            monitor.state.original = service.target
            self._logger.info(
                "original target taken from snapshot",
                service=name,
                snapshot_id=snapshot.id,
                target=str(service.target),
            )

    def snapshot_targets(self) -> dict[str, SnapshotService]:
        """Return each service's original target in snapshot form.

        Services whose original target is unknown are left out.
        """
        return {
            name: SnapshotService.from_target(
                monitor.state.original, monitor.spec.domain
            )
            for name, monitor in self._monitors.items()
            if monitor.state.original is not None
        }

    async def create_snapshot(self, description: str) -> int:
        """Store a snapshot of the current original targets.

        Returns:
            The new snapshot id.
        """
        return await self._snapshots.create_snapshot(
            description, self.snapshot_targets()
        )

    async def _handle_signals(self) -> None:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for signum in signals:
                if signum in (signal.SIGINT, signal.SIGTERM):
                    self._logger.info("received signal", signal=signum.name)
                    await self.shutdown()
                    break

    async def _report_status(self, interval: float) -> None:
        if self._shutdown_event is None:
            return
        while not self._shutdown_event.is_set():
            with anyio.move_on_after(interval):
                await self._shutdown_event.wait()
            if self._shutdown_event.is_set():
                break
            self._logger.info("status", **self.get_status())

    async def _run_monitors(self, shutdown: anyio.Event) -> None:
        async with anyio.create_task_group() as initial:
            for monitor in self._monitors.values():
                initial.start_soon(monitor.run_cycle)
        self._logger.info("ready", services=len(self._monitors))

        async with anyio.create_task_group() as loops:
            for monitor in self._monitors.values():
                loops.start_soon(monitor.run, shutdown)

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """Run until shutdown is triggered (via signal or shutdown()).

        Initializes first if ``initialize()`` was not called. Every service
        is probed once concurrently before scheduled monitoring begins.
        Cycles in flight at shutdown run to completion; the store is closed
        once all monitors have stopped.

        Args:
            install_signal_handlers: Stop on SIGINT and SIGTERM.
        """
        if not self._initialized:
            await self.initialize()

        shutdown = anyio.Event()
        self._shutdown_event = shutdown
        if self._shutdown_requested:
            shutdown.set()
        self._running = True

        try:
            async with anyio.create_task_group() as tg:
                if install_signal_handlers:
                    tg.start_soon(self._handle_signals)
                if self._config.status_interval > 0:
                    tg.start_soon(self._report_status, self._config.status_interval)

                await self._run_monitors(shutdown)

                # Monitors only return after shutdown; stop the helper tasks
                tg.cancel_scope.cancel()
        finally:
            self._running = False
            with anyio.CancelScope(shield=True):
                await self._store.close()
            self._logger.info("stopped")

    async def shutdown(self) -> None:
        """Trigger graceful shutdown.

        Pending waits end immediately; cycles in flight complete first.
        """
        self._shutdown_requested = True
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def get_status(self) -> dict[str, object]:
        """Get a status summary of the orchestrator and every service.

        Returns:
            Dictionary with the running flag and per-service status dictionaries.
        """
        services: dict[str, dict[str, object]] = {}
        for name, monitor in self._monitors.items():
            state = monitor.state
            services[name] = {
                "domain": monitor.spec.domain,
                "check": monitor.spec.check,
                "health": str(state.health),
                "last_check": state.last_check,
                "consecutive_failures": state.consecutive_failures,
                "original": str(state.original) if state.original else None,
                "applied": str(state.applied) if state.applied else None,
                "record_pending": state.record_pending,
                "in_flight": monitor.in_flight,
            }
        return {"running": self._running, "services": services}
