"""Per-service monitoring cycle and update protocol.

One ServiceMonitor exists per configured service. It owns the service's
runtime state and is the only writer of it. Cycles of one monitor are
serialized by a lock; monitors of different services share nothing but
the store, which serializes its own access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio

from npm_switcher.exceptions import (
    FileSyncError,
    RecordNotFoundError,
    ReloadError,
    StoreError,
)
from npm_switcher.utils import get_null_logger, utc_now_iso

from ._models import CycleOutcome, ServiceHealth, ServiceRuntimeState
from ._targets import desired_target, needs_update

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from npm_switcher.config import ServiceSpec, UpstreamTarget
    from npm_switcher.health import HealthEvaluator
    from npm_switcher.nginx import NginxConfigSynchronizer
    from npm_switcher.store import ProxyRecord, RecordStore


@final
class ServiceMonitor:
    """Probes one service and keeps its proxy target in line with its health.

    Attributes:
        name: Service name.
        spec: Immutable service configuration.
        state: Runtime state, mutated only by this monitor's cycles.
        in_flight: True while a cycle is running.
        cycles: Number of completed cycles.
    """

    __slots__ = (
        "_evaluator",
        "_lock",
        "_logger",
        "_store",
        "_synchronizer",
        "cycles",
        "in_flight",
        "name",
        "spec",
        "state",
    )

    def __init__(  # noqa: PLR0913
        self,
        name: str,
        spec: ServiceSpec,
        *,
        evaluator: HealthEvaluator,
        store: RecordStore,
        synchronizer: NginxConfigSynchronizer,
        logger: FilteringBoundLogger | None = None,
        state: ServiceRuntimeState | None = None,
    ) -> None:
        self.name = name
        self.spec = spec
        self.state = state or ServiceRuntimeState()
        self.in_flight = False
        self.cycles = 0
        self._evaluator = evaluator
        self._store = store
        self._synchronizer = synchronizer
        self._lock = anyio.Lock()
        self._logger = (logger or get_null_logger()).bind(
            component="orchestrator", service=name
        )

    def next_delay(self) -> float:
        """Return the delay before the next cycle.

        The healthy interval applies only while HEALTHY; otherwise the
        error delay is used.
        """
        if self.state.health is ServiceHealth.HEALTHY:
            return self.spec.interval
        return self.spec.error_delay

    async def run_cycle(self) -> CycleOutcome:
        """Run one probe-decide-update cycle.

        Never raises for operational failures; they are logged and
        reported through the outcome.
        """
        async with self._lock:
            self.in_flight = True
            try:
                return await self._cycle()
            except Exception:
                self._logger.exception("unexpected error in service cycle")
                return CycleOutcome.FAILED
            finally:
                self.in_flight = False
                self.cycles += 1

    async def _cycle(self) -> CycleOutcome:
        previous = self.state.health
        result = await self._evaluator.probe(
            self.spec.check, self.spec.retries, service=self.name
        )
        self.state.record_probe(result, utc_now_iso())

        if self.state.health is not previous:
            self._logger.info(
                "health changed",
                previous=str(previous),
                current=str(self.state.health),
                consecutive_failures=self.state.consecutive_failures,
            )

        desired = desired_target(self.spec, self.state, healthy=result.success)
        if desired is None:
            self._logger.warning(
                "no success or original target known, skipping update"
            )
            return CycleOutcome.NO_TARGET

        if self.state.record_pending:
            self._logger.info("proxy record pending, rerunning update")
        elif not needs_update(desired, self.state.applied):
            self._logger.debug("target unchanged", target=str(desired))
            return CycleOutcome.UNCHANGED

        return await self.apply(desired)

    async def _find_record(self) -> ProxyRecord:
        record = await self._store.find_by_domain(self.spec.domain)
        if record is None:
            msg = f"No proxy record serves {self.spec.domain}"
            raise RecordNotFoundError(msg, domain=self.spec.domain)
        return record

    async def apply(self, desired: UpstreamTarget) -> CycleOutcome:
        """Run the update protocol towards ``desired``.

        Steps: locate the record, patch the config file, update the record,
        then reload the proxy. A failure to locate or patch aborts before
        anything else is written. Once the file is patched ``desired`` is the
        applied target. Record and reload failures are logged without rolling
        back the patch. A failed record update marks the record as pending so
        the next cycle reruns the protocol; a failed reload is not retried.

        Args:
            desired: Target to switch to.

        Returns:
            The cycle outcome.
        """
        try:
            record = await self._find_record()
        except (RecordNotFoundError, StoreError) as e:
            self._logger.error(
                "cannot locate proxy record",
                domain=self.spec.domain,
                error=str(e),
                error_type=type(e).__name__,
            )
            return CycleOutcome.ABORTED

        self.state.record_id = record.id
        current = self.state.applied or record.target
        logger = self._logger.bind(record_id=record.id)
        logger.info("updating target", current=str(current), desired=str(desired))

        try:
            _ = await self._synchronizer.patch(record.id, current, desired)
        except FileSyncError as e:
            logger.error(
                "config patch failed, update aborted",
                path=str(e.path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return CycleOutcome.ABORTED

        self.state.applied = desired

        record_updated = False
        try:
            record_updated = await self._store.update(
                record.id, desired.host, desired.port, desired.scheme
            )
            if not record_updated:
                logger.warning("proxy record not updated, record id is stale")
        except StoreError as e:
            logger.error(
                "proxy record update failed, config file already patched",
                error=str(e),
                error_type=type(e).__name__,
            )
        self.state.record_pending = not record_updated

        reloaded = False
        try:
            _ = await self._synchronizer.reload()
            reloaded = True
        except ReloadError as e:
            logger.error(
                "proxy reload failed, proxy is serving stale routing",
                command=e.command,
                exit_code=e.exit_code,
                stderr=e.stderr,
                error_type=type(e).__name__,
            )

        if not (record_updated and reloaded):
            return CycleOutcome.PARTIAL

        logger.info(f"switched {current} -> {desired}")  # noqa: G004
        return CycleOutcome.SWITCHED

    async def run(self, shutdown: anyio.Event) -> None:
        """Run cycles until ``shutdown`` is set.

        Each wait is interruptible by shutdown. A cycle that has started is
        shielded from cancellation and always runs to completion.
        """
        while not shutdown.is_set():
            delay = self.next_delay()
            self._logger.debug("next check scheduled", delay=delay)

            with anyio.move_on_after(delay):
                await shutdown.wait()
            if shutdown.is_set():
                break

            with anyio.CancelScope(shield=True):
                _ = await self.run_cycle()
