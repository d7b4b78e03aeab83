"""Runtime models for the failover orchestrator.

This module defines the per-service runtime types:
- ServiceHealth: Health of a service as last probed
- CycleOutcome: Result of one monitoring cycle
- ServiceRuntimeState: Mutable state owned by one service monitor
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npm_switcher.config import UpstreamTarget
    from npm_switcher.health import ProbeResult


class ServiceHealth(StrEnum):
    """Service health states.

    - UNKNOWN: No probe has completed yet
    - HEALTHY: The last probe succeeded
    - UNHEALTHY: The last probe failed after exhausting its attempts
    """

    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class CycleOutcome(StrEnum):
    """What a monitoring cycle did.

    - UNCHANGED: The desired target was already applied
    - NO_TARGET: Healthy, but no success or original target is known
    - SWITCHED: The full update protocol ran and the target was applied
    - ABORTED: The record could not be located or the config patch failed
    - PARTIAL: The config was patched and is now applied, but the record
      update or the reload failed
    - FAILED: The cycle raised an unexpected error
    """

    UNCHANGED = "unchanged"
    NO_TARGET = "no-target"
    SWITCHED = "switched"
    ABORTED = "aborted"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(slots=True)
class ServiceRuntimeState:
    """Mutable runtime state of one monitored service.

    Attributes:
        health: Health as of the last completed probe.
        last_check: ISO 8601 timestamp of the last completed probe.
        consecutive_failures: Failed probes since the last success.
        original: Target routed to while healthy, captured at startup.
        applied: Target last written to the config file.
        record_pending: The config file holds ``applied`` but the proxy record
            may not; the next cycle reruns the update protocol.
        record_id: Id of the service's proxy record, once located.
        last_probe: The last probe result.
    """

    health: ServiceHealth = ServiceHealth.UNKNOWN
    last_check: str | None = None
    consecutive_failures: int = 0
    original: UpstreamTarget | None = None
    applied: UpstreamTarget | None = None
    record_pending: bool = False
    record_id: int | None = None
    last_probe: ProbeResult | None = None

    @property
    def is_healthy(self) -> bool:
        return self.health is ServiceHealth.HEALTHY

    def record_probe(self, result: ProbeResult, checked_at: str) -> None:
        """Fold a completed probe into the state.

        A success resets the failure counter; a failure increments it by one.
        """
        self.last_probe = result
        self.last_check = checked_at
        if result.success:
            self.health = ServiceHealth.HEALTHY
            self.consecutive_failures = 0
        else:
            self.health = ServiceHealth.UNHEALTHY
            self.consecutive_failures += 1
