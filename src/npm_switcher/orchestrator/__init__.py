"""Failover orchestration: per-service state machine and update protocol."""

from ._models import CycleOutcome, ServiceHealth, ServiceRuntimeState
from ._monitor import ServiceMonitor
from ._orchestrator import STARTUP_SNAPSHOT_DESCRIPTION, FailoverOrchestrator
from ._targets import current_scheme, desired_target, needs_update

__all__ = [
    "STARTUP_SNAPSHOT_DESCRIPTION",
    "CycleOutcome",
    "FailoverOrchestrator",
    "ServiceHealth",
    "ServiceMonitor",
    "ServiceRuntimeState",
    "current_scheme",
    "desired_target",
    "needs_update",
]
