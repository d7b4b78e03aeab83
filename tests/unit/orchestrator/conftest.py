from collections.abc import Callable
from pathlib import Path
from typing import Any

import anyio
import pytest

from npm_switcher.config import ServiceSpec, UpstreamTarget
from npm_switcher.health import HealthEvaluator, ProbeErrorKind, ProbeResult
from npm_switcher.nginx import NginxConfigSynchronizer
from npm_switcher.orchestrator import ServiceMonitor, ServiceRuntimeState
from npm_switcher.store import MockRecordStore, ProxyRecord
from tests.conftest import Backends, FakeRunner, no_sleep

RELOAD = "/usr/sbin/nginx -s reload"
ORIGINAL = UpstreamTarget(host="10.0.0.1", port=8080, scheme="http")
FALLBACK = UpstreamTarget(host="10.0.0.9", port=8081, scheme="http")


def make_spec(**overrides: Any) -> ServiceSpec:
    data: dict[str, Any] = {
        "domain": "sso.example.com",
        "check": "http://sso.internal/health",
        "interval": "30s",
        "error_delay": "5s",
        "retries": 2,
        "if_failed": {"host": FALLBACK.host, "port": FALLBACK.port},
    }
    data.update(overrides)
    return ServiceSpec.model_validate(data)


class GatedEvaluator:
    """Evaluator whose probes block until released, then report a refused backend.

    Records how many probes ran at once and the cycle count of ``monitor`` seen
    by each probe on entry.
    """

    def __init__(self) -> None:
        self.entered = anyio.Event()
        self.release = anyio.Event()
        self.active = 0
        self.max_active = 0
        self.entries: list[int] = []
        self.monitor: ServiceMonitor | None = None

    async def probe(
        self, url: str, max_attempts: int | None = 3, *, service: str | None = None
    ) -> ProbeResult:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        if self.monitor is not None:
            self.entries.append(self.monitor.cycles)
        self.entered.set()
        try:
            await self.release.wait()
        finally:
            self.active -= 1
        return ProbeResult(
            success=False, attempts=1, error_kind=ProbeErrorKind.REFUSED
        )


def make_record(record_id: int = 1, target: UpstreamTarget = ORIGINAL) -> ProxyRecord:
    return ProxyRecord(
        id=record_id,
        domain_names=["sso.example.com"],
        forward_host=target.host,
        forward_port=target.port,
        forward_scheme=target.scheme,
    )


@pytest.fixture
def record_store() -> MockRecordStore:
    return MockRecordStore([make_record()])


@pytest.fixture
def synchronizer(conf_dir: Path, fake_runner: FakeRunner) -> NginxConfigSynchronizer:
    return NginxConfigSynchronizer(conf_dir, RELOAD, runner=fake_runner)


@pytest.fixture
def evaluator(backends: Backends) -> HealthEvaluator:
    return HealthEvaluator(transport=backends.transport, sleep=no_sleep)


MonitorFactory = Callable[..., ServiceMonitor]


@pytest.fixture
def make_monitor(
    record_store: MockRecordStore,
    synchronizer: NginxConfigSynchronizer,
    evaluator: HealthEvaluator,
    write_conf: Callable[..., Path],
) -> MonitorFactory:
    """Return a factory for a monitor whose record and config hold ORIGINAL."""

    def _make(
        spec: ServiceSpec | None = None,
        *,
        original: UpstreamTarget | None = ORIGINAL,
        write_config: bool = True,
        evaluator_override: Any = None,
    ) -> ServiceMonitor:
        if write_config:
            _ = write_conf(1, "sso.example.com", ORIGINAL.host, ORIGINAL.port)
        state = ServiceRuntimeState(
            original=original,
            applied=original,
            record_id=1 if original is not None else None,
        )
        return ServiceMonitor(
            "sso",
            spec or make_spec(),
            evaluator=evaluator_override or evaluator,
            store=record_store,
            synchronizer=synchronizer,
            state=state,
        )

    return _make
