import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest
import yaml
from rich.console import Console

from npm_switcher.utils import CommandResult

PROXY_HOST_SCHEMA = """
CREATE TABLE proxy_host (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_on DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    modified_on DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    owner_user_id INTEGER NOT NULL DEFAULT 1,
    is_deleted INTEGER NOT NULL DEFAULT 0,
    domain_names JSON NOT NULL,
    forward_host VARCHAR(255) NOT NULL,
    forward_port INTEGER NOT NULL,
    forward_scheme VARCHAR(255) NOT NULL DEFAULT 'http',
    enabled INTEGER NOT NULL DEFAULT 1
);
"""

CONF_TEMPLATE = """\
# ------------------------------------------------------------
# {domain}
# ------------------------------------------------------------

server {{
  set $forward_scheme {scheme};
  set $server         "{host}";
  set $port           {port};

  listen 80;
  server_name {domain};

  location / {{
    include conf.d/include/proxy.conf;
  }}
}}
"""


def render_conf(domain: str, host: str, port: int, scheme: str = "http") -> str:
    return CONF_TEMPLATE.format(domain=domain, host=host, port=port, scheme=scheme)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@dataclass
class ProxyHostRow:
    domain_names: str
    forward_host: str
    forward_port: int
    forward_scheme: str = "http"
    is_deleted: int = 0
    id: int | None = None


DatabaseFactory = Callable[[list[ProxyHostRow]], Path]


@pytest.fixture
def make_database(tmp_path: Path) -> DatabaseFactory:
    """Return a factory creating a proxy_host database with the given rows."""

    def _make(rows: list[ProxyHostRow]) -> Path:
        path = tmp_path / "database.sqlite"
        conn = sqlite3.connect(path)
        try:
            _ = conn.executescript(PROXY_HOST_SCHEMA)
            for row in rows:
                _ = conn.execute(
                    "INSERT INTO proxy_host (id, domain_names, forward_host, "
                    "forward_port, forward_scheme, is_deleted) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        row.id,
                        row.domain_names,
                        row.forward_host,
                        row.forward_port,
                        row.forward_scheme,
                        row.is_deleted,
                    ),
                )
            conn.commit()
        finally:
            conn.close()
        return path

    return _make


def read_proxy_host(path: Path, record_id: int) -> dict[str, Any]:
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        row = conn.execute(
            "SELECT * FROM proxy_host WHERE id = ?", (record_id,)
        ).fetchone()
    finally:
        conn.close()
    return dict(row)


@pytest.fixture
def proxy_host_reader() -> Callable[[Path, int], dict[str, Any]]:
    return read_proxy_host


@pytest.fixture
def conf_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "proxy_host"
    directory.mkdir()
    return directory


@pytest.fixture
def write_conf(conf_dir: Path) -> Callable[..., Path]:
    """Return a function writing ``<conf_dir>/<id>.conf`` for a target."""

    def _write(
        record_id: int, domain: str, host: str, port: int, scheme: str = "http"
    ) -> Path:
        path = conf_dir / f"{record_id}.conf"
        _ = path.write_text(render_conf(domain, host, port, scheme))
        return path

    return _write


@dataclass
class FakeRunner:
    """Process runner that records commands instead of executing them."""

    results: dict[str, CommandResult] = field(default_factory=dict)
    commands: list[str] = field(default_factory=list)

    async def run(self, command: str) -> CommandResult:
        self.commands.append(command)
        return self.results.get(command, CommandResult(command=command, exit_code=0))

    def fail(self, command: str, stderr: str = "failed") -> None:
        self.results[command] = CommandResult(
            command=command, exit_code=1, stderr=stderr
        )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@dataclass
class Backends:
    """Health state of stub upstream hosts, served through httpx.MockTransport."""

    down: set[str] = field(default_factory=set)
    requests: list[str] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        if request.url.host in self.down:
            msg = "[Errno 111] Connection refused"
            raise httpx.ConnectError(msg, request=request)
        return httpx.Response(200, text="ok")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def backends() -> Backends:
    return Backends()


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def config_data(tmp_path: Path) -> dict[str, Any]:
    return {
        "sqlite_file": str(tmp_path / "database.sqlite"),
        "nginx_conf_dir": str(tmp_path / "proxy_host"),
        "log_file": str(tmp_path / "logs" / "switcher.log"),
        "nginx_refresh_cmd": "/usr/sbin/nginx -s reload",
        "backup_dir": str(tmp_path / "backups"),
        "snapshot_dir": str(tmp_path / "snapshots"),
        "status_interval": 0,
        "services": {
            "sso": {
                "domain": "sso.example.com",
                "check": "http://sso.internal/health",
                "interval": "30s",
                "error_delay": "5s",
                "retries": 2,
                "if_failed": {"host": "10.0.0.9", "port": 8081},
            },
        },
    }


@pytest.fixture
def config_file(tmp_path: Path, config_data: dict[str, Any]) -> Path:
    path = tmp_path / "config.yml"
    _ = path.write_text(yaml.safe_dump(config_data, sort_keys=False))
    return path
