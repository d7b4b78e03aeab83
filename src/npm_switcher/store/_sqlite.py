"""SQLite-backed proxy record store.

The store shares Proxy Manager's own database file. A single connection is
opened at startup and every statement runs in a worker thread, one at a
time, so that concurrent service cycles never block the event loop.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Final, TypeVar, final

import anyio
import anyio.to_thread
from pydantic import ValidationError

from npm_switcher.exceptions import StoreError
from npm_switcher.utils import get_null_logger
from npm_switcher.utils.database import fetch_all, open_connection, update

from ._models import ForwardUpdate, ProxyRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

T = TypeVar("T")

PROXY_HOST_TABLE: Final = "proxy_host"

_FIND_BY_DOMAIN_SQL: Final = """
    SELECT id, domain_names, forward_host, forward_port, forward_scheme, enabled
    FROM proxy_host
    WHERE domain_names LIKE ? AND is_deleted = 0
    ORDER BY id
"""

_PROBE_SQL: Final = "SELECT 1 FROM proxy_host LIMIT 1"


def _modified_on() -> str:
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").format("YYYY-MM-DD HH:mm:ss")


@final
class SQLiteRecordStore:
    """Record store over Proxy Manager's SQLite database.

    Attributes:
        path: Path of the SQLite database file.
    """

    __slots__ = ("_conn", "_limiter", "_logger", "path")

    def __init__(
        self,
        path: str | Path,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the store without connecting.

        Args:
            path: Path of the SQLite database file. It must already exist.
            logger: Optional logger for store operations.
        """
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None
        self._limiter = anyio.CapacityLimiter(1)
        self._logger = (logger or get_null_logger()).bind(component="store")

    @property
    def connected(self) -> bool:
        """Whether a connection is open."""
        return self._conn is not None

    async def _call(self, operation: str, func: Callable[[], T]) -> T:
        try:
            return await anyio.to_thread.run_sync(func, limiter=self._limiter)
        except (sqlite3.Error, ValidationError) as e:
            self._logger.error(
                "store operation failed", operation=operation, error=str(e)
            )
            msg = f"Store {operation} failed: {e}"
            raise StoreError(msg, operation=operation, cause=e) from e

    def _require_connection(self, operation: str) -> sqlite3.Connection:
        if self._conn is None:
            msg = f"Store {operation} failed: not connected"
            raise StoreError(msg, operation=operation)
        return self._conn

    async def connect(self) -> None:
        """Open the database and check that the proxy host table is readable.

        Raises:
            StoreError: If the file is missing or not a Proxy Manager database.
        """
        if self._conn is not None:
            return

        uri = f"{self.path.resolve().as_uri()}?mode=rw"

        def _open() -> sqlite3.Connection:
            conn = open_connection(uri, uri=True, check_same_thread=False)
            try:
                _ = conn.execute(_PROBE_SQL).fetchall()
            except sqlite3.Error:
                conn.close()
                raise
            return conn

        self._conn = await self._call("connect", _open)
        self._logger.info("connected to database", path=str(self.path))

    async def close(self) -> None:
        """Close the connection if open."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        await self._call("close", conn.close)
        self._logger.info("database connection closed")

    async def find_by_domain(self, domain: str) -> ProxyRecord | None:
        """Return the first live record whose domain list contains ``domain``.

        Raises:
            StoreError: On query failure.
        """
        conn = self._require_connection("find")
        pattern = f'%"{domain}"%'

        records = await self._call(
            "find",
            lambda: fetch_all(conn, ProxyRecord, _FIND_BY_DOMAIN_SQL, (pattern,)),
        )
        for record in records:
            if record.serves(domain):
                self._logger.debug(
                    "found proxy record",
                    domain=domain,
                    record_id=record.id,
                    target=str(record.target),
                )
                return record

        self._logger.warning("no proxy record for domain", domain=domain)
        return None

    async def update(
        self,
        record_id: int,
        host: str,
        port: int,
        scheme: str | None = None,
    ) -> bool:
        """Repoint a record's forward host, port and optionally scheme.

        Raises:
            StoreError: On query failure.
        """
        conn = self._require_connection("update")
        row = ForwardUpdate(
            id=record_id,
            forward_host=host,
            forward_port=port,
            forward_scheme=scheme,
            modified_on=_modified_on(),
        )

        affected = await self._call(
            "update", lambda: update(conn, PROXY_HOST_TABLE, row)
        )
        if affected == 0:
            self._logger.warning("no rows updated", record_id=record_id)
            return False

        self._logger.info(
            "updated proxy record",
            record_id=record_id,
            host=host,
            port=port,
            scheme=scheme,
        )
        return True
