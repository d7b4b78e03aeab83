"""In-memory record store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from npm_switcher.exceptions import StoreError

if TYPE_CHECKING:
    from ._models import ProxyRecord


class MockRecordStore:
    """In-memory implementation of the record store.

    Useful for testing and development. Data is not persisted. Can be used
    as a drop-in replacement for SQLiteRecordStore in tests.

    Attributes:
        records: Records keyed by id.
        updates: Every successful update as ``(id, host, port, scheme)``.
        fail_with: When set, every operation raises a StoreError with this message.
    """

    def __init__(self, records: list[ProxyRecord] | None = None) -> None:
        self.records: dict[int, ProxyRecord] = {r.id: r for r in records or []}
        self.updates: list[tuple[int, str, int, str | None]] = []
        self.fail_with: str | None = None
        self.connected: bool = False

    def _check(self, operation: str) -> None:
        if self.fail_with is not None:
            raise StoreError(self.fail_with, operation=operation)

    async def connect(self) -> None:
        self._check("connect")
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    async def find_by_domain(self, domain: str) -> ProxyRecord | None:
        self._check("find")
        for record in sorted(self.records.values(), key=lambda r: r.id):
            if record.serves(domain):
                return record
        return None

    async def update(
        self,
        record_id: int,
        host: str,
        port: int,
        scheme: str | None = None,
    ) -> bool:
        self._check("update")
        record = self.records.get(record_id)
        if record is None:
            return False

        changes: dict[str, object] = {"forward_host": host, "forward_port": port}
        if scheme is not None:
            changes["forward_scheme"] = scheme
        self.records[record_id] = record.model_copy(update=changes)
        self.updates.append((record_id, host, port, scheme))
        return True
