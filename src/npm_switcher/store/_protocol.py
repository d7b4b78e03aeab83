from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import ProxyRecord


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for reading and repointing proxy records.

    Implementations raise ``StoreError`` on connectivity or query failures.
    """

    async def connect(self) -> None:
        """Open the store."""
        ...

    async def close(self) -> None:
        """Close the store. Safe to call more than once."""
        ...

    async def find_by_domain(self, domain: str) -> "ProxyRecord | None":
        """Return the live record serving ``domain``, or None."""
        ...

    async def update(
        self,
        record_id: int,
        host: str,
        port: int,
        scheme: str | None = None,
    ) -> bool:
        """Repoint a record.

        Args:
            record_id: Record to update.
            host: New forward host.
            port: New forward port.
            scheme: New forward scheme; None leaves the stored scheme as is.

        Returns:
            True if a row was updated, False if no row has ``record_id``.
        """
        ...
