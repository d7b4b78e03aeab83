from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio

from npm_switcher.exceptions import ArchiveError
from npm_switcher.utils import dump_json, file_timestamp, get_null_logger, utc_now_iso

from ._models import BackupRecord

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from npm_switcher.store import ProxyRecord


@final
class BackupArchive:
    """Writes the initial, write-once backup of each service's proxy record.

    A backup is taken at most once per service for the lifetime of the
    archive, before the record is first modified. Files are never rewritten
    or removed.

    Attributes:
        backup_dir: Directory receiving ``proxy_host_<service>_<ts>.json`` files.
    """

    __slots__ = ("_written", "_logger", "backup_dir")

    def __init__(
        self,
        backup_dir: Path,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.backup_dir = backup_dir
        self._written: dict[str, Path] = {}
        self._logger = (logger or get_null_logger()).bind(component="archive")

    def backup_path(self, service_name: str) -> Path | None:
        """Return the backup written for ``service_name`` by this archive, if any."""
        return self._written.get(service_name)

    async def backup_initial(self, service_name: str, record: ProxyRecord) -> Path:
        """Persist the record's full field set for ``service_name``.

        Calling this again for the same service returns the first backup
        without writing anything.

        Args:
            service_name: The owning service.
            record: The record as read at startup.

        Returns:
            Path of the backup file.

        Raises:
            ArchiveError: If the backup cannot be written.
        """
        existing = self._written.get(service_name)
        if existing is not None:
            return existing

        backup = BackupRecord(
            timestamp=utc_now_iso(),
            service_name=service_name,
            proxy_host=record.model_dump(mode="json"),
        )
        path = self.backup_dir / f"proxy_host_{service_name}_{file_timestamp()}.json"

        try:
            await anyio.Path(self.backup_dir).mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(path, "xb") as f:
                _ = await f.write(dump_json(backup.model_dump(by_alias=True)))
        except OSError as e:
            msg = f"Cannot write backup for {service_name}: {e}"
            raise ArchiveError(msg, path=path) from e

        self._written[service_name] = path
        self._logger.info(
            "backed up initial proxy record",
            service=service_name,
            record_id=record.id,
            path=str(path),
        )
        return path
