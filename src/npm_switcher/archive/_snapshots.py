"""Numbered snapshot storage.

Snapshots live in one directory as ``snapshot-<id>.json``. Ids are assigned
by scanning the directory and taking the highest existing id plus one,
which assumes a single writer process.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final, final

import anyio
from pydantic import ValidationError

from npm_switcher.exceptions import ArchiveError, SnapshotNotFoundError
from npm_switcher.utils import dump_json, get_null_logger, load_json, utc_now_iso

from ._models import Snapshot, SnapshotService, SnapshotSummary

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

SNAPSHOT_FILE_RE: Final = re.compile(r"^snapshot-(\d+)\.json$")


@final
class SnapshotArchive:
    """Creates, reads, lists and deletes numbered snapshots.

    Attributes:
        snapshot_dir: Directory holding the snapshot files.
    """

    __slots__ = ("_logger", "snapshot_dir")

    def __init__(
        self,
        snapshot_dir: Path,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.snapshot_dir = snapshot_dir
        self._logger = (logger or get_null_logger()).bind(component="archive")

    def snapshot_path(self, snapshot_id: int) -> Path:
        """Return the file path for a snapshot id."""
        return self.snapshot_dir / f"snapshot-{snapshot_id}.json"

    async def _ensure_directory(self) -> None:
        try:
            await anyio.Path(self.snapshot_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create snapshot directory {self.snapshot_dir}: {e}"
            raise ArchiveError(msg, path=self.snapshot_dir) from e

    async def snapshot_ids(self) -> list[int]:
        """Return the ids of all snapshot files, ascending."""
        directory = anyio.Path(self.snapshot_dir)
        if not await directory.is_dir():
            return []

        ids: list[int] = []
        async for entry in directory.iterdir():
            match = SNAPSHOT_FILE_RE.match(entry.name)
            if match:
                ids.append(int(match.group(1)))
        return sorted(ids)

    async def latest_id(self) -> int:
        """Return the highest snapshot id, or 0 when there are none."""
        ids = await self.snapshot_ids()
        return ids[-1] if ids else 0

    async def create_snapshot(
        self,
        description: str,
        services: Mapping[str, SnapshotService],
    ) -> int:
        """Store a new snapshot under the next free id.

        Args:
            description: Free-text description.
            services: Captured targets keyed by service name.

        Returns:
            The new snapshot id.

        Raises:
            ArchiveError: If the snapshot cannot be written.
        """
        await self._ensure_directory()

        snapshot = Snapshot(
            id=await self.latest_id() + 1,
            timestamp=utc_now_iso(),
            description=description,
            services=dict(services),
        )
        path = self.snapshot_path(snapshot.id)

        try:
            async with await anyio.open_file(path, "xb") as f:
                _ = await f.write(dump_json(snapshot.model_dump()))
        except FileExistsError as e:
            msg = f"Snapshot {snapshot.id} was created concurrently"
            raise ArchiveError(msg, path=path) from e
        except OSError as e:
            msg = f"Cannot write snapshot {snapshot.id}: {e}"
            raise ArchiveError(msg, path=path) from e

        self._logger.info(
            "created snapshot",
            snapshot_id=snapshot.id,
            description=description,
            services_count=len(snapshot.services),
        )
        return snapshot.id

    async def _read(self, path: Path) -> Snapshot:
        try:
            content = await anyio.Path(path).read_bytes()
        except OSError as e:
            msg = f"Cannot read snapshot {path.name}: {e}"
            raise ArchiveError(msg, path=path) from e

        data = load_json(content)
        if not isinstance(data, dict):
            msg = f"Snapshot {path.name} is not a JSON object"
            raise ArchiveError(msg, path=path)

        try:
            return Snapshot.model_validate(data)
        except ValidationError as e:
            msg = f"Snapshot {path.name} is malformed: {e.error_count()} error(s)"
            raise ArchiveError(msg, path=path) from e

    async def load_snapshot(self, snapshot_id: int) -> Snapshot:
        """Load a snapshot by id.

        Raises:
            SnapshotNotFoundError: If no snapshot has ``snapshot_id``.
            ArchiveError: If the snapshot file cannot be parsed.
        """
        path = self.snapshot_path(snapshot_id)
        if not await anyio.Path(path).is_file():
            msg = f"Snapshot {snapshot_id} not found"
            raise SnapshotNotFoundError(msg, snapshot_id=snapshot_id, path=path)

        snapshot = await self._read(path)
        self._logger.info(
            "loaded snapshot",
            snapshot_id=snapshot_id,
            description=snapshot.description,
            services_count=len(snapshot.services),
        )
        return snapshot

    async def list_snapshots(self) -> list[SnapshotSummary]:
        """Summarize every readable snapshot, ordered by id.

        Unreadable files are logged and skipped.
        """
        summaries: list[SnapshotSummary] = []
        for snapshot_id in await self.snapshot_ids():
            try:
                snapshot = await self._read(self.snapshot_path(snapshot_id))
            except ArchiveError as e:
                self._logger.warning("skipping unreadable snapshot", error=str(e))
                continue
            summaries.append(SnapshotSummary.of(snapshot))
        return sorted(summaries, key=lambda s: s.id)

    async def delete_snapshot(self, snapshot_id: int) -> bool:
        """Delete a snapshot.

        Returns:
            True if the snapshot was deleted, False if it did not exist.

        Raises:
            ArchiveError: If the file exists but cannot be removed.
        """
        path = self.snapshot_path(snapshot_id)
        try:
            await anyio.Path(path).unlink()
        except FileNotFoundError:
            self._logger.warning("snapshot not found", snapshot_id=snapshot_id)
            return False
        except OSError as e:
            msg = f"Cannot delete snapshot {snapshot_id}: {e}"
            raise ArchiveError(msg, path=path) from e

        self._logger.info("deleted snapshot", snapshot_id=snapshot_id)
        return True
