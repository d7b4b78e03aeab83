"""Backups and numbered snapshots of routing state."""

from ._backup import BackupArchive
from ._models import (
    BackupMetadata,
    BackupRecord,
    Snapshot,
    SnapshotService,
    SnapshotSummary,
)
from ._snapshots import SNAPSHOT_FILE_RE, SnapshotArchive

__all__ = [
    "SNAPSHOT_FILE_RE",
    "BackupArchive",
    "BackupMetadata",
    "BackupRecord",
    "Snapshot",
    "SnapshotArchive",
    "SnapshotService",
    "SnapshotSummary",
]
