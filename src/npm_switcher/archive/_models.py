"""Backup and snapshot artifact models.

Both artifacts are plain JSON documents. Key names follow the on-disk
format shared with earlier releases, hence the camelCase aliases.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from npm_switcher.config import UpstreamTarget


class BackupMetadata(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, populate_by_name=True
    )

    backup_type: str = Field(default="initial", alias="backupType")
    description: str = "Initial proxy_host configuration before any modifications"


class BackupRecord(BaseModel):
    """Write-once capture of a proxy record taken before any mutation.

    Attributes:
        timestamp: ISO 8601 UTC time of the capture.
        service_name: The service that owns the record.
        proxy_host: The record's full field set.
        metadata: Backup type and description.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, populate_by_name=True
    )

    timestamp: str
    service_name: str = Field(alias="serviceName")
    proxy_host: dict[str, object] = Field(alias="proxyHost")
    metadata: BackupMetadata = Field(default_factory=BackupMetadata)


class SnapshotService(BaseModel):
    """A service's target as captured in a snapshot."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    host: str
    port: int
    scheme: str = "http"
    domain: str

    @property
    def target(self) -> UpstreamTarget:
        return UpstreamTarget(host=self.host, port=self.port, scheme=self.scheme)

    @classmethod
    def from_target(cls, target: UpstreamTarget, domain: str) -> SnapshotService:
        return cls(
            host=target.host, port=target.port, scheme=target.scheme, domain=domain
        )


class Snapshot(BaseModel):
    """A numbered capture of every service's desired target.

    Attributes:
        id: Snapshot number, starting at 1.
        timestamp: ISO 8601 UTC creation time.
        description: Free-text description.
        services: Captured targets keyed by service name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    timestamp: str
    description: str
    services: dict[str, SnapshotService] = Field(default_factory=dict)


class SnapshotSummary(BaseModel):
    """Listing entry for a stored snapshot."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    id: int
    timestamp: str
    description: str
    services_count: int

    @classmethod
    def of(cls, snapshot: Snapshot) -> SnapshotSummary:
        return cls(
            id=snapshot.id,
            timestamp=snapshot.timestamp,
            description=snapshot.description,
            services_count=len(snapshot.services),
        )
