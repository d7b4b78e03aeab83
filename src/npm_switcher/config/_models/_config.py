"""Application configuration container."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from npm_switcher.config._defaults import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_SNAPSHOT_DIR,
    DEFAULT_STATUS_INTERVAL,
)
from npm_switcher.config._models._common import Duration, LogFormat, LogLevel
from npm_switcher.config._models._service import ServiceSpec  # noqa: TC001


class AppConfig(BaseModel):
    """Validated application configuration.

    Attributes:
        sqlite_file: Path to the proxy's SQLite database.
        nginx_conf_dir: Directory holding one ``<id>.conf`` per proxy record.
        log_file: Path of the JSON log file.
        nginx_refresh_cmd: Command used to reload the proxy.
        backup_dir: Directory for initial proxy record backups.
        snapshot_dir: Directory for numbered snapshots.
        log_level: Log level threshold.
        log_format: Console log format.
        status_interval: Seconds between status reports; 0 disables them.
        services: Monitored services keyed by name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    sqlite_file: Path
    nginx_conf_dir: Path
    log_file: Path
    nginx_refresh_cmd: str = Field(default=DEFAULT_RELOAD_COMMAND, min_length=1)
    backup_dir: Path = Path(DEFAULT_BACKUP_DIR)
    snapshot_dir: Path = Path(DEFAULT_SNAPSHOT_DIR)
    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.TEXT
    status_interval: Duration = DEFAULT_STATUS_INTERVAL
    services: dict[str, ServiceSpec]

    @field_validator("services")
    @classmethod
    def _validate_services(
        cls, value: dict[str, ServiceSpec]
    ) -> dict[str, ServiceSpec]:
        if not value:
            msg = "No services configured"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _validate_unique_domains(self) -> AppConfig:
        seen: dict[str, str] = {}
        for name, service in self.services.items():
            other = seen.get(service.domain)
            if other is not None:
                msg = (
                    f"Services '{other}' and '{name}' both monitor "
                    f"domain '{service.domain}'"
                )
                raise ValueError(msg)
            seen[service.domain] = name
        return self
