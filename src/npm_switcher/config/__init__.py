"""npm-switcher configuration.

This module provides the public API for configuration management: the
typed models, the YAML loader and validation helpers.

Example:
    >>> from pathlib import Path
    >>> from npm_switcher.config import load_config
    >>> config = load_config(Path("config.yml"))
    >>> config.services["sso"].retries
    3
"""

from npm_switcher.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_RETRIES,
    DEFAULT_SNAPSHOT_DIR,
    DEFAULT_STATUS_INTERVAL,
    MAX_RETRIES,
    MIN_RETRIES,
)
from ._loader import load_config, read_yaml_file
from ._models import (
    AppConfig,
    Duration,
    LogFormat,
    LogLevel,
    Scheme,
    ServiceSpec,
    TargetSpec,
    UpstreamTarget,
    parse_duration,
)
from ._validation import ValidationIssue, collect_issues, validate_config

__all__ = [
    "DEFAULT_BACKUP_DIR",
    "DEFAULT_RELOAD_COMMAND",
    "DEFAULT_RETRIES",
    "DEFAULT_SNAPSHOT_DIR",
    "DEFAULT_STATUS_INTERVAL",
    "MAX_RETRIES",
    "MIN_RETRIES",
    "AppConfig",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "Duration",
    "LogFormat",
    "LogLevel",
    "Scheme",
    "ServiceSpec",
    "TargetSpec",
    "UpstreamTarget",
    "ValidationIssue",
    "collect_issues",
    "load_config",
    "parse_duration",
    "read_yaml_file",
    "validate_config",
]
