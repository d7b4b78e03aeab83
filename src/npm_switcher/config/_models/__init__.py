"""Configuration models.

This module provides Pydantic models for the application configuration,
the monitored services and their upstream targets.
"""

from npm_switcher.config._models._common import (
    Duration,
    LogFormat,
    LogLevel,
    Scheme,
    parse_duration,
)
from npm_switcher.config._models._config import AppConfig
from npm_switcher.config._models._service import ServiceSpec
from npm_switcher.config._models._target import TargetSpec, UpstreamTarget

__all__ = [
    "AppConfig",
    "Duration",
    "LogFormat",
    "LogLevel",
    "Scheme",
    "ServiceSpec",
    "TargetSpec",
    "UpstreamTarget",
    "parse_duration",
]
