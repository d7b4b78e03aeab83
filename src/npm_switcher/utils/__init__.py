"""Shared utilities for npm-switcher."""

from ._exec import (
    DEFAULT_TIMEOUT_MS,
    CommandResult,
    ProcessRunner,
    SubprocessRunner,
    truncate_output,
)
from ._json import dump_json, load_json
from ._logging import create_logger, get_null_logger
from ._time import file_timestamp, utc_now, utc_now_iso

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "CommandResult",
    "ProcessRunner",
    "SubprocessRunner",
    "create_logger",
    "dump_json",
    "file_timestamp",
    "get_null_logger",
    "load_json",
    "truncate_output",
    "utc_now",
    "utc_now_iso",
]
