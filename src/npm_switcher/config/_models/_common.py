"""Common configuration types.

This module defines shared types used across configuration models,
including enums and the duration parser.
"""

import re
from enum import StrEnum
from typing import Annotated, Literal, TypeAlias

from pydantic import BeforeValidator

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")

_DURATION_UNITS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}

Scheme: TypeAlias = Literal["http", "https"]


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Console log output format values."""

    JSON = "json"
    TEXT = "text"


def parse_duration(value: object) -> float:
    """Parse a duration string such as ``30s`` or ``5m`` into seconds.

    Bare numbers are accepted and taken as seconds.

    Args:
        value: Duration string (``<int><s|m|h|d>``) or number of seconds.

    Returns:
        The duration in seconds.

    Raises:
        ValueError: If the value is not a valid duration.
    """
    if isinstance(value, bool):
        msg = f"Invalid time format: {value!r}"
        raise ValueError(msg)  # noqa: TRY004
    if isinstance(value, int | float):
        if value < 0:
            msg = f"Duration must not be negative: {value!r}"
            raise ValueError(msg)
        return float(value)
    if not isinstance(value, str):
        msg = f"Invalid time format: {value!r}"
        raise ValueError(msg)  # noqa: TRY004

    match = _DURATION_RE.match(value.strip())
    if match is None:
        msg = f"Invalid time format: {value!r} (expected e.g. 30s, 5m, 1h, 1d)"
        raise ValueError(msg)

    amount, unit = match.groups()
    return float(int(amount) * _DURATION_UNITS[unit])


Duration = Annotated[float, BeforeValidator(parse_duration)]
