# pyright: reportAny=false, reportExplicitAny=false
"""YAML configuration file loading."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

import yaml

from npm_switcher.config._validation import validate_config
from npm_switcher.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

    from npm_switcher.config._models import AppConfig


def read_yaml_file(path: Path) -> dict[str, Any]:
    """Read and parse a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as dictionary.

    Raises:
        ConfigLoadError: If the file is missing, unreadable, not valid YAML,
            or its top level is not a mapping.
    """
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigLoadError(msg, path=path)

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read configuration file: {e}"
        raise ConfigLoadError(msg, path=path) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        msg = f"Failed to parse YAML file: {e}"
        raise ConfigLoadError(msg, path=path, line=line, column=column) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Configuration root must be a mapping, got {type(data).__name__}"
        raise ConfigLoadError(msg, path=path)

    return cast("dict[str, Any]", data)


def load_config(path: Path) -> AppConfig:
    """Load and validate the application configuration.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The validated configuration.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed.
        ConfigValidationError: If the content is invalid.
    """
    return validate_config(read_yaml_file(path))
