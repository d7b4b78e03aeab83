"""Logging utilities for npm-switcher.

This module provides standalone structlog logger factories. The application
logger writes JSON lines to the configured log file and renders the same
events to stderr. Each logger is self-contained and does not modify global
structlog configuration.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

# Level above CRITICAL so that every event is filtered out
_SILENT_LEVEL: int = logging.CRITICAL + 10


def _get_log_level(default: str = "info") -> int:
    """Get the log level, honouring environment overrides.

    Checks NPM_SWITCHER_DEBUG first (sets DEBUG if present), then
    NPM_SWITCHER_LOG_LEVEL, then ``default``.

    Args:
        default: Level name to use when no environment override is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("NPM_SWITCHER_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    level_name = getenv("NPM_SWITCHER_LOG_LEVEL", default)
    return log_levels.get(level_name.upper(), logging.INFO)


def _shared_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(log_format: LogFormatType, *, colors: bool) -> structlog.typing.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def create_logger(
    log_file: str | Path | None = None,
    *,
    level: str = "info",
    console_format: LogFormatType = "text",
    console: TextIO | None = None,
    echo: bool = True,
    name: str = "npm_switcher",
) -> FilteringBoundLogger:
    """Create the application logger.

    Events are written as JSON lines to ``log_file`` (if given) and rendered
    to ``console`` in ``console_format``. Both outputs share one stdlib
    logger; structlog's ProcessorFormatter renders per handler.

    The log level is determined by (in order of precedence):
    1. NPM_SWITCHER_DEBUG environment variable (if set, enables DEBUG level)
    2. NPM_SWITCHER_LOG_LEVEL environment variable
    3. The ``level`` parameter

    Args:
        log_file: Path of the JSON log file, or None for console only.
        level: Log level string (debug, info, warning, error).
        console_format: Console output format, either "json" or "text".
        console: Stream for console output. Defaults to stderr.
        echo: If False, events go to the log file only.
        name: Name of the underlying stdlib logger.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _get_log_level(level)

    stdlib_logger = logging.getLogger(name)
    for handler in list(stdlib_logger.handlers):
        stdlib_logger.removeHandler(handler)
        handler.close()
    stdlib_logger.propagate = False
    stdlib_logger.setLevel(effective_level)

    pre_chain = _shared_processors()

    if echo:
        console_stream = console if console is not None else sys.stderr
        console_handler = logging.StreamHandler(console_stream)
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(console_format, colors=console_stream.isatty()),
                ],
                foreign_pre_chain=pre_chain,
            )
        )
        stdlib_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ],
                foreign_pre_chain=pre_chain,
            )
        )
        stdlib_logger.addHandler(file_handler)

    if not stdlib_logger.handlers:
        stdlib_logger.addHandler(logging.NullHandler())

    processors: list[structlog.typing.Processor] = [
        *pre_chain,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            stdlib_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def get_null_logger() -> FilteringBoundLogger:
    """Return a logger that discards every event.

    Used as the default for components constructed without a logger.
    """
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(_SILENT_LEVEL),
            context_class=dict,
        ),
    )
