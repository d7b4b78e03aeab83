# pyright: reportAny=false, reportExplicitAny=false
"""Configuration validation.

Converts pydantic validation failures into ``ConfigValidationError`` so
callers only deal with the npm-switcher exception hierarchy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from npm_switcher.config._models import AppConfig
from npm_switcher.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Represents a configuration validation issue.

    Attributes:
        key: Dotted path to the configuration key (e.g., "services.sso.retries").
        message: Human-readable description of the issue.
        expected: Description of expected value or type, if available.
        actual: The actual value that caused the issue.
    """

    key: str
    message: str
    expected: str | None
    actual: Any


def _pydantic_error_to_issue(error: ErrorDetails) -> ValidationIssue:
    """Convert a Pydantic error dict to a ValidationIssue.

    Args:
        error: A single error dict from ValidationError.errors().

    Returns:
        A ValidationIssue representing the validation error.
    """
    loc = error.get("loc", ())
    key = ".".join(str(part) for part in loc) or "<root>"

    message = str(error.get("msg", "Validation error"))

    ctx = error.get("ctx")
    expected: str | None = None
    if ctx is not None:
        if "expected" in ctx:
            expected = str(ctx["expected"])
        elif "pattern" in ctx:
            expected = f"pattern: {ctx['pattern']}"
        elif "ge" in ctx and "le" in ctx:
            expected = f"between {ctx['ge']} and {ctx['le']}"

    return ValidationIssue(
        key=key,
        message=message,
        expected=expected,
        actual=error.get("input"),
    )


def collect_issues(data: dict[str, Any]) -> list[ValidationIssue]:
    """Validate a raw configuration mapping without raising.

    Args:
        data: The parsed configuration document.

    Returns:
        List of ValidationIssue objects. Empty list indicates valid config.
    """
    try:
        _ = AppConfig.model_validate(data)
    except ValidationError as e:
        return [_pydantic_error_to_issue(err) for err in e.errors()]
    return []


def validate_config(data: dict[str, Any]) -> AppConfig:
    """Validate a raw configuration mapping into an AppConfig.

    Args:
        data: The parsed configuration document.

    Returns:
        The validated configuration.

    Raises:
        ConfigValidationError: If any key is missing or invalid. The error
            names the first issue and carries all of them in ``issues``.
    """
    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        issues = [_pydantic_error_to_issue(err) for err in e.errors()]
        first = issues[0]
        summary = "; ".join(f"{issue.key}: {issue.message}" for issue in issues)
        msg = f"Invalid configuration: {summary}"
        raise ConfigValidationError(
            msg,
            key=first.key,
            value=first.actual,
            expected=first.expected or first.message,
            issues=[(issue.key, issue.message) for issue in issues],
        ) from e
