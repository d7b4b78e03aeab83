"""npm-switcher exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from npm_switcher.health import ProbeErrorKind


class SwitcherError(Exception):
    """Base exception for npm-switcher errors."""


class StartupError(SwitcherError):
    """Raised when the orchestrator cannot be brought up safely."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(SwitcherError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation.

    Attributes:
        key: Dotted path of the first offending key.
        value: The offending value.
        expected: Description of what was expected.
        issues: Every issue found, as ``(key, message)`` pairs.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        issues: list[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.issues: list[tuple[str, str]] = issues or []


# =============================================================================
# Runtime Exceptions
# =============================================================================


class RecordNotFoundError(SwitcherError, LookupError):
    """Raised when no proxy record serves a domain.

    Attributes:
        domain: The domain that was looked up.
    """

    def __init__(self, message: str, *, domain: str) -> None:
        super().__init__(message)
        self.domain: str = domain


class ProbeError(SwitcherError):
    """A single failed health probe attempt.

    Attributes:
        kind: Classification of the failure.
        attempt: The 1-based attempt number that failed.
        status_code: HTTP status code for ``http-status`` failures.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ProbeErrorKind,
        attempt: int = 1,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind: ProbeErrorKind = kind
        self.attempt: int = attempt
        self.status_code: int | None = status_code


class FileSyncError(SwitcherError):
    """Raised when a proxy config file cannot be read, backed up or written.

    Attributes:
        path: The config file involved.
        record_id: The proxy record id the file belongs to, if any.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        record_id: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path: Path = path
        self.record_id: int | None = record_id
        self.cause: Exception | None = cause


class ReloadError(SwitcherError):
    """Raised when the proxy reload or syntax-test command fails.

    Attributes:
        command: The command line that was executed.
        exit_code: Process exit code, or None if it never ran.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command: str = command
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr


class StoreError(SwitcherError):
    """Raised on connectivity or query failures against the record store.

    Attributes:
        operation: The store operation that failed.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.operation: str = operation
        self.cause: Exception | None = cause


# =============================================================================
# Archive Exceptions
# =============================================================================


class ArchiveError(SwitcherError):
    """Raised when a backup or snapshot artifact cannot be read or written.

    Attributes:
        path: The artifact path involved, if known.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path: Path | None = path


class SnapshotNotFoundError(ArchiveError, LookupError):
    """Raised when a numbered snapshot does not exist.

    Attributes:
        snapshot_id: The requested snapshot number.
    """

    def __init__(
        self,
        message: str,
        *,
        snapshot_id: int,
        path: Path | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.snapshot_id: int = snapshot_id
