from dataclasses import dataclass
from enum import StrEnum


class ProbeErrorKind(StrEnum):
    """Classification of a failed probe attempt."""

    REFUSED = "refused"
    TIMEOUT = "timeout"
    DNS_NOT_FOUND = "dns-not-found"
    HTTP_STATUS = "http-status"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of a retried health probe.

    Attributes:
        success: Whether an attempt returned a 2xx status.
        attempts: Number of attempts made, at least 1.
        response_time_ms: Duration of the last attempt in milliseconds.
        error_kind: Classification of the last failure, None on success.
        error: Message of the last failure, None on success.
        status_code: HTTP status of the last response, if one was received.
    """

    success: bool
    attempts: int
    response_time_ms: float | None = None
    error_kind: ProbeErrorKind | None = None
    error: str | None = None
    status_code: int | None = None
