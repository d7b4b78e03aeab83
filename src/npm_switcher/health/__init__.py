"""HTTP health evaluation for monitored services."""

from ._evaluator import (
    DEFAULT_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    MAX_ATTEMPTS,
    MIN_ATTEMPTS,
    HealthEvaluator,
    clamp_attempts,
    classify_error,
)
from ._models import ProbeErrorKind, ProbeResult

__all__ = [
    "DEFAULT_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "MAX_ATTEMPTS",
    "MIN_ATTEMPTS",
    "HealthEvaluator",
    "ProbeErrorKind",
    "ProbeResult",
    "clamp_attempts",
    "classify_error",
]
