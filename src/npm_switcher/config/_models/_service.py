"""Monitored service configuration model."""

from typing import ClassVar
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from npm_switcher.config._defaults import DEFAULT_RETRIES, MAX_RETRIES, MIN_RETRIES
from npm_switcher.config._models._common import Duration  # noqa: TC001
from npm_switcher.config._models._target import TargetSpec  # noqa: TC001


class ServiceSpec(BaseModel):
    """Configuration for one monitored domain.

    Attributes:
        domain: Proxied domain name, used to locate the proxy record.
        check: Health check URL.
        interval: Seconds between checks while the service is healthy.
        error_delay: Seconds between checks while the service is unhealthy.
        retries: Probe attempts per check, in [1, 10].
        if_success: Explicit target while healthy. None means the target
            captured from the proxy record at startup.
        if_failed: Fallback target while unhealthy.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    domain: str = Field(min_length=1)
    check: str
    interval: Duration
    error_delay: Duration
    retries: int = Field(default=DEFAULT_RETRIES, ge=MIN_RETRIES, le=MAX_RETRIES)
    if_success: TargetSpec | None = None
    if_failed: TargetSpec

    @field_validator("check")
    @classmethod
    def _validate_check_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            msg = f"check must be an absolute http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("interval", "error_delay")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            msg = "duration must be greater than zero"
            raise ValueError(msg)
        return value
