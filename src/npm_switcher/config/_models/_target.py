"""Upstream target models.

An upstream target is the (host, port, scheme) tuple a proxied domain
forwards requests to. Two shapes exist: ``TargetSpec`` as written in the
configuration, where the scheme may be omitted, and ``UpstreamTarget``, a
fully resolved target as stored in the proxy record and config file.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from npm_switcher.config._models._common import Scheme  # noqa: TC001


class UpstreamTarget(BaseModel):
    """A fully resolved upstream target.

    The scheme is a plain string because resolved targets also come from
    the proxy's own database, which this tool does not validate.

    Attributes:
        host: Forward host name or address.
        port: Forward port.
        scheme: Forward scheme, normally ``http`` or ``https``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    host: str
    port: int
    scheme: str

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def differs_from(self, other: UpstreamTarget | None) -> bool:
        """Return True if any of host, port or scheme differ from ``other``."""
        if other is None:
            return True
        return (
            self.host != other.host
            or self.port != other.port
            or self.scheme != other.scheme
        )


class TargetSpec(BaseModel):
    """A configured target whose scheme may be left to the running state.

    Attributes:
        host: Forward host name or address.
        port: Forward port.
        scheme: Forward scheme; None reuses the currently applied scheme.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    scheme: Scheme | None = None

    def resolve(self, current_scheme: str | None) -> UpstreamTarget:
        """Resolve into a concrete target.

        Args:
            current_scheme: Scheme to use when none is configured.

        Returns:
            The resolved target. Falls back to ``http`` when neither this
            spec nor the running state knows a scheme.
        """
        scheme = self.scheme or current_scheme or "http"
        return UpstreamTarget(host=self.host, port=self.port, scheme=scheme)
