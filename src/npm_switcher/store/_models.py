"""Proxy record models.

Proxy Manager stores one ``proxy_host`` row per proxied domain set. The
``domain_names`` column holds a JSON-encoded list of domain names.
"""

from __future__ import annotations

from typing import ClassVar

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator

from npm_switcher.config import UpstreamTarget


class ProxyRecord(BaseModel):
    """A persisted proxy host routing record.

    Attributes:
        id: Record id; also names the record's config file.
        domain_names: Domains served by the record.
        forward_host: Upstream host.
        forward_port: Upstream port.
        forward_scheme: Upstream scheme.
        enabled: Whether the proxy host is enabled.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    id: int
    domain_names: list[str] = Field(default_factory=list)
    forward_host: str
    forward_port: int
    forward_scheme: str = "http"
    enabled: bool = True

    @field_validator("domain_names", mode="before")
    @classmethod
    def _decode_domain_names(cls, value: object) -> object:
        if isinstance(value, str | bytes):
            try:
                return orjson.loads(value)
            except orjson.JSONDecodeError as e:
                msg = f"domain_names is not a JSON list: {value!r}"
                raise ValueError(msg) from e
        return value

    @field_validator("forward_scheme", mode="before")
    @classmethod
    def _default_scheme(cls, value: object) -> object:
        return value or "http"

    @property
    def target(self) -> UpstreamTarget:
        """The record's current upstream target."""
        return UpstreamTarget(
            host=self.forward_host,
            port=self.forward_port,
            scheme=self.forward_scheme,
        )

    def serves(self, domain: str) -> bool:
        """Return True if ``domain`` is one of the record's domain names."""
        wanted = domain.lower()
        return any(name.lower() == wanted for name in self.domain_names)


class ForwardUpdate(BaseModel):
    """Column set written when repointing a record.

    A None ``forward_scheme`` is excluded from the UPDATE, leaving the
    stored scheme untouched.
    """

    id: int
    forward_host: str
    forward_port: int
    forward_scheme: str | None = None
    modified_on: str
