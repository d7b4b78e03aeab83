from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npm_switcher.config import ServiceSpec, UpstreamTarget

    from ._models import ServiceRuntimeState


def current_scheme(state: ServiceRuntimeState) -> str | None:
    """Return the scheme currently applied, falling back to the original's."""
    if state.applied is not None:
        return state.applied.scheme
    if state.original is not None:
        return state.original.scheme
    return None


def desired_target(
    spec: ServiceSpec,
    state: ServiceRuntimeState,
    *,
    healthy: bool,
) -> UpstreamTarget | None:
    """Select the target a service should route to.

    While healthy, an explicit ``if_success`` target wins over the original
    captured at startup. While unhealthy, ``if_failed`` is used. A target
    without a scheme reuses the scheme currently applied.

    Returns:
        The desired target, or None when healthy and neither ``if_success``
        nor an original target is known.
    """
    scheme = current_scheme(state)
    if not healthy:
        return spec.if_failed.resolve(scheme)
    if spec.if_success is not None:
        return spec.if_success.resolve(scheme)
    return state.original


def needs_update(desired: UpstreamTarget, applied: UpstreamTarget | None) -> bool:
    """Return True if ``desired`` differs from ``applied`` in any field."""
    return desired.differs_from(applied)
