"""Health-driven upstream failover for Nginx Proxy Manager."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("npm-switcher")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0"

__all__ = ["__version__"]
