"""Proxy config file patching and reload control."""

from ._patch import count_upstream_references, replace_upstream
from ._synchronizer import (
    BACKUP_INFIX,
    CONFIG_SUFFIX,
    NginxConfigSynchronizer,
    derive_test_command,
)

__all__ = [
    "BACKUP_INFIX",
    "CONFIG_SUFFIX",
    "NginxConfigSynchronizer",
    "count_upstream_references",
    "derive_test_command",
    "replace_upstream",
]
