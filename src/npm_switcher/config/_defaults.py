"""Default configuration values.

This module defines the built-in defaults applied when the configuration
file leaves an optional key unset.
"""

DEFAULT_RELOAD_COMMAND: str = "/usr/sbin/nginx -s reload"

DEFAULT_BACKUP_DIR: str = "./backups"

DEFAULT_SNAPSHOT_DIR: str = "./snapshots"

DEFAULT_RETRIES: int = 3

MIN_RETRIES: int = 1

MAX_RETRIES: int = 10

# Period of the status report log, in seconds
DEFAULT_STATUS_INTERVAL: float = 300.0
