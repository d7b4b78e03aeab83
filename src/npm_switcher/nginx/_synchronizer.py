"""Proxy config file synchronization and reload.

The synchronizer owns the on-disk half of the update protocol: it patches
``<conf_dir>/<record_id>.conf`` after taking a read-only backup of the
pre-patch bytes, and drives the proxy's reload and syntax-test commands
through a ``ProcessRunner``.
"""

from __future__ import annotations

import re
import stat
from typing import TYPE_CHECKING, Final, final

import anyio

from npm_switcher.config import DEFAULT_RELOAD_COMMAND
from npm_switcher.exceptions import FileSyncError, ReloadError
from npm_switcher.utils import SubprocessRunner, file_timestamp, get_null_logger

from ._patch import count_upstream_references, replace_upstream

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from npm_switcher.config import UpstreamTarget
    from npm_switcher.utils import CommandResult, ProcessRunner

CONFIG_SUFFIX: Final = ".conf"
BACKUP_INFIX: Final = ".backup."
_READ_ONLY: Final = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
_RELOAD_FLAG_RE: Final = re.compile(r"(?<!\S)-s\s+reload(?!\S)")


def derive_test_command(reload_command: str) -> str | None:
    """Derive the syntax-test command from a reload command.

    The first ``-s reload`` flag pair is replaced with ``-t``; the rest of
    the shell command is kept verbatim.

    Args:
        reload_command: The configured reload command.

    Returns:
        The test command, or None if the reload command has no reload flag.

    Examples:
        >>> derive_test_command("/usr/sbin/nginx -s reload")
        '/usr/sbin/nginx -t'
        >>> derive_test_command("docker exec npm nginx -s reload")
        'docker exec npm nginx -t'
        >>> derive_test_command("systemctl reload nginx") is None
        True
    """
    test_command, count = _RELOAD_FLAG_RE.subn("-t", reload_command, count=1)
    return test_command if count else None


@final
class NginxConfigSynchronizer:
    """Patches proxy host config files and reloads the proxy.

    No operation retries on its own; a failed step is picked up again by
    the next monitoring cycle.

    Attributes:
        conf_dir: Directory holding the per-record config files.
        reload_command: Command that makes the proxy reload its config.
    """

    __slots__ = ("_logger", "_runner", "conf_dir", "reload_command")

    def __init__(
        self,
        conf_dir: Path,
        reload_command: str = DEFAULT_RELOAD_COMMAND,
        *,
        runner: ProcessRunner | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.conf_dir = conf_dir
        self.reload_command = reload_command
        self._runner: ProcessRunner = runner or SubprocessRunner()
        self._logger = (logger or get_null_logger()).bind(component="nginx")

    def config_path(self, record_id: int) -> Path:
        """Return the config file path for a proxy record."""
        return self.conf_dir / f"{record_id}{CONFIG_SUFFIX}"

    async def ensure_config_directory(self) -> None:
        """Create the config directory if it does not exist.

        Raises:
            FileSyncError: If the directory cannot be created.
        """
        directory = anyio.Path(self.conf_dir)
        if await directory.is_dir():
            return
        try:
            await directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create config directory {self.conf_dir}: {e}"
            raise FileSyncError(msg, path=self.conf_dir, cause=e) from e
        self._logger.info("created config directory", path=str(self.conf_dir))

    async def _write_backup(self, path: Path, raw: bytes, record_id: int) -> Path:
        backup_path = path.with_name(f"{path.name}{BACKUP_INFIX}{file_timestamp()}")
        try:
            async with await anyio.open_file(backup_path, "xb") as f:
                _ = await f.write(raw)
            await anyio.Path(backup_path).chmod(_READ_ONLY)
        except OSError as e:
            msg = f"Cannot write config backup {backup_path}: {e}"
            raise FileSyncError(
                msg, path=backup_path, record_id=record_id, cause=e
            ) from e
        return backup_path

    async def _replace_file(self, path: Path, data: bytes, record_id: int) -> None:
        temp_path = anyio.Path(path.with_name(f".{path.name}.tmp"))
        try:
            mode = stat.S_IMODE((await anyio.Path(path).stat()).st_mode)
            _ = await temp_path.write_bytes(data)
            await temp_path.chmod(mode)
            _ = await temp_path.replace(path)
        except OSError as e:
            await temp_path.unlink(missing_ok=True)
            msg = f"Cannot write config file {path}: {e}"
            raise FileSyncError(msg, path=path, record_id=record_id, cause=e) from e

    async def patch(
        self,
        record_id: int,
        old: UpstreamTarget,
        new: UpstreamTarget,
    ) -> Path:
        """Rewrite the record's config file from ``old`` to ``new``.

        Args:
            record_id: Proxy record id; selects ``<conf_dir>/<id>.conf``.
            old: Target currently written in the file.
            new: Target to write.

        Returns:
            Path of the read-only backup of the pre-patch content.

        Raises:
            FileSyncError: If the file is missing, unreadable or unwritable.
        """
        path = self.config_path(record_id)
        logger = self._logger.bind(record_id=record_id, path=str(path))

        if not await anyio.Path(path).is_file():
            msg = f"Config file not found: {path}"
            raise FileSyncError(msg, path=path, record_id=record_id)

        try:
            raw = await anyio.Path(path).read_bytes()
        except OSError as e:
            msg = f"Cannot read config file {path}: {e}"
            raise FileSyncError(msg, path=path, record_id=record_id, cause=e) from e

        backup_path = await self._write_backup(path, raw, record_id)
        logger.debug("wrote config backup", backup=str(backup_path))

        content = raw.decode("utf-8", errors="surrogateescape")
        if count_upstream_references(content, old) == 0:
            logger.warning("no upstream reference found in config", old=str(old))

        updated = replace_upstream(content, old, new)
        await self._replace_file(
            path, updated.encode("utf-8", errors="surrogateescape"), record_id
        )
        logger.info("patched config file", old=str(old), new=str(new))
        return backup_path

    async def _run(self, command: str, action: str) -> CommandResult:
        result = await self._runner.run(command)
        if not result.success:
            detail = (
                result.error
                or result.stderr.strip()
                or f"exit code {result.exit_code}"
            )
            msg = f"Proxy {action} failed: {detail}"
            raise ReloadError(
                msg,
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result

    async def reload(self) -> CommandResult:
        """Run the reload command.

        Raises:
            ReloadError: If the command fails or exits non-zero.
        """
        result = await self._run(self.reload_command, "reload")
        self._logger.info("proxy reloaded", command=self.reload_command)
        return result

    async def test_syntax(self) -> CommandResult:
        """Run the syntax test derived from the reload command.

        Raises:
            ReloadError: If no test command can be derived, or the test fails.
        """
        test_command = derive_test_command(self.reload_command)
        if test_command is None:
            msg = (
                "Cannot derive a syntax test command from "
                f"{self.reload_command!r}: no '-s reload' flag"
            )
            raise ReloadError(msg, command=self.reload_command)

        result = await self._run(test_command, "syntax test")
        self._logger.info("proxy syntax test passed", command=test_command)
        return result
