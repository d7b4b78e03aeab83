"""Execution utilities for external proxy commands.

This module runs single-line shell commands (the proxy reload and syntax
test) as external processes with timeout handling and output capture.
Callers depend on the ``ProcessRunner`` protocol so tests can substitute
an in-process double.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Protocol, final, runtime_checkable

import anyio

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS: int = 30000  # 30 seconds

# Maximum output size in bytes
MAX_OUTPUT_BYTES: int = 102400  # 100KB

# Exit status the shell uses when the command cannot be found
SHELL_NOT_FOUND: int = 127


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from command execution.

    Attributes:
        command: The command line that was executed.
        exit_code: Process exit code, or None if execution failed.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        error: Error message if execution failed (timeout, not found, etc.).
        timed_out: Whether the command timed out.
        command_not_found: Whether the shell could not find the command.
    """

    command: str
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False
    command_not_found: bool = False

    @property
    def success(self) -> bool:
        """Return True if the command ran and exited with status zero."""
        return self.exit_code == 0


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Use 'ignore' to skip incomplete multi-byte sequences at the end
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")

    return truncated + "\n... [output truncated]"


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for running an external command to completion."""

    async def run(self, command: str) -> CommandResult:
        """Run ``command`` and return its outcome.

        Implementations never raise for a failing command; failure is
        reported through the result.

        Args:
            command: Single-line command string.

        Returns:
            The command outcome.
        """
        ...


@final
class SubprocessRunner:
    """Runs commands through the system shell."""

    __slots__ = ("_timeout_ms",)

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        """Initialize the runner.

        Args:
            timeout_ms: Execution timeout in milliseconds.
        """
        self._timeout_ms = timeout_ms

    async def run(self, command: str) -> CommandResult:
        """Run ``command`` with the system shell.

        Shell syntax such as ``&&``, pipes and redirects is honored.

        Args:
            command: Single-line command string.

        Returns:
            The command outcome.
        """
        if not command.strip():
            return CommandResult(command=command, error="No command specified")

        timeout_seconds = self._timeout_ms / 1000.0

        try:
            with anyio.fail_after(timeout_seconds):
                completed = await anyio.run_process(
                    command,
                    check=False,
                    stdin=subprocess.DEVNULL,
                )
        except TimeoutError:
            return CommandResult(
                command=command,
                error=f"Command timed out after {timeout_seconds}s",
                timed_out=True,
            )
        except OSError as e:
            return CommandResult(command=command, error=str(e))

        return CommandResult(
            command=command,
            exit_code=completed.returncode,
            stdout=truncate_output(completed.stdout.decode("utf-8", errors="replace")),
            stderr=truncate_output(completed.stderr.decode("utf-8", errors="replace")),
            command_not_found=completed.returncode == SHELL_NOT_FOUND,
        )
