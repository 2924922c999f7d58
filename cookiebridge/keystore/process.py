"""Time-bounded execution of external secret-store tools."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Sequence

from cookiebridge.core.constants import DEFAULT_SECRET_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Shell conventions for "timed out" and "command not found"
TIMEOUT_EXIT_CODE = 124
NOT_FOUND_EXIT_CODE = 127
OS_ERROR_EXIT_CODE = 126


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of one external command."""

    code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.code == 0

    @property
    def timed_out(self) -> bool:
        return self.code == TIMEOUT_EXIT_CODE

    def describe_failure(self) -> str:
        """Short failure reason for warnings (stderr, or the exit code)."""
        if self.timed_out:
            return "timed out"
        if self.code == NOT_FOUND_EXIT_CODE:
            return "command not found"
        return self.stderr.strip() or f"exit {self.code}"


def run_capture(
    args: Sequence[str],
    timeout: float = DEFAULT_SECRET_TIMEOUT_SECONDS,
) -> CommandResult:
    """
    Run a command and capture its output.

    The process is killed when ``timeout`` elapses. Never raises for process
    failures; they are reported through the exit code.

    Args:
        args: Program and arguments (no shell).
        timeout: Seconds before the process is killed.

    Returns:
        CommandResult. Timeouts map to 124 and a missing program to 127.
    """
    try:
        completed = subprocess.run(
            list(args),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.debug("%s timed out after %.1fs", args[0], timeout)
        return CommandResult(TIMEOUT_EXIT_CODE, "", f"Timed out after {timeout}s")
    except FileNotFoundError:
        logger.debug("%s not found", args[0])
        return CommandResult(NOT_FOUND_EXIT_CODE, "", f"{args[0]}: command not found")
    except OSError as e:
        logger.debug("Failed to run %s: %s", args[0], e)
        return CommandResult(OS_ERROR_EXIT_CODE, "", str(e))

    return CommandResult(completed.returncode, completed.stdout or "", completed.stderr or "")
