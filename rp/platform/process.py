"""Subprocess execution with Result-based error handling.

Two flavours:

- ``run`` captures stdout/stderr (used for ``gh``, whose output we parse).
- ``run_streaming`` lets output flow to the terminal (used for ``cargo``,
  whose progress the CI log should show as it happens).

Both accept an ``env_overlay`` that is merged over the current environment
for the child process only. Overlay values are never echoed.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rp.core.result import Err, Ok, Result

__all__ = ["ProcessError", "child_env", "run", "run_streaming"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not be started or exited non-zero.

    ``returncode`` is -1 when the process never ran (missing executable,
    permission error, timeout).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = list(self.command[:3])
        if len(self.command) > 3:
            shown.append("...")
        return f"{' '.join(shown)} failed (exit {self.returncode})"

    @classmethod
    def not_started(cls, cmd: list[str], reason: str) -> ProcessError:
        return cls(command=tuple(cmd), returncode=-1, stdout="", stderr=reason)


def child_env(env_overlay: Mapping[str, str] | None) -> dict[str, str] | None:
    """Environment for a child process, or None to inherit unchanged."""
    if not env_overlay:
        return None
    return {**os.environ, **env_overlay}


def run(
    cmd: list[str],
    cwd: Path,
    env_overlay: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Returns:
        Ok(stdout) on exit 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=child_env(env_overlay),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(ProcessError.not_started(cmd, f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError.not_started(cmd, str(e)))

    if proc.returncode == 0:
        return Ok(proc.stdout)
    return Err(ProcessError(tuple(cmd), proc.returncode, proc.stdout, proc.stderr))


def run_streaming(
    cmd: list[str],
    cwd: Path,
    env_overlay: Mapping[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command with output streamed to the terminal.

    Nothing is captured, so a failure only carries the exit code.
    """
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), env=child_env(env_overlay), check=False)
    except OSError as e:
        return Err(ProcessError.not_started(cmd, str(e)))

    if proc.returncode == 0:
        return Ok(None)
    return Err(ProcessError(tuple(cmd), proc.returncode, "", ""))
