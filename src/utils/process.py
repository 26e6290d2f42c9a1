"""Blocking subprocess helpers with exit classification."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalExit:
    """Child exited on its own with ``exit_code``."""

    exit_code: int


@dataclass(frozen=True)
class UnhandledSignal:
    """Child was terminated by ``signal``."""

    signal: int


ExitReason = NormalExit | UnhandledSignal


@dataclass(frozen=True)
class ProcessOutput:
    """Captured output and classified exit of a finished child process.

    Parameters
    ----------
    args
        Command line that was executed.
    exit_reason
        How the child terminated.
    stdout
        Captured standard output (empty when not captured).
    stderr
        Captured standard error (empty when not captured).
    """

    args: tuple[str, ...]
    exit_reason: ExitReason
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return whether the child exited normally with status zero.

        Returns
        -------
        bool
            True on a zero normal exit.
        """
        return isinstance(self.exit_reason, NormalExit) and self.exit_reason.exit_code == 0

    @property
    def command(self) -> str:
        """Return the shell-quoted command line.

        Returns
        -------
        str
            Printable command line.
        """
        return shlex.join(self.args)

    def failure_reason(self) -> str:
        """Describe the exit for error messages.

        Returns
        -------
        str
            Human-readable exit description.
        """
        if isinstance(self.exit_reason, UnhandledSignal):
            return f"exited with signal {self.exit_reason.signal}"
        return f"exited with code {self.exit_reason.exit_code}"


def run_process(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    capture: bool = True,
) -> ProcessOutput:
    """Run a command to completion and classify how it exited.

    Parameters
    ----------
    args
        Executable followed by its arguments.
    cwd
        Optional working directory for the child.
    capture
        Capture stdout/stderr instead of inheriting the parent's streams.

    Returns
    -------
    ProcessOutput
        Captured output with the classified exit reason.
    """
    argv = tuple(str(arg) for arg in args)
    logger.debug("Running %s", shlex.join(argv))
    result = subprocess.run(
        argv,
        cwd=cwd,
        check=False,
        capture_output=capture,
        text=True,
    )
    reason: ExitReason
    if result.returncode < 0:
        reason = UnhandledSignal(signal=-result.returncode)
    else:
        reason = NormalExit(exit_code=result.returncode)
    return ProcessOutput(
        args=argv,
        exit_reason=reason,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


__all__ = [
    "ExitReason",
    "NormalExit",
    "ProcessOutput",
    "UnhandledSignal",
    "run_process",
]
