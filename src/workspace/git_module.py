"""Git-backed module implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

from core.errors import FetchFailedError, NotAModuleError, VcsCommandFailedError
from utils.process import NormalExit, ProcessOutput, run_process
from workspace.module import Module, register_backend

logger = logging.getLogger(__name__)

_IS_ANCESTOR = 0
_NOT_ANCESTOR = 1


def _git(*args: str | Path) -> ProcessOutput:
    argv = ["git", *(str(arg) for arg in args)]
    try:
        return run_process(argv)
    except OSError as exc:
        raise VcsCommandFailedError(" ".join(argv), "could not be started", str(exc)) from exc


def _check(output: ProcessOutput) -> ProcessOutput:
    if not output.ok:
        raise VcsCommandFailedError(output.command, output.failure_reason(), output.stderr)
    return output


@register_backend
class GitModule(Module):
    """Module whose checkout is a git working tree."""

    type_tag: ClassVar[str] = "git"
    marker: ClassVar[str] = ".git"

    @classmethod
    def open(cls, path: Path) -> GitModule:
        """Open an existing git checkout.

        Returns
        -------
        GitModule
            Module handle.

        Raises
        ------
        NotAModuleError
            Raised when ``path`` has no ``.git`` entry.
        """
        if not cls.detect(path):
            raise NotAModuleError(str(path), "missing .git")
        return cls(Path(path))

    @classmethod
    def open_or_fetch(cls, path: Path, url: str, pin: str) -> GitModule:
        """Open ``path`` or clone ``url`` into it.

        The pin is applied later by the resolver, once every ref is fetched.

        Returns
        -------
        GitModule
            Module handle.

        Raises
        ------
        FetchFailedError
            Raised when ``git clone`` fails.
        """
        _ = pin
        if cls.detect(path):
            logger.debug("Opening already-existing git module at %s", path)
            return cls.open(path)

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            output = run_process(["git", "clone", url, str(path)])
        except OSError as exc:
            raise FetchFailedError(url, str(exc)) from exc
        if not output.ok:
            logger.error("Error cloning git module %s", url)
            raise FetchFailedError(url, output.stderr)
        logger.debug("Successfully fetched git module at %s", path)
        return cls(Path(path))

    def head(self) -> str:
        """Return the commit at ``HEAD``.

        Returns
        -------
        str
            Full commit hash with surrounding whitespace removed.
        """
        output = _check(_git("-C", self.disk_path, "rev-list", "--max-count=1", "HEAD"))
        return output.stdout.strip()

    def fetch(self) -> None:
        """Fetch every remote's refs and tags."""
        _check(_git("-C", self.disk_path, "fetch", "--all", "--tags"))

    def is_ancestor(self, ancestor: str, revision: str) -> bool:
        """Ask git whether ``ancestor`` is reachable from ``revision``.

        ``git merge-base --is-ancestor`` exits 0 for yes and 1 for no; any
        other status is an error.

        Returns
        -------
        bool
            True when ``ancestor`` is an ancestor of ``revision``.

        Raises
        ------
        VcsCommandFailedError
            Raised for any other exit status or a signal.
        """
        output = _git("-C", self.disk_path, "merge-base", "--is-ancestor", ancestor, revision)
        reason = output.exit_reason
        if isinstance(reason, NormalExit) and reason.exit_code in (_IS_ANCESTOR, _NOT_ANCESTOR):
            return reason.exit_code == _IS_ANCESTOR
        raise VcsCommandFailedError(output.command, output.failure_reason(), output.stderr)

    def checkout(self, revision: str) -> None:
        """Check out ``revision`` in the working tree."""
        _check(_git("-C", self.disk_path, "checkout", "--quiet", revision))


__all__ = ["GitModule"]
