"""Sync command: fetch and pin every workspace dependency."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext
from cli.result import CliResult


@dataclass(frozen=True)
class SyncOptions:
    """Options for dependency synchronization."""

    strict: Annotated[
        bool,
        Parameter(
            name="--strict",
            negative="",
            help="Refuse to sync dependencies that do not declare a hash.",
        ),
    ] = False


_DEFAULT_SYNC_OPTIONS = SyncOptions()


def sync_command(
    options: Annotated[SyncOptions, Parameter(name="*")] = _DEFAULT_SYNC_OPTIONS,
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Set up the workspace by syncing its dependencies.

    Returns
    -------
    CliResult
        Summary of the pinned dependencies.
    """
    from workspace.layout import get_workspace_root
    from workspace.resolver import sync_workspace

    start = run_context.cwd if run_context is not None else None
    result = sync_workspace(get_workspace_root(start), strict=options.strict)
    count = len(result.pins)
    noun = "dependency" if count == 1 else "dependencies"
    return CliResult.success(summary=f"Synced {count} {noun}")


__all__ = ["SyncOptions", "sync_command"]
