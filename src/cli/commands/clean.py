"""Clean command: remove yabt build artifacts."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext
from cli.groups import output_group
from cli.result import CliResult
from workspace.constants import DEPS_DIR_NAME
from workspace.layout import default_build_dir, get_workspace_root

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanOptions:
    """Options for artifact removal."""

    deps: Annotated[
        bool,
        Parameter(
            name=["--deps", "-d"],
            negative="",
            help="Clean the DEPS directory as well.",
        ),
    ] = False
    build_dir: Annotated[
        Path | None,
        Parameter(
            name="--build-dir",
            help="Location of the build directory.",
            group=output_group,
        ),
    ] = None


_DEFAULT_CLEAN_OPTIONS = CleanOptions()


def clean_command(
    options: Annotated[CleanOptions, Parameter(name="*")] = _DEFAULT_CLEAN_OPTIONS,
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Clean all the yabt build artifacts.

    Returns
    -------
    CliResult
        Summary of the removed directories.
    """
    start = run_context.cwd if run_context is not None else None
    workspace_root = get_workspace_root(start)

    targets = [default_build_dir(workspace_root, options.build_dir)]
    if options.deps:
        targets.append((workspace_root / DEPS_DIR_NAME).absolute())

    removed: list[str] = []
    for target in targets:
        if not target.exists():
            logger.debug("Nothing to remove at %s", target)
            continue
        shutil.rmtree(target)
        logger.info("Removed %s", target)
        removed.append(str(target))
    summary = f"Removed {', '.join(removed)}" if removed else "Nothing to clean"
    return CliResult.success(summary=summary)


__all__ = ["CleanOptions", "clean_command"]
