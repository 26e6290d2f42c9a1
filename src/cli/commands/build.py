"""Build command implementation for the yabt CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter, validators

from cli.context import RunContext
from cli.groups import execution_group, output_group
from cli.result import CliResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Options for generating and running the build."""

    threads: Annotated[
        int | None,
        Parameter(
            name="--threads",
            help="Number of parallel Ninja jobs (defaults to the CPU count).",
            validator=validators.Number(gte=1),
            group=execution_group,
        ),
    ] = None
    build_dir: Annotated[
        Path | None,
        Parameter(
            name="--build-dir",
            help="Override the build directory (defaults to <workspace>/build).",
            group=output_group,
        ),
    ] = None
    ninja: Annotated[
        str,
        Parameter(
            name="--ninja",
            help="Ninja executable to invoke.",
            group=execution_group,
        ),
    ] = "ninja"


_DEFAULT_BUILD_OPTIONS = BuildOptions()


def build_command(
    options: Annotated[BuildOptions, Parameter(name="*")] = _DEFAULT_BUILD_OPTIONS,
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Build the workspace: emit build.ninja, then run Ninja on it.

    Returns
    -------
    CliResult
        Written artifacts.
    """
    from buildgraph.orchestrator import generate_build_files, run_ninja

    start = run_context.cwd if run_context is not None else None
    outcome = generate_build_files(start, build_dir=options.build_dir, ninja=options.ninja)
    logger.info("Wrote %s", outcome.ninja_file)
    run_ninja(outcome.ninja_file.parent, threads=options.threads, ninja=options.ninja)

    artifacts = {"ninja": outcome.ninja_file}
    if outcome.compdb_file is not None:
        artifacts["compdb"] = outcome.compdb_file
    return CliResult.success(artifacts=artifacts)


__all__ = ["BuildOptions", "build_command"]
