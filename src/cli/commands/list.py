"""List command: print the targets declared by the workspace's build files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext
from cli.groups import output_group
from cli.result import CliResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListOptions:
    """Options for target listing."""

    build_dir: Annotated[
        Path | None,
        Parameter(
            name="--build-dir",
            help="Build directory exposed to scripts as OUTPUT_DIR.",
            group=output_group,
        ),
    ] = None


_DEFAULT_LIST_OPTIONS = ListOptions()


def compile_patterns(patterns: tuple[str, ...] | list[str]) -> list[re.Pattern[str]]:
    """Compile target patterns.

    Returns
    -------
    list[re.Pattern[str]]
        Compiled expressions.

    Raises
    ------
    ValueError
        Raised when a pattern is not a valid regular expression.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            msg = f"Invalid target pattern {pattern!r}: {exc}"
            raise ValueError(msg) from exc
    return compiled


def match_targets(targets: list[str], patterns: list[re.Pattern[str]]) -> list[str]:
    """Return the targets matched in full by any pattern (all when none given).

    Returns
    -------
    list[str]
        Matching targets in registration order, each listed once.
    """
    if not patterns:
        return list(targets)
    return [target for target in targets if any(p.fullmatch(target) for p in patterns)]


def list_command(
    *patterns: str,
    options: Annotated[ListOptions, Parameter(name="*")] = _DEFAULT_LIST_OPTIONS,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """List the targets matching the given regular expressions.

    Parameters
    ----------
    patterns
        Regular expressions matched against the full target path.

    Returns
    -------
    CliResult
        Matching targets, one per line.
    """
    from buildgraph.orchestrator import construct_engine
    from workspace.layout import default_build_dir, get_workspace_root

    compiled = compile_patterns(patterns)
    start = run_context.cwd if run_context is not None else None
    workspace_root = get_workspace_root(start)
    build_dir = default_build_dir(workspace_root, options.build_dir)

    engine = construct_engine(workspace_root, build_dir)
    targets = match_targets(engine.all_targets(), compiled)
    if patterns and not targets:
        logger.warning("No matched targets")
    return CliResult.success(lines=tuple(targets))


__all__ = ["ListOptions", "compile_patterns", "list_command", "match_targets"]
