"""Fixed-order build pipeline: workspace -> engine -> graph -> Ninja."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from buildgraph.ninja_writer import write_ninja_file
from core.errors import ExecutorInvocationFailedError
from obs.logging import log_indent
from obs.tracing import SCOPE_BUILD, stage_span
from scripting.engine import BuildGraphEngine
from utils.file_io import write_text
from utils.file_walk import iter_named_files
from utils.process import run_process
from workspace.constants import (
    BUILD_FILE_NAME,
    COMPDB_FILE_NAME,
    INIT_FILE_NAME,
    NINJA_FILE_NAME,
)
from workspace.layout import default_build_dir, get_workspace_root, open_workspace

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.types import BuildGraph
    from workspace.module import Module

logger = logging.getLogger(__name__)

DEFAULT_NINJA = "ninja"


@dataclass(frozen=True)
class BuildOutcome:
    """Artifacts written by one ``generate_build_files`` pass."""

    graph: BuildGraph
    ninja_file: Path
    compdb_file: Path | None = None


def prepare_engine(
    workspace_root: Path,
    build_dir: Path,
    modules: Sequence[Module],
) -> BuildGraphEngine:
    """Create an engine whose ``require`` path covers every rules directory.

    Returns
    -------
    BuildGraphEngine
        Engine bound to the workspace and output roots.
    """
    engine = BuildGraphEngine(workspace_root, build_dir)
    logger.debug("Setting package.path")
    engine.set_rule_dirs(module.rules_dir for module in modules if module.rules_dir is not None)
    return engine


def invoke_rule_initializers(engine: BuildGraphEngine, modules: Sequence[Module]) -> None:
    """Run every module's ``INIT.lua`` files, then the bootstrap."""
    for module in modules:
        logger.debug("Handling module: %s", module.name)
        rules_dir = module.rules_dir
        if rules_dir is None:
            continue
        with log_indent():
            for init_file in iter_named_files(rules_dir, INIT_FILE_NAME):
                logger.debug("Executing init file: %s", init_file)
                engine.exec_file(init_file)
    engine.exec_bootstrap()


def find_build_files(module: Module) -> list[str]:
    """Return the directories under ``<module>/src`` holding a ``BUILD.lua``.

    Returns
    -------
    list[str]
        POSIX paths relative to the source directory (``.`` for its root).
    """
    src_dir = module.src_dir
    return [
        Path(os.path.relpath(build_file.parent, src_dir)).as_posix()
        for build_file in iter_named_files(src_dir, BUILD_FILE_NAME)
    ]


def invoke_build_targets(engine: BuildGraphEngine, modules: Sequence[Module]) -> None:
    """Register every module with its build files, then rerun the bootstrap."""
    for module in modules:
        logger.debug("Handling module: %s", module.name)
        with log_indent():
            if not module.src_dir.exists():
                logger.debug("Skipping source dir, as it does not exist")
                continue
            build_files = find_build_files(module)
            for build_file in build_files:
                logger.debug("Found build file: %s", build_file)
            engine.register_module(module.name, module.disk_path, build_files)
    engine.exec_bootstrap()


def construct_engine(workspace_root: Path, build_dir: Path) -> BuildGraphEngine:
    """Run every phase of graph construction and return the populated engine.

    Phases run in a fixed order: open the module set, prepare the engine,
    run rule initializers and the bootstrap, register modules, and run the
    bootstrap again to evaluate build files.

    Parameters
    ----------
    workspace_root
        Workspace root directory.
    build_dir
        Output root.

    Returns
    -------
    BuildGraphEngine
        Engine holding the collected graph.
    """
    modules = open_workspace(workspace_root)
    engine = prepare_engine(workspace_root, build_dir, modules)
    invoke_rule_initializers(engine, modules)
    invoke_build_targets(engine, modules)
    return engine


def orchestrate_build(workspace_root: Path, build_dir: Path) -> BuildGraph:
    """Construct the build graph of a workspace.

    Returns
    -------
    BuildGraph
        Collected rules and steps.
    """
    return construct_engine(workspace_root, build_dir).graph()


def generate_build_files(
    start: Path | None = None,
    *,
    build_dir: Path | str | None = None,
    ninja: str = DEFAULT_NINJA,
) -> BuildOutcome:
    """Locate the workspace, build its graph and write ``build.ninja``.

    A compilation database is written as well when any rule asks for it.

    Parameters
    ----------
    start
        Directory inside the workspace; defaults to the current directory.
    build_dir
        Output root override.
    ninja
        Ninja executable used for the compilation database.

    Returns
    -------
    BuildOutcome
        Graph and written files.
    """
    workspace_root = get_workspace_root(start)
    output_dir = default_build_dir(workspace_root, build_dir)
    with stage_span(
        "yabt.build.generate",
        stage="generate",
        scope_name=SCOPE_BUILD,
        attributes={"yabt.workspace_root": str(workspace_root), "yabt.build_dir": str(output_dir)},
    ) as span:
        graph = orchestrate_build(workspace_root, output_dir)
        span.set_attribute("yabt.target_count", len(graph.targets()))
        ninja_file = write_ninja_file(output_dir / NINJA_FILE_NAME, graph)
        compdb_file = None
        compdb_rules = graph.compdb_rules()
        if compdb_rules:
            compdb_file = write_compdb(output_dir, compdb_rules, ninja=ninja)
    return BuildOutcome(graph=graph, ninja_file=ninja_file, compdb_file=compdb_file)


def write_compdb(build_dir: Path, rules: Sequence[str], *, ninja: str = DEFAULT_NINJA) -> Path:
    """Ask Ninja for the compilation database of ``rules``.

    Returns
    -------
    Path
        Written ``compile_commands.json``.

    Raises
    ------
    ExecutorInvocationFailedError
        Raised when Ninja cannot be run or fails.
    """
    args = [ninja, "-t", "compdb", *rules]
    try:
        output = run_process(args, cwd=build_dir)
    except OSError as exc:
        raise ExecutorInvocationFailedError(" ".join(args), f"could not be started: {exc}") from exc
    if not output.ok:
        raise ExecutorInvocationFailedError(output.command, output.failure_reason())
    target = build_dir / COMPDB_FILE_NAME
    write_text(target, output.stdout)
    logger.debug("Wrote compilation database %s", target)
    return target


def run_ninja(build_dir: Path, *, threads: int | None = None, ninja: str = DEFAULT_NINJA) -> None:
    """Run Ninja in ``build_dir``, streaming its output.

    Parameters
    ----------
    build_dir
        Directory holding ``build.ninja``.
    threads
        Parallel jobs; defaults to the CPU count.
    ninja
        Ninja executable.

    Raises
    ------
    ExecutorInvocationFailedError
        Raised when Ninja cannot be started or exits unsuccessfully.
    """
    jobs = threads if threads is not None else (os.cpu_count() or 1)
    args = [ninja, "-j", str(jobs)]
    with stage_span(
        "yabt.build.execute",
        stage="execute",
        scope_name=SCOPE_BUILD,
        attributes={"yabt.build_dir": str(build_dir), "yabt.jobs": jobs},
    ):
        try:
            output = run_process(args, cwd=build_dir, capture=False)
        except OSError as exc:
            msg = f"could not be started: {exc}"
            raise ExecutorInvocationFailedError(" ".join(args), msg) from exc
        if not output.ok:
            raise ExecutorInvocationFailedError(output.command, output.failure_reason())


__all__ = [
    "DEFAULT_NINJA",
    "BuildOutcome",
    "construct_engine",
    "find_build_files",
    "generate_build_files",
    "invoke_build_targets",
    "invoke_rule_initializers",
    "orchestrate_build",
    "prepare_engine",
    "run_ninja",
    "write_compdb",
]
