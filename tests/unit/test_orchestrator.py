"""Tests for the build pipeline over an on-disk workspace."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildgraph.orchestrator import (
    construct_engine,
    find_build_files,
    generate_build_files,
    orchestrate_build,
    run_ninja,
    write_compdb,
)
from core.errors import ExecutorInvocationFailedError, NotAModuleError, ScriptExecutionError
from tests.test_helpers.workspaces import make_module_dir, manifest, write_file
from workspace.git_module import GitModule

_CC_RULES = """
local context = require("yabt.core.context")
local cc = {}

function cc.object(src)
  local out = context.output_dir() .. "/" .. (src:gsub("%.c$", ".o"))
  yabt_native.add_build_step_with_rule(
    { name = "cc", cmd = CC .. " -c $in -o $out", compdb = true },
    { outs = { out }, ins = { context.source_dir() .. "/" .. src }, ruleName = "cc" }
  )
  return out
end

return cc
"""


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Lay out a root module ``app`` depending on a synced module ``lib``.

    Returns
    -------
    Path
        Workspace root.
    """
    root = make_module_dir(
        tmp_path.resolve() / "app",
        manifest("app", "lib = { url = 'https://example.com/lib.git', version = 'main' }"),
    )
    write_file(root / "src" / "BUILD.lua", 'require("cc").object("main.c")\n')
    write_file(
        root / "src" / "sub" / "BUILD.lua",
        'yabt_native.add_build_step({ outs = { OUTPUT_DIR .. "/stamp" }, cmd = "touch $out" })\n',
    )

    lib = make_module_dir(root / "DEPS" / "lib", manifest("lib"))
    write_file(lib / "rules" / "INIT.lua", 'CC = "gcc"\n')
    write_file(lib / "rules" / "cc.lua", _CC_RULES)
    write_file(lib / "src" / "BUILD.lua", 'require("cc").object("lib.c")\n')
    return root


def test_find_build_files(workspace: Path) -> None:
    """Ensure build directories are listed relative to src, root first."""
    assert find_build_files(GitModule.open(workspace)) == [".", "sub"]


def test_orchestrate_build_collects_all_modules(workspace: Path) -> None:
    """Ensure every module's build files run with rules from any module."""
    build = workspace / "build"
    graph = orchestrate_build(workspace, build)

    assert list(graph.rules) == ["cc"]
    assert graph.rules["cc"].cmd == "gcc -c $in -o $out"
    assert graph.targets() == [
        str(build / "stamp"),
        str(build / "main.o"),
        str(build / "DEPS" / "lib" / "lib.o"),
    ]
    lib_step = graph.steps_with_rule[1]
    assert lib_step.ins == (str(workspace / "DEPS" / "lib" / "src" / "lib.c"),)
    assert graph.compdb_rules() == ["cc"]


def test_module_without_src_is_skipped(workspace: Path) -> None:
    """Ensure modules without a src directory contribute no build files."""
    for build_file in (workspace / "DEPS" / "lib" / "src").iterdir():
        build_file.unlink()
    (workspace / "DEPS" / "lib" / "src").rmdir()

    engine = construct_engine(workspace, workspace / "build")

    assert engine.exec_string("return modules.lib") is None
    assert len(engine.all_targets()) == 2


def test_unsynced_dependency_fails(tmp_path: Path) -> None:
    """Ensure building requires dependencies to be present."""
    root = make_module_dir(
        tmp_path / "app",
        manifest("app", "lib = { url = 'https://example.com/lib.git', version = 'main' }"),
    )
    with pytest.raises(NotAModuleError, match="yabt sync"):
        orchestrate_build(root, root / "build")


def test_failing_build_file_is_reported(workspace: Path) -> None:
    """Ensure Lua errors in build files abort graph construction."""
    write_file(workspace / "src" / "BUILD.lua", "error('broken build file')\n")
    with pytest.raises(ScriptExecutionError, match="broken build file"):
        orchestrate_build(workspace, workspace / "build")


def _fake_ninja(tmp_path: Path, body: str) -> str:
    script = write_file(tmp_path / "fake-ninja", f"#!/bin/sh\n{body}\n")
    script.chmod(0o755)
    return str(script)


def test_generate_build_files_writes_outputs(workspace: Path, tmp_path: Path) -> None:
    """Ensure build.ninja and the compilation database are written."""
    ninja = _fake_ninja(tmp_path, "echo '[]'")

    outcome = generate_build_files(workspace / "src" / "sub", ninja=ninja)

    assert outcome.ninja_file == workspace / "build" / "build.ninja"
    text = outcome.ninja_file.read_text(encoding="utf-8")
    assert text.startswith("rule step0\n")
    assert f"build {workspace}/build/main.o : cc {workspace}/src/main.c\n" in text
    assert outcome.compdb_file == workspace / "build" / "compile_commands.json"
    assert outcome.compdb_file.read_text(encoding="utf-8") == "[]\n"


def test_generate_build_files_custom_build_dir(workspace: Path, tmp_path: Path) -> None:
    """Ensure the output root can be overridden."""
    ninja = _fake_ninja(tmp_path, "echo '[]'")
    out = tmp_path / "out"

    outcome = generate_build_files(workspace, build_dir=out, ninja=ninja)

    assert outcome.ninja_file == out / "build.ninja"
    assert str(out / "stamp") in outcome.graph.targets()


def test_write_compdb_failure(tmp_path: Path) -> None:
    """Ensure a failing Ninja invocation is reported."""
    ninja = _fake_ninja(tmp_path, "exit 3")
    with pytest.raises(ExecutorInvocationFailedError, match="exited with code 3"):
        write_compdb(tmp_path, ["cc"], ninja=ninja)


def test_run_ninja(tmp_path: Path) -> None:
    """Ensure Ninja is invoked with a job count and failures are raised."""
    log = tmp_path / "args.txt"
    ok = _fake_ninja(tmp_path, f'echo "$@" > {log}')
    run_ninja(tmp_path, threads=3, ninja=ok)
    assert log.read_text(encoding="utf-8") == "-j 3\n"

    with pytest.raises(ExecutorInvocationFailedError):
        run_ninja(tmp_path, ninja=str(tmp_path / "missing-ninja"))
