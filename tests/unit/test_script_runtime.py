"""Tests for the embedded Lua host."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import ScriptExecutionError
from scripting.runtime import ScriptRuntime


def test_exec_string_returns_chunk_value() -> None:
    """Ensure chunk return values reach the host."""
    runtime = ScriptRuntime()
    assert runtime.exec_string("return 1 + 2") == 3
    assert runtime.exec_string("return string.upper('x')") == "X"


def test_python_bridge_is_hidden() -> None:
    """Ensure scripts cannot reach the host interpreter."""
    runtime = ScriptRuntime()
    assert runtime.exec_string("return python") is None


def test_syntax_error_raises_script_error() -> None:
    """Ensure compile failures carry the chunk name."""
    runtime = ScriptRuntime()
    with pytest.raises(ScriptExecutionError) as excinfo:
        runtime.exec_string("return (", chunk_name="=broken.lua")
    assert excinfo.value.source == "broken.lua"


def test_runtime_error_raises_script_error() -> None:
    """Ensure Lua errors are wrapped."""
    runtime = ScriptRuntime()
    with pytest.raises(ScriptExecutionError, match="boom"):
        runtime.exec_string("error('boom')")


def test_host_errors_propagate_unchanged() -> None:
    """Ensure exceptions raised by native callbacks keep their type."""

    def fail() -> None:
        msg = "host failure"
        raise KeyError(msg)

    runtime = ScriptRuntime()
    runtime.register_native("native", {"fail": fail})
    with pytest.raises(KeyError, match="host failure"):
        runtime.exec_string("native.fail()")


def test_sandbox_has_no_standard_library() -> None:
    """Ensure sandboxed chunks see an empty environment."""
    runtime = ScriptRuntime.sandboxed()
    assert runtime.is_sandboxed
    assert runtime.exec_string("return string") is None
    assert runtime.exec_string("return require") is None
    with pytest.raises(ScriptExecutionError):
        runtime.exec_string("return string.format('%d', 1)")


def test_sandbox_detaches_string_methods() -> None:
    """Ensure string values carry no library metatable in a sandbox."""
    runtime = ScriptRuntime.sandboxed()
    assert runtime.exec_string('return #"abc"') == 3
    assert runtime.exec_string('return "a" .. "b"') == "ab"
    with pytest.raises(ScriptExecutionError, match="index a string value"):
        runtime.exec_string('return ("x"):rep(2)')
    with pytest.raises(ScriptExecutionError):
        runtime.exec_string('return ("%s"):format("app")')


def test_sandbox_strips_library_globals() -> None:
    """Ensure the interpreter globals hold no libraries after sandboxing."""
    runtime = ScriptRuntime.sandboxed()
    for name in ("string", "debug", "load", "require", "io", "os", "_G"):
        assert runtime.get_global(name) is None
    assert runtime.exec_string("return 40 + 2") == 42


def test_full_runtime_keeps_string_methods() -> None:
    """Ensure detaching string methods is limited to sandboxed runtimes."""
    ScriptRuntime.sandboxed()
    runtime = ScriptRuntime()
    assert runtime.exec_string('return ("x"):rep(3)') == "xxx"


def test_sandbox_has_no_package_library() -> None:
    """Ensure package manipulation is refused for sandboxed runtimes."""
    runtime = ScriptRuntime.sandboxed()
    with pytest.raises(RuntimeError):
        runtime.set_package_path(["./?.lua"])


def test_preload_is_required_by_name() -> None:
    """Ensure preloaded sources load through require."""
    runtime = ScriptRuntime()
    runtime.add_preload("greeting", "return { text = 'hello' }")
    assert runtime.exec_string("return require('greeting').text") == "hello"


def test_preload_with_bad_source_fails_eagerly() -> None:
    """Ensure preload sources are compiled when registered."""
    runtime = ScriptRuntime()
    with pytest.raises(ScriptExecutionError):
        runtime.add_preload("broken", "return {")


def test_package_path_is_searched(tmp_path: Path) -> None:
    """Ensure require finds modules through the configured search path."""
    (tmp_path / "helper.lua").write_text("return 42\n", encoding="utf-8")
    runtime = ScriptRuntime()
    runtime.set_package_path([f"{tmp_path}/?.lua"])
    assert runtime.exec_string("return require('helper')") == 42


def test_exec_file_missing_raises_script_error(tmp_path: Path) -> None:
    """Ensure unreadable scripts are reported as script failures."""
    runtime = ScriptRuntime()
    with pytest.raises(ScriptExecutionError):
        runtime.exec_file(tmp_path / "missing.lua")


def test_exec_file_runs_script(tmp_path: Path) -> None:
    """Ensure script files run and their errors name the file."""
    script = tmp_path / "BUILD.lua"
    script.write_text("value = 7\n", encoding="utf-8")
    runtime = ScriptRuntime()
    runtime.exec_file(script)
    assert runtime.get_global("value") == 7

    script.write_text("error('bad build')\n", encoding="utf-8")
    with pytest.raises(ScriptExecutionError) as excinfo:
        runtime.exec_file(script)
    assert excinfo.value.source == str(script)
