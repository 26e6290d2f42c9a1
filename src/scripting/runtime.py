"""Embedded Lua host used for module files and build scripts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lupa.lua54 import LuaError, LuaRuntime

from core.errors import ScriptExecutionError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

logger = logging.getLogger(__name__)

_LOAD_FULL = "function(src, name) return load(src, name, 't') end"
_LOAD_SANDBOXED = """
local load = load
return function(src, name) return load(src, name, 't', {}) end
"""
# Strings share one metatable whose __index is the string library; clearing it
# keeps method calls such as ("x"):rep(n) out of sandboxed chunks.
_STRIP_LIBRARIES = """
local env = _G
debug.setmetatable("", nil)
for name in pairs(env) do
    env[name] = nil
end
"""


class ScriptRuntime:
    """One Lua interpreter instance.

    A full runtime opens the Lua standard library and exposes ``package``
    for ``require``. A sandboxed runtime evaluates every chunk in an empty
    environment, removes every library global and detaches the string
    metatable, so scripts see no standard library (not even through string
    methods) and no native callbacks. It is meant for declarative files such
    as ``MODULE.lua``.

    The interpreter is not reentrant and must not be shared across concurrent
    graph constructions.
    """

    def __init__(self, *, sandboxed: bool = False) -> None:
        self._sandboxed = sandboxed
        self._lua = LuaRuntime(
            unpack_returned_tuples=True,
            register_eval=False,
            register_builtins=False,
        )
        # The python bridge table is never part of the scripting surface.
        self._lua.execute("python = nil")
        if sandboxed:
            self._loader = self._lua.execute(_LOAD_SANDBOXED)
            self._lua.execute(_STRIP_LIBRARIES)
        else:
            self._loader = self._lua.eval(_LOAD_FULL)

    @classmethod
    def sandboxed(cls) -> ScriptRuntime:
        """Create a library-free runtime for manifest evaluation.

        Returns
        -------
        ScriptRuntime
            Runtime whose chunks run in an empty environment.
        """
        return cls(sandboxed=True)

    @property
    def is_sandboxed(self) -> bool:
        """Return whether chunks run in an empty environment.

        Returns
        -------
        bool
            True for the manifest runtime.
        """
        return self._sandboxed

    @property
    def lua(self) -> LuaRuntime:
        """Return the underlying interpreter.

        Returns
        -------
        LuaRuntime
            The lupa runtime instance.
        """
        return self._lua

    def table(self) -> Any:
        """Create an empty Lua table.

        Returns
        -------
        object
            New Lua table.
        """
        return self._lua.table()

    def set_global(self, name: str, value: object) -> None:
        """Bind ``value`` to the global ``name``."""
        self._lua.globals()[name] = value

    def get_global(self, name: str) -> object:
        """Return the global bound to ``name`` (``None`` for nil).

        Returns
        -------
        object
            Global value.
        """
        return self._lua.globals()[name]

    def register_native(self, name: str, functions: Mapping[str, Callable[..., object]]) -> None:
        """Expose host callables to scripts as the global table ``name``.

        Parameters
        ----------
        name
            Global table name.
        functions
            Mapping of Lua-visible function names to host callables.
        """
        table = self._lua.table()
        for function_name, function in functions.items():
            table[function_name] = function
        self.set_global(name, table)

    def set_package_path(self, paths: Sequence[str]) -> None:
        """Set ``package.path`` to the ``;``-joined search templates."""
        self._package()["path"] = ";".join(paths)

    def set_package_cpath(self, paths: Sequence[str]) -> None:
        """Set ``package.cpath`` to the ``;``-joined search templates."""
        self._package()["cpath"] = ";".join(paths)

    def add_preload(self, module_name: str, source: str) -> None:
        """Make ``require(module_name)`` evaluate ``source``.

        Raises
        ------
        ScriptExecutionError
            Raised when ``source`` does not compile.
        """
        chunk = self._compile(source, f"=[yabt] {module_name}")
        self._package()["preload"][module_name] = chunk

    def exec_string(self, source: str, *, chunk_name: str = "=(string)") -> object:
        """Compile and run a chunk.

        Parameters
        ----------
        source
            Lua source code.
        chunk_name
            Name reported in Lua diagnostics.

        Returns
        -------
        object
            Value returned by the chunk (a tuple for multiple values).
        """
        chunk = self._compile(source, chunk_name)
        return self._call(chunk, chunk_name)

    def exec_file(self, path: Path) -> object:
        """Compile and run a script file.

        Parameters
        ----------
        path
            Script to execute.

        Returns
        -------
        object
            Value returned by the script.

        Raises
        ------
        ScriptExecutionError
            Raised when the file cannot be read or the script fails.
        """
        try:
            source = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ScriptExecutionError(str(path), str(exc)) from exc
        logger.debug("Executing %s", path)
        return self.exec_string(source, chunk_name=f"@{path}")

    def _compile(self, source: str, chunk_name: str) -> Any:
        result = self._loader(source, chunk_name)
        if isinstance(result, tuple):
            chunk, error = (result + (None, None))[:2]
        else:
            chunk, error = result, None
        if chunk is None:
            raise ScriptExecutionError(chunk_name.lstrip("@="), str(error))
        return chunk

    def _call(self, chunk: Any, chunk_name: str) -> object:
        try:
            return chunk()
        except LuaError as exc:
            # Host errors raised inside callbacks are re-raised by lupa as the
            # original exception and never reach this handler.
            raise ScriptExecutionError(chunk_name.lstrip("@="), str(exc)) from exc

    def _package(self) -> Any:
        if self._sandboxed:
            msg = "Sandboxed runtimes have no package library."
            raise RuntimeError(msg)
        return self._lua.globals()["package"]


__all__ = ["ScriptRuntime"]
