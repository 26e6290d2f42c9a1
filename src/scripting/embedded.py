"""Lua sources shipped with the package."""

from __future__ import annotations

from functools import cache
from importlib import resources

_LUA_PACKAGE = "scripting"
_LUA_ROOT = "lua"
RUNTIME_SCRIPT = "runtime.lua"

# Preloaded module name -> file under ``scripting/lua``.
EMBEDDED_LUA_MODULES: dict[str, str] = {
    "yabt.core.utils": "yabt/core/utils.lua",
    "yabt.core.path": "yabt/core/path.lua",
    "yabt.core.context": "yabt/core/context.lua",
}


def _read(relative: str) -> str:
    resource = resources.files(_LUA_PACKAGE).joinpath(_LUA_ROOT)
    for part in relative.split("/"):
        resource = resource.joinpath(part)
    return resource.read_text(encoding="utf-8")


@cache
def runtime_source() -> str:
    """Return the bootstrap script run around module registration.

    Returns
    -------
    str
        Lua source of ``runtime.lua``.
    """
    return _read(RUNTIME_SCRIPT)


@cache
def embedded_lua_modules() -> dict[str, str]:
    """Return the library modules installed into ``package.preload``.

    Returns
    -------
    dict[str, str]
        Module name to Lua source.
    """
    return {name: _read(relative) for name, relative in EMBEDDED_LUA_MODULES.items()}


__all__ = ["EMBEDDED_LUA_MODULES", "RUNTIME_SCRIPT", "embedded_lua_modules", "runtime_source"]
