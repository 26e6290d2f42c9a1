"""Version reporting for the yabt CLI."""

from __future__ import annotations

import platform
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from serde_msgspec import dumps_json


def get_version() -> str:
    """Get the yabt package version string.

    Returns
    -------
    str
        Version string, or "0.0.0-dev" if not installed.
    """
    return _package_version("yabt") or "0.0.0-dev"


def get_version_info() -> dict[str, object]:
    """Get detailed version information.

    Returns
    -------
    dict[str, object]
        Structured version payload.
    """
    return {
        "yabt": get_version(),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "lua": _lua_version(),
        "dependencies": {
            "cyclopts": _package_version("cyclopts"),
            "lupa": _package_version("lupa"),
            "msgspec": _package_version("msgspec"),
            "rich": _package_version("rich"),
        },
    }


def version_command() -> int:
    """Show version and runtime information.

    Returns
    -------
    int
        Exit status code.
    """
    payload = dumps_json(get_version_info(), pretty=True)
    sys.stdout.write(payload.decode("utf-8") + "\n")
    return 0


def _lua_version() -> str | None:
    from lupa.lua54 import LuaRuntime

    return str(LuaRuntime().lua_implementation)


def _package_version(name: str) -> str | None:
    try:
        return pkg_version(name)
    except PackageNotFoundError:
        return None


__all__ = ["get_version", "get_version_info", "version_command"]
