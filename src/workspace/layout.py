"""Workspace discovery and opening of an already synchronized module set."""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING

from core.errors import NotAModuleError, WorkspaceRootNotFoundError
from workspace.constants import BUILD_DIR_NAME, DEPS_DIR_NAME, MODULE_FILE_NAME
from workspace.module import Module, open_module
from workspace.module_file import load_module_file

if TYPE_CHECKING:
    from collections.abc import Callable

    from workspace.module_file import ModuleFile

logger = logging.getLogger(__name__)


def get_workspace_root(start: Path | None = None) -> Path:
    """Return the nearest ancestor directory holding a ``MODULE.lua``.

    Parameters
    ----------
    start
        Directory to start from; defaults to the current directory.

    Returns
    -------
    Path
        Absolute workspace root.

    Raises
    ------
    WorkspaceRootNotFoundError
        Raised when no ancestor carries a module file.
    """
    origin = (Path(start) if start is not None else Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if (candidate / MODULE_FILE_NAME).is_file():
            return candidate
    raise WorkspaceRootNotFoundError(str(origin), MODULE_FILE_NAME)


def default_build_dir(workspace_root: Path, build_dir: Path | str | None = None) -> Path:
    """Return the absolute build directory.

    Returns
    -------
    Path
        ``build_dir`` made absolute, or ``<workspace>/build``.
    """
    if build_dir is None or str(build_dir) == "":
        return (Path(workspace_root) / BUILD_DIR_NAME).absolute()
    return Path(build_dir).absolute()


def open_workspace(
    workspace_root: Path,
    *,
    manifest_loader: Callable[[Path], ModuleFile] = load_module_file,
    opener: Callable[[Path], Module] = open_module,
) -> list[Module]:
    """Open the root module and every dependency already present in ``DEPS``.

    Walks the manifests breadth-first like ``sync`` does, but never fetches
    or checks out anything.

    Parameters
    ----------
    workspace_root
        Directory holding the root ``MODULE.lua``.
    manifest_loader
        Module file loader.
    opener
        Opens an existing checkout.

    Returns
    -------
    list[Module]
        Root module first, then dependencies in discovery order.

    Raises
    ------
    NotAModuleError
        Raised when a declared dependency has not been synchronized.
    """
    root = Path(workspace_root)
    deps_dir = root / DEPS_DIR_NAME
    modules = [opener(root)]
    seen: set[str] = set()

    queue: deque[Path] = deque([root])
    while queue:
        modfile = manifest_loader(queue.popleft() / MODULE_FILE_NAME)
        for dep_name in modfile.deps:
            if dep_name in seen:
                continue
            seen.add(dep_name)
            dep_dir = deps_dir / dep_name
            try:
                module = opener(dep_dir)
            except NotAModuleError as exc:
                raise NotAModuleError(
                    str(dep_dir), f"dependency {dep_name} is not synced; run `yabt sync`"
                ) from exc
            logger.debug("Opened dependency %s at %s", dep_name, dep_dir)
            modules.append(module)
            queue.append(dep_dir)
    return modules


__all__ = ["default_build_dir", "get_workspace_root", "open_workspace"]
