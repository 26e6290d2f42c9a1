"""Breadth-first dependency resolution and pinning."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from core.errors import (
    PinConflictError,
    UnpinnedDependencyInStrictModeError,
    UnreachablePinError,
    VcsCommandFailedError,
)
from obs.logging import log_indent, log_verbose
from obs.tracing import SCOPE_WORKSPACE, stage_span
from workspace.constants import DEPS_DIR_NAME, MODULE_FILE_NAME
from workspace.module import Module, open_module, open_or_fetch_module
from workspace.module_file import DependencyDefinition, ModuleFile, load_module_file

if TYPE_CHECKING:
    from collections.abc import Callable

    ModuleOpener = Callable[[Path, str, str, str], Module]
    ManifestLoader = Callable[[Path], ModuleFile]

logger = logging.getLogger(__name__)

PinSet = dict[str, str]


@dataclass(frozen=True)
class _Pin:
    """Resolved commit plus the pin declared by the first manifest."""

    commit: str
    declared: str

    def matches(self, declared: str) -> bool:
        if declared == self.declared:
            return True
        # An abbreviated hash identifies the same commit.
        return bool(declared) and self.commit.startswith(declared)


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of one resolution pass.

    Parameters
    ----------
    modules
        Root module followed by every dependency in discovery order.
    pins
        Dependency name to resolved commit identifier.
    """

    modules: tuple[Module, ...]
    pins: PinSet = field(default_factory=dict)


class DependencyResolver:
    """Fetch, pin and validate the dependency graph of a workspace.

    Traversal is breadth-first from the workspace root. Every dependency name
    is processed once; later declarations of an already pinned name must
    declare the same pin, which keeps a single flattened dependency set.

    Parameters
    ----------
    workspace_root
        Directory holding the root ``MODULE.lua``.
    strict
        Refuse dependencies without a declared hash.
    module_opener
        Backend entry point used to open or fetch dependency checkouts.
    manifest_loader
        Module file loader.
    root_opener
        Opens the workspace root module.
    """

    def __init__(
        self,
        workspace_root: Path,
        *,
        strict: bool = False,
        module_opener: ModuleOpener = open_or_fetch_module,
        manifest_loader: ManifestLoader = load_module_file,
        root_opener: Callable[[Path], Module] = open_module,
    ) -> None:
        self._root = Path(workspace_root)
        self._strict = strict
        self._open_or_fetch = module_opener
        self._load_manifest = manifest_loader
        self._open_root = root_opener

    @property
    def deps_dir(self) -> Path:
        """Return the dependency store directory.

        Returns
        -------
        Path
            ``<workspace>/DEPS``.
        """
        return self._root / DEPS_DIR_NAME

    def resolve(self) -> ResolveResult:
        """Walk the module graph and pin every dependency.

        Returns
        -------
        ResolveResult
            Discovered modules and the final pin set.
        """
        modules: list[Module] = [self._open_root(self._root)]
        pins: dict[str, _Pin] = {}
        log_verbose(logger, "Found workspace root at %s", self._root)

        queue: deque[Path] = deque([self._root])
        while queue:
            module_dir = queue.popleft()
            modfile_path = module_dir / MODULE_FILE_NAME
            logger.debug("Reading module file at %s", modfile_path)
            modfile = self._load_manifest(modfile_path)

            with log_indent():
                logger.debug("Processing dependencies of %s", modfile.name)
                for dep_name, dep in modfile.deps.items():
                    with log_indent():
                        module = self._visit(dep_name, dep, dependent=modfile.name, pins=pins)
                    if module is not None:
                        modules.append(module)
                        queue.append(module.disk_path)

        return ResolveResult(
            modules=tuple(modules),
            pins={name: pin.commit for name, pin in pins.items()},
        )

    def _visit(
        self,
        dep_name: str,
        dep: DependencyDefinition,
        *,
        dependent: str,
        pins: dict[str, _Pin],
    ) -> Module | None:
        logger.debug("Processing %s", dep_name)
        dep_dir = self.deps_dir / dep_name
        module = self._open_or_fetch(dep_dir, dep.url, dep.type, dep.hash)

        if self._strict and not dep.pinned:
            raise UnpinnedDependencyInStrictModeError(dep_name, dependent)

        existing = pins.get(dep_name)
        if existing is not None:
            if not existing.matches(dep.hash):
                raise PinConflictError(dep_name, expected=dep.hash, actual=existing.commit)
            logger.debug("%s already pinned to %s", dep_name, existing.commit)
            return None

        module.fetch()
        if dep.pinned:
            self._check_reachable(module, dep_name, dep)

        target_revision = dep.target_revision
        head = module.head()
        if head != target_revision:
            logger.debug(
                "Current head for %s is at %s. Checking out %s", dep_name, head, target_revision
            )
            module.checkout(target_revision)
            target_revision = module.head()

        pins[dep_name] = _Pin(commit=target_revision, declared=dep.hash)
        logger.debug("Pinning dependency %s to %s", dep_name, target_revision)
        return module

    @staticmethod
    def _check_reachable(module: Module, dep_name: str, dep: DependencyDefinition) -> None:
        try:
            reachable = module.is_ancestor(dep.hash, dep.version)
        except VcsCommandFailedError as exc:
            logger.debug("Ancestry check for %s failed: %s", dep_name, exc)
            reachable = False
        if not reachable:
            raise UnreachablePinError(dep_name, dep.hash, dep.version)


def sync_workspace(workspace_root: Path, *, strict: bool = False) -> ResolveResult:
    """Resolve, fetch and pin every dependency of a workspace.

    Parameters
    ----------
    workspace_root
        Directory holding the root ``MODULE.lua``.
    strict
        Require every dependency to declare a hash.

    Returns
    -------
    ResolveResult
        Discovered modules and pins.
    """
    with stage_span(
        "yabt.workspace.sync",
        stage="sync",
        scope_name=SCOPE_WORKSPACE,
        attributes={"yabt.workspace_root": str(workspace_root), "yabt.strict": strict},
    ) as span:
        result = DependencyResolver(workspace_root, strict=strict).resolve()
        span.set_attribute("yabt.module_count", len(result.modules))
    for name, commit in result.pins.items():
        logger.info("%s pinned at %s", name, commit)
    return result


__all__ = ["DependencyResolver", "PinSet", "ResolveResult", "sync_workspace"]
