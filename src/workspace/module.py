"""Module handles backed by version-controlled checkouts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from core.errors import NotAModuleError
from workspace.constants import RULES_DIR_NAME, SRC_DIR_NAME


class Module(ABC):
    """On-disk checkout of one dependency unit.

    Subclasses implement one version-control backend each. A module can only
    be constructed for a directory carrying that backend's metadata marker.
    """

    type_tag: ClassVar[str]
    marker: ClassVar[str]

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        """Return the logical module name (its directory name).

        Returns
        -------
        str
            Module name.
        """
        return self._path.name

    @property
    def disk_path(self) -> Path:
        """Return the checkout directory.

        Returns
        -------
        Path
            Module root on disk.
        """
        return self._path

    @property
    def src_dir(self) -> Path:
        """Return the directory searched for build description files.

        Returns
        -------
        Path
            ``<module>/src`` (may not exist).
        """
        return self._path / SRC_DIR_NAME

    @property
    def rules_dir(self) -> Path | None:
        """Return the rules directory when the module ships one.

        Returns
        -------
        Path | None
            ``<module>/rules`` or ``None`` when absent.
        """
        rules = self._path / RULES_DIR_NAME
        return rules if rules.is_dir() else None

    @classmethod
    def detect(cls, path: Path) -> bool:
        """Return whether ``path`` carries this backend's marker.

        Returns
        -------
        bool
            True when the metadata marker exists.
        """
        return (Path(path) / cls.marker).exists()

    @classmethod
    @abstractmethod
    def open(cls, path: Path) -> Module:
        """Open an existing checkout."""

    @classmethod
    @abstractmethod
    def open_or_fetch(cls, path: Path, url: str, pin: str) -> Module:
        """Open an existing checkout or fetch it from ``url``."""

    @abstractmethod
    def head(self) -> str:
        """Return the commit identifier currently checked out."""

    @abstractmethod
    def fetch(self) -> None:
        """Retrieve all remote refs and tags."""

    @abstractmethod
    def is_ancestor(self, ancestor: str, revision: str) -> bool:
        """Return whether ``ancestor`` is reachable from ``revision``."""

    @abstractmethod
    def checkout(self, revision: str) -> None:
        """Switch the working tree to ``revision``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._path)!r})"


_BACKENDS: dict[str, type[Module]] = {}


def register_backend(backend: type[Module]) -> type[Module]:
    """Register a module backend under its type tag.

    Parameters
    ----------
    backend
        Module subclass to register.

    Returns
    -------
    type[Module]
        The backend, so this can be used as a class decorator.
    """
    _BACKENDS[backend.type_tag] = backend
    return backend


def module_backends() -> dict[str, type[Module]]:
    """Return the registered backends keyed by type tag.

    Returns
    -------
    dict[str, type[Module]]
        Copy of the backend table.
    """
    _load_builtin_backends()
    return dict(_BACKENDS)


def infer_module_type(url: str, module_type: str = "") -> str | None:
    """Resolve a dependency's backend tag, inferring it from the URL suffix.

    Parameters
    ----------
    url
        Dependency source URL.
    module_type
        Declared type tag; empty when unset.

    Returns
    -------
    str | None
        Backend tag, or ``None`` when it cannot be determined.
    """
    if module_type:
        return module_type
    for tag in module_backends():
        if url.endswith(f".{tag}"):
            return tag
    return None


def open_module(path: Path) -> Module:
    """Open the module checked out at ``path``.

    Parameters
    ----------
    path
        Module root directory.

    Returns
    -------
    Module
        Handle for the detected backend.

    Raises
    ------
    NotAModuleError
        Raised when no backend recognizes the directory.
    """
    for backend in module_backends().values():
        if backend.detect(path):
            return backend.open(path)
    raise NotAModuleError(str(path))


def open_or_fetch_module(path: Path, url: str, module_type: str, pin: str) -> Module:
    """Open the module at ``path`` or fetch it from ``url`` first.

    Parameters
    ----------
    path
        Checkout directory.
    url
        Source URL used when the checkout is missing.
    module_type
        Declared backend tag (inferred from ``url`` when empty).
    pin
        Declared content hash, forwarded to the backend.

    Returns
    -------
    Module
        Opened or freshly fetched module.

    Raises
    ------
    NotAModuleError
        Raised when the backend cannot be determined.
    """
    tag = infer_module_type(url, module_type)
    backend = module_backends().get(tag) if tag is not None else None
    if backend is None:
        raise NotAModuleError(url, "unknown module type")
    return backend.open_or_fetch(path, url, pin)


def _load_builtin_backends() -> None:
    # Registers GitModule on first import.
    import workspace.git_module  # noqa: F401, PLC0415


__all__ = [
    "Module",
    "infer_module_type",
    "module_backends",
    "open_module",
    "open_or_fetch_module",
    "register_backend",
]
