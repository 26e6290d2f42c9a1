"""Error taxonomy shared by the resolver, the script engine and the CLI."""

from __future__ import annotations


class YabtError(Exception):
    """Base error for every failure surfaced to the CLI."""

    exit_code: int = 1


class WorkspaceRootNotFoundError(YabtError):
    """Raised when no ancestor of the working directory holds a module file."""

    exit_code: int = 5

    def __init__(self, start: str, module_file_name: str) -> None:
        msg = (
            f"Could not find workspace root from {start}. Are you sure your "
            f"directory tree contains a {module_file_name} file?"
        )
        super().__init__(msg)


class NotAModuleError(YabtError):
    """Raised when a directory has no recognized VCS metadata."""

    exit_code: int = 5

    def __init__(self, path: str, detail: str | None = None) -> None:
        self.path = path
        msg = f"Could not detect module type for: {path}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class VcsCommandFailedError(YabtError):
    """Raised when a VCS subprocess exits abnormally."""

    exit_code: int = 10

    def __init__(self, command: str, reason: str, stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        msg = f"{command!r} {reason}\nstderr: {stderr}"
        super().__init__(msg)


class FetchFailedError(YabtError):
    """Raised when cloning a dependency module fails."""

    exit_code: int = 10

    def __init__(self, url: str, stderr: str) -> None:
        self.url = url
        self.stderr = stderr
        msg = f"Error fetching module {url}\nstderr: {stderr}"
        super().__init__(msg)


class UnreachablePinError(YabtError):
    """Raised when a pinned hash is not an ancestor of its version ref."""

    exit_code: int = 11

    def __init__(self, name: str, pin: str, version: str) -> None:
        self.name = name
        self.pin = pin
        self.version = version
        msg = (
            f"Dependency {name} has a hash: {pin} that is not an ancestor "
            f"of its version: {version}"
        )
        super().__init__(msg)


class UnpinnedDependencyInStrictModeError(YabtError):
    """Raised when strict sync meets a dependency without a hash."""

    exit_code: int = 11

    def __init__(self, name: str, dependent: str) -> None:
        self.name = name
        self.dependent = dependent
        msg = (
            f"Dependency {name} of {dependent} is not pinned. "
            "Refusing to sync in strict mode."
        )
        super().__init__(msg)


class PinConflictError(YabtError):
    """Raised when two manifests pin the same dependency differently."""

    exit_code: int = 11

    def __init__(self, name: str, expected: str, actual: str) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        msg = f"Dependency {name} requires hash {expected!r}, but it has been pinned to {actual!r}"
        super().__init__(msg)


class ManifestParseError(YabtError):
    """Raised when a module file cannot be evaluated or decoded."""

    exit_code: int = 4

    def __init__(self, path: str, diagnostic: str) -> None:
        self.path = path
        self.diagnostic = diagnostic
        msg = f"Error loading module file {path}: {diagnostic}"
        super().__init__(msg)


class ManifestValidationError(YabtError):
    """Raised when a decoded module file breaks a schema rule."""

    exit_code: int = 4


class TypeMismatchError(YabtError, TypeError):
    """Raised when a script value does not match the expected host type."""

    exit_code: int = 12

    def __init__(self, expected: str, actual_type: str, path: str = "$") -> None:
        self.expected = expected
        self.actual_type = actual_type
        self.path = path
        msg = f"Deserializing {expected} at {path}, but found type: {actual_type}"
        super().__init__(msg)


class MissingOutputError(YabtError, ValueError):
    """Raised when a build step is registered without outputs."""

    exit_code: int = 12


class ScriptExecutionError(YabtError):
    """Raised when a Lua script fails outside of a native callback."""

    exit_code: int = 12

    def __init__(self, source: str, diagnostic: str) -> None:
        self.source = source
        self.diagnostic = diagnostic
        msg = f"failed to run {source}: {diagnostic}"
        super().__init__(msg)


class ExecutorInvocationFailedError(YabtError):
    """Raised when the low-level build executor fails."""

    exit_code: int = 13

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        msg = f"{command!r} {reason}"
        super().__init__(msg)


__all__ = [
    "ExecutorInvocationFailedError",
    "FetchFailedError",
    "ManifestParseError",
    "ManifestValidationError",
    "MissingOutputError",
    "NotAModuleError",
    "PinConflictError",
    "ScriptExecutionError",
    "TypeMismatchError",
    "UnpinnedDependencyInStrictModeError",
    "UnreachablePinError",
    "VcsCommandFailedError",
    "WorkspaceRootNotFoundError",
    "YabtError",
]
