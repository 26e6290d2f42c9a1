"""Exit code taxonomy for the yabt CLI."""

from __future__ import annotations

from enum import IntEnum

from core.errors import YabtError


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    Exit codes follow Unix conventions with domain-specific extensions:
    - 0: Success
    - 1-9: General errors (parse, config, manifest, workspace)
    - 10-19: Pipeline stage errors
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    PARSE_ERROR = 2
    CONFIG_ERROR = 3
    MANIFEST_ERROR = 4
    WORKSPACE_ERROR = 5

    # Pipeline stage errors (10-19)
    VCS_ERROR = 10
    RESOLUTION_ERROR = 11
    SCRIPT_ERROR = 12
    EXECUTOR_ERROR = 13

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Map an exception to an appropriate exit code.

        Parameters
        ----------
        exc
            Exception to classify.

        Returns
        -------
        ExitCode
            Exit code appropriate for the exception type.
        """
        if isinstance(exc, YabtError):
            try:
                return cls(exc.exit_code)
            except ValueError:
                return cls.GENERAL_ERROR

        if exc.__class__.__module__.startswith("cyclopts"):
            return cls.PARSE_ERROR

        if isinstance(exc, (ValueError, TypeError)):
            return cls.CONFIG_ERROR
        return cls.GENERAL_ERROR


__all__ = ["ExitCode"]
