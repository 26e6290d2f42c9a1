"""Result action handler for Cyclopts integration."""

from __future__ import annotations

from typing import Any

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult


def cli_result_action(result: Any, *, console: Console | None = None) -> int:
    """Handle command results and convert to exit codes.

    This function is registered as the ``result_action`` for the CLI app.
    It normalizes different return types to integer exit codes.

    Parameters
    ----------
    result
        The return value from the command function.
    console
        Console receiving summaries; stdout by default.

    Returns
    -------
    int
        Exit code for the process.
    """
    console = console or Console(highlight=False)

    if result is None:
        return ExitCode.SUCCESS

    if isinstance(result, bool):
        return ExitCode.SUCCESS if result else ExitCode.GENERAL_ERROR

    if isinstance(result, int):
        return result

    if isinstance(result, CliResult):
        for line in result.lines:
            console.print(line, markup=False, soft_wrap=True)
        if result.summary:
            console.print(result.summary, markup=False)
        if result.artifacts:
            console.print("Artifacts:")
            for name, path in sorted(result.artifacts.items()):
                console.print(f"  {name}: {path}", markup=False)
        return int(result.exit_code)

    console.print(f"Unexpected command return type: {type(result).__name__} (value: {result!r})")
    return ExitCode.GENERAL_ERROR


__all__ = ["cli_result_action"]
