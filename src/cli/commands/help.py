"""Help command: show general or per-command help."""

from __future__ import annotations


def help_command(*command: str) -> int:
    """Show help for yabt or one of its commands.

    Parameters
    ----------
    command
        Command to describe; general help when omitted.

    Returns
    -------
    int
        Exit status code.
    """
    from cli.app import app

    app.help_print(list(command))
    return 0


__all__ = ["help_command"]
