"""Shared help-panel groups for the yabt CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Logging and output options shared by every command.",
    sort_key=0,
)

output_group = Group(
    "Output",
    help="Configure the build directory.",
    sort_key=1,
)

execution_group = Group(
    "Execution",
    help="Control the Ninja invocation.",
    sort_key=2,
)

admin_group = Group(
    "Admin",
    help="Administrative commands and help.",
    sort_key=99,
)

__all__ = ["admin_group", "execution_group", "output_group", "session_group"]
