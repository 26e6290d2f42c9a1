"""Serialize a build graph to a Ninja build file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from utils.file_io import write_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from buildgraph.types import BuildGraph

logger = logging.getLogger(__name__)

INDENT = "    "
ANONYMOUS_RULE_PREFIX = "step"


def escape_path(path: str) -> str:
    """Escape a path for use in a ``build`` line.

    Parameters
    ----------
    path
        Input or output path.

    Returns
    -------
    str
        Path with ``$``, space, ``:`` and newline escaped for Ninja.
    """
    return (
        path.replace("$", "$$").replace(" ", "$ ").replace(":", "$:").replace("\n", "$\n")
    )


def anonymous_rule_name(index: int) -> str:
    """Return the synthesized rule name of the ``index``-th anonymous step.

    Returns
    -------
    str
        ``step<index>``.
    """
    return f"{ANONYMOUS_RULE_PREFIX}{index}"


class NinjaWriter:
    """Accumulate Ninja declarations as lines."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def variable(self, key: str, value: str, *, indent: bool = True) -> None:
        """Emit ``key = value``; empty keys and values are skipped."""
        if not key or not value:
            return
        prefix = INDENT if indent else ""
        self._lines.append(f"{prefix}{key} = {value}")

    def rule(
        self,
        name: str,
        command: str,
        description: str = "",
        variables: Mapping[str, str] | None = None,
    ) -> None:
        """Emit a ``rule`` block."""
        self._lines.append(f"rule {name}")
        self.variable("command", command)
        self.variable("description", description)
        for key, value in (variables or {}).items():
            self.variable(key, value)

    def build(
        self,
        outputs: Iterable[str],
        rule: str,
        inputs: Iterable[str] = (),
        variables: Mapping[str, str] | None = None,
    ) -> None:
        """Emit a ``build`` statement with its indented variables."""
        outs = " ".join(escape_path(path) for path in outputs)
        line = f"build {outs} : {rule}"
        ins = " ".join(escape_path(path) for path in inputs)
        if ins:
            line = f"{line} {ins}"
        self._lines.append(line)
        for key, value in (variables or {}).items():
            self.variable(key, value)

    def text(self) -> str:
        """Return the accumulated file contents.

        Returns
        -------
        str
            Newline-terminated Ninja source.
        """
        return "".join(f"{line}\n" for line in self._lines)


def render_ninja(graph: BuildGraph) -> str:
    """Render ``graph`` as Ninja source.

    Anonymous steps get one synthesized rule each, named after their position
    in the step sequence. Named rules follow in registration order, then one
    ``build`` statement per step.

    Parameters
    ----------
    graph
        Collected build graph.

    Returns
    -------
    str
        Ninja file contents.
    """
    writer = NinjaWriter()
    for index, step in enumerate(graph.steps):
        writer.rule(anonymous_rule_name(index), step.cmd, step.descr)
    for rule in graph.rules.values():
        writer.rule(rule.name, rule.cmd, rule.descr, rule.variables)

    for index, step in enumerate(graph.steps):
        writer.build(step.outs, anonymous_rule_name(index), step.ins)
    for step in graph.steps_with_rule:
        writer.build(step.outs, step.rule_name, step.ins, step.variables)
    return writer.text()


def write_ninja_file(path: Path, graph: BuildGraph) -> Path:
    """Write ``graph`` to ``path``, creating parent directories.

    Parameters
    ----------
    path
        Destination, normally ``<build_dir>/build.ninja``.
    graph
        Collected build graph.

    Returns
    -------
    Path
        The written file.
    """
    target = Path(path)
    write_text(target, render_ninja(graph))
    logger.debug(
        "Wrote %s with %d rules and %d build statements",
        target,
        len(graph.rules) + len(graph.steps),
        len(graph.steps) + len(graph.steps_with_rule),
    )
    return target


__all__ = [
    "NinjaWriter",
    "anonymous_rule_name",
    "escape_path",
    "render_ninja",
    "write_ninja_file",
]
