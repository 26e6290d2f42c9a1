"""Tests for Ninja serialization."""

from __future__ import annotations

from pathlib import Path

from buildgraph.ninja_writer import (
    NinjaWriter,
    anonymous_rule_name,
    escape_path,
    render_ninja,
    write_ninja_file,
)
from buildgraph.types import BuildGraph, BuildRule, BuildStep, BuildStepWithRule


def _graph() -> BuildGraph:
    return BuildGraph(
        rules={
            "cc": BuildRule(name="cc", cmd="gcc -c $in -o $out", descr="CC $out", variables={"depfile": "$out.d"}),
            "ld": BuildRule(name="ld", cmd="gcc $in -o $out"),
        },
        steps=(
            BuildStep(outs=("gen.h",), ins=("gen.py",), cmd="python gen.py", descr="GEN"),
            BuildStep(outs=("stamp",), cmd="touch stamp"),
        ),
        steps_with_rule=(
            BuildStepWithRule(outs=("a.o",), ins=("a.c", "gen.h"), rule_name="cc", variables={"cflags": "-O2"}),
            BuildStepWithRule(outs=("app",), ins=("a.o",), rule_name="ld"),
        ),
    )


def _parse_builds(text: str) -> list[tuple[list[str], str, list[str], dict[str, str]]]:
    builds: list[tuple[list[str], str, list[str], dict[str, str]]] = []
    for line in text.splitlines():
        if line.startswith("build "):
            outs, _, rest = line[len("build ") :].partition(" : ")
            rule, *ins = rest.split(" ")
            builds.append((outs.split(" "), rule, ins, {}))
        elif line.startswith("    ") and builds:
            key, _, value = line.strip().partition(" = ")
            builds[-1][3][key] = value
        elif line.startswith("rule "):
            builds.append(([], "", [], {}))
    return [build for build in builds if build[0]]


def test_render_orders_sections() -> None:
    """Ensure anonymous rules come first, then named rules, then builds."""
    text = render_ninja(_graph())
    assert text == (
        "rule step0\n"
        "    command = python gen.py\n"
        "    description = GEN\n"
        "rule step1\n"
        "    command = touch stamp\n"
        "rule cc\n"
        "    command = gcc -c $in -o $out\n"
        "    description = CC $out\n"
        "    depfile = $out.d\n"
        "rule ld\n"
        "    command = gcc $in -o $out\n"
        "build gen.h : step0 gen.py\n"
        "build stamp : step1\n"
        "build a.o : cc a.c gen.h\n"
        "    cflags = -O2\n"
        "build app : ld a.o\n"
    )


def test_reparsing_recovers_steps() -> None:
    """Ensure build blocks parse back to the same outputs, inputs and variables."""
    graph = _graph()
    text = render_ninja(graph)
    declared = {line.split(" ", 1)[1] for line in text.splitlines() if line.startswith("rule ")}
    builds = _parse_builds(text)

    assert {rule for _, rule, _, _ in builds} <= declared
    expected = [(list(step.outs), list(step.ins), {}) for step in graph.steps] + [
        (list(step.outs), list(step.ins), dict(step.variables)) for step in graph.steps_with_rule
    ]
    assert [(outs, ins, variables) for outs, _, ins, variables in builds] == expected


def test_empty_graph_renders_nothing() -> None:
    """Ensure an empty graph produces an empty file."""
    assert render_ninja(BuildGraph(rules={}, steps=(), steps_with_rule=())) == ""


def test_escape_path() -> None:
    """Ensure Ninja metacharacters in paths are escaped."""
    assert escape_path("dir with space/a.o") == "dir$ with$ space/a.o"
    assert escape_path("c:/x$y") == "c$:/x$$y"
    assert escape_path("plain/a.o") == "plain/a.o"


def test_writer_escapes_paths_only() -> None:
    """Ensure commands are written verbatim while paths are escaped."""
    writer = NinjaWriter()
    writer.rule("r", "echo $in > $out")
    writer.build(["my out"], "r", ["my in"])
    assert writer.text() == "rule r\n    command = echo $in > $out\nbuild my$ out : r my$ in\n"


def test_variable_skips_empty_values() -> None:
    """Ensure empty keys or values are not emitted."""
    writer = NinjaWriter()
    writer.variable("builddir", "out", indent=False)
    writer.variable("empty", "")
    writer.variable("", "value")
    assert writer.text() == "builddir = out\n"


def test_anonymous_rule_name() -> None:
    """Ensure anonymous rules are named by position."""
    assert anonymous_rule_name(0) == "step0"
    assert anonymous_rule_name(12) == "step12"


def test_write_ninja_file_creates_parents(tmp_path: Path) -> None:
    """Ensure the build directory is created when missing."""
    target = tmp_path / "build" / "build.ninja"
    written = write_ninja_file(target, _graph())
    assert written == target
    assert target.read_text(encoding="utf-8") == render_ninja(_graph())
