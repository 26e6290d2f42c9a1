"""Build graph records registered by build scripts."""

from __future__ import annotations

import msgspec

from serde_msgspec import StructBaseCompat

VariableMap = dict[str, str]


class BuildRule(StructBaseCompat, frozen=True):
    """Named, reusable command template referenced by build steps."""

    name: str = ""
    cmd: str = ""
    descr: str = ""
    variables: VariableMap = msgspec.field(default_factory=dict)
    # Whether steps using this rule belong in compile_commands.json.
    compdb: bool = False


class BuildStep(StructBaseCompat, frozen=True):
    """Single graph node carrying its own inline command."""

    outs: tuple[str, ...] = ()
    ins: tuple[str, ...] = ()
    cmd: str = ""
    descr: str = ""


class BuildStepWithRule(StructBaseCompat, frozen=True):
    """Graph node that delegates its command to a named rule."""

    outs: tuple[str, ...] = ()
    ins: tuple[str, ...] = ()
    rule_name: str = msgspec.field(default="", name="ruleName")
    variables: VariableMap = msgspec.field(default_factory=dict)


class BuildGraph(msgspec.Struct, frozen=True):
    """Graph collected from one orchestration pass.

    ``rules`` keeps registration order; the step sequences keep the order in
    which scripts registered them.
    """

    rules: dict[str, BuildRule]
    steps: tuple[BuildStep, ...]
    steps_with_rule: tuple[BuildStepWithRule, ...]

    def targets(self) -> list[str]:
        """Return every declared output path in registration order.

        Returns
        -------
        list[str]
            Output paths of anonymous steps followed by rule-based steps.
        """
        outs: list[str] = []
        for step in self.steps:
            outs.extend(step.outs)
        for step in self.steps_with_rule:
            outs.extend(step.outs)
        return outs

    def compdb_rules(self) -> list[str]:
        """Return the names of rules flagged for the compilation database.

        Returns
        -------
        list[str]
            Rule names with ``compdb`` set.
        """
        return [name for name, rule in self.rules.items() if rule.compdb]


__all__ = ["BuildGraph", "BuildRule", "BuildStep", "BuildStepWithRule", "VariableMap"]
