"""Build-graph construction engine driven by Lua build scripts."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from buildgraph.ninja_writer import ANONYMOUS_RULE_PREFIX
from buildgraph.types import BuildGraph, BuildRule, BuildStep, BuildStepWithRule
from core.errors import MissingOutputError, ScriptExecutionError
from obs.logging import VERBOSE, log_verbose
from scripting.codec import ScriptValueCodec
from scripting.embedded import RUNTIME_SCRIPT, embedded_lua_modules, runtime_source
from scripting.runtime import ScriptRuntime

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)
script_logger = logging.getLogger("yabt.script")

NATIVE_TABLE = "yabt_native"
_RESERVED_RULE_NAME = re.compile(rf"{re.escape(ANONYMOUS_RULE_PREFIX)}\d+")


class BuildGraphEngine:
    """Own one Lua runtime and collect the build graph its scripts declare.

    Scripts reach the engine through the ``yabt_native`` global table, whose
    functions are bound methods of this instance. A failing callback raises
    through the running script and surfaces unchanged from ``exec_file`` or
    ``exec_string``.

    Parameters
    ----------
    workspace_root
        Workspace source root, exposed to scripts as ``SOURCE_DIR``.
    build_dir
        Output root, exposed to scripts as ``OUTPUT_DIR``.
    """

    def __init__(self, workspace_root: Path, build_dir: Path) -> None:
        self._workspace_root = Path(workspace_root).absolute()
        self._build_dir = Path(build_dir).absolute()
        self._runtime = ScriptRuntime()
        self._codec = ScriptValueCodec(self._runtime.lua)
        self._rules: dict[str, BuildRule] = {}
        self._steps: list[BuildStep] = []
        self._steps_with_rule: list[BuildStepWithRule] = []

        self._runtime.register_native(NATIVE_TABLE, self._native_functions())
        self._runtime.set_global("SOURCE_DIR", str(self._workspace_root))
        self._runtime.set_global("OUTPUT_DIR", str(self._build_dir))
        self._runtime.set_global("modules", self._runtime.table())
        self._runtime.set_package_path([])
        self._runtime.set_package_cpath([])
        for module_name, source in embedded_lua_modules().items():
            self._runtime.add_preload(module_name, source)

    @property
    def runtime(self) -> ScriptRuntime:
        """Return the owned scripting runtime.

        Returns
        -------
        ScriptRuntime
            Full (non-sandboxed) runtime.
        """
        return self._runtime

    @property
    def workspace_root(self) -> Path:
        """Return the absolute workspace root.

        Returns
        -------
        Path
            Value of ``SOURCE_DIR``.
        """
        return self._workspace_root

    @property
    def build_dir(self) -> Path:
        """Return the absolute output root.

        Returns
        -------
        Path
            Value of ``OUTPUT_DIR``.
        """
        return self._build_dir

    def _native_functions(self) -> dict[str, Callable[..., object]]:
        return {
            "add_build_step": self.add_build_step,
            "add_build_step_with_rule": self.add_build_step_with_rule,
            "log_verbose": self._log_function("log_verbose", VERBOSE),
            "log_debug": self._log_function("log_debug", logging.DEBUG),
            "log_info": self._log_function("log_info", logging.INFO),
            "log_warn": self._log_function("log_warn", logging.WARNING),
            "log_error": self._log_function("log_error", logging.ERROR),
            "canonical_path": _canonical_path,
            "relative_path": _relative_path,
        }

    def _log_function(self, name: str, level: int) -> Callable[..., None]:
        def log(*args: object) -> None:
            _expect_arity(name, args, 1)
            message = self._codec.decode(args[0], str)
            script_logger.log(level, "%s", message)

        return log

    def set_path(self, paths: Sequence[str | Path]) -> None:
        """Replace ``package.path`` with the given search templates.

        Parameters
        ----------
        paths
            Templates such as ``<rules>/?.lua``.
        """
        self._runtime.set_package_path([str(path) for path in paths])

    def set_rule_dirs(self, rule_dirs: Iterable[Path]) -> None:
        """Make every rules directory searchable by ``require``."""
        templates = []
        for rules_dir in rule_dirs:
            template = Path(rules_dir) / "?.lua"
            logger.debug("Adding rules dir to path: %s", template)
            templates.append(str(template))
        self.set_path(templates)

    def exec_string(self, source: str) -> object:
        """Run a Lua chunk in the engine's runtime.

        Returns
        -------
        object
            Value returned by the chunk.
        """
        return self._runtime.exec_string(source)

    def exec_file(self, path: Path) -> object:
        """Run a Lua script file in the engine's runtime.

        Returns
        -------
        object
            Value returned by the script.
        """
        return self._runtime.exec_file(path)

    def exec_bootstrap(self) -> None:
        """Run the embedded ``runtime.lua`` bootstrap."""
        logger.debug("Running %s", RUNTIME_SCRIPT)
        self._runtime.exec_string(runtime_source(), chunk_name=f"=[yabt] {RUNTIME_SCRIPT}")

    def register_module(self, name: str, path: Path, build_files: Sequence[str]) -> None:
        """Publish a module in the ``modules`` global.

        Parameters
        ----------
        name
            Module name used as the table key.
        path
            Absolute module directory.
        build_files
            Directories (relative to ``<module>/src``) holding a ``BUILD.lua``.
        """
        module_path = Path(path).absolute()
        entry = {
            "path": str(module_path),
            "relative_path": os.path.relpath(module_path, self._workspace_root),
            "build_files": list(build_files),
        }
        modules = self._runtime.get_global("modules")
        modules[name] = self._codec.encode(entry)  # type: ignore[index]
        logger.debug("Registered module %s with %d build files", name, len(build_files))

    def add_build_step(self, *args: object) -> None:
        """Record an anonymous step from a script table.

        Raises
        ------
        MissingOutputError
            Raised when the step declares no outputs.
        """
        _expect_arity("add_build_step", args, 1)
        step = self._codec.decode(args[0], BuildStep)
        if not step.outs:
            msg = "Attempted to register a build step without an out"
            raise MissingOutputError(msg)
        self._steps.append(step)
        log_verbose(logger, "Registered build step for: %s with cmd: %s", step.outs[0], step.cmd)

    def add_build_step_with_rule(self, *args: object) -> None:
        """Record a rule (if new) and a step that references it.

        The rule is stored before the step is decoded, so a call whose step
        is rejected still leaves a newly seen rule registered.

        Raises
        ------
        ScriptExecutionError
            Raised when the rule name is reserved for anonymous steps.
        MissingOutputError
            Raised when the step declares no outputs.
        """
        _expect_arity("add_build_step_with_rule", args, 2)
        rule = self._codec.decode(args[0], BuildRule)
        if _RESERVED_RULE_NAME.fullmatch(rule.name):
            msg = f"Rule name {rule.name!r} is reserved for steps without a rule"
            raise ScriptExecutionError(f"{NATIVE_TABLE}.add_build_step_with_rule", msg)

        existing = self._rules.get(rule.name)
        if existing is None:
            self._rules[rule.name] = rule
            log_verbose(logger, "Registered build rule: %s", rule.name)
        elif existing != rule:
            logger.warning("Build rule %s is already registered; ignoring redefinition", rule.name)
        else:
            logger.debug("Skipping duplicate build rule %s", rule.name)

        step = self._codec.decode(args[1], BuildStepWithRule)
        if not step.outs:
            msg = "Attempted to register a build step with rule without an out"
            raise MissingOutputError(msg)
        self._steps_with_rule.append(step)
        log_verbose(
            logger, "Registered build step for: %s with rule: %s", step.outs[0], step.rule_name
        )

    @property
    def build_rules(self) -> dict[str, BuildRule]:
        """Return registered rules in registration order.

        Returns
        -------
        dict[str, BuildRule]
            Rule name to rule.
        """
        return dict(self._rules)

    @property
    def build_steps(self) -> tuple[BuildStep, ...]:
        """Return anonymous steps in registration order.

        Returns
        -------
        tuple[BuildStep, ...]
            Registered steps.
        """
        return tuple(self._steps)

    @property
    def build_steps_with_rule(self) -> tuple[BuildStepWithRule, ...]:
        """Return rule-based steps in registration order.

        Returns
        -------
        tuple[BuildStepWithRule, ...]
            Registered steps.
        """
        return tuple(self._steps_with_rule)

    def graph(self) -> BuildGraph:
        """Snapshot the collected graph.

        Returns
        -------
        BuildGraph
            Rules and steps registered so far.
        """
        return BuildGraph(
            rules=self.build_rules,
            steps=self.build_steps,
            steps_with_rule=self.build_steps_with_rule,
        )

    def all_targets(self) -> list[str]:
        """Return every registered output.

        Returns
        -------
        list[str]
            Outputs in registration order.
        """
        return self.graph().targets()


def _expect_arity(name: str, args: tuple[object, ...], expected: int) -> None:
    if len(args) != expected:
        msg = f"Expected {expected} argument(s) to {name}, but got: {len(args)}"
        raise ScriptExecutionError(f"{NATIVE_TABLE}.{name}", msg)


def _canonical_path(*args: object) -> str:
    _expect_arity("canonical_path", args, 1)
    return str(Path(str(args[0])).resolve(strict=False))


def _relative_path(*args: object) -> str:
    _expect_arity("relative_path", args, 2)
    return os.path.relpath(str(args[0]), str(args[1]))


__all__ = ["NATIVE_TABLE", "BuildGraphEngine"]
