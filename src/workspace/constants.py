"""Fixed file and directory names of a yabt workspace."""

from __future__ import annotations

MODULE_FILE_NAME = "MODULE.lua"
BUILD_FILE_NAME = "BUILD.lua"
INIT_FILE_NAME = "INIT.lua"

DEPS_DIR_NAME = "DEPS"
BUILD_DIR_NAME = "build"
SRC_DIR_NAME = "src"
RULES_DIR_NAME = "rules"

NINJA_FILE_NAME = "build.ninja"
COMPDB_FILE_NAME = "compile_commands.json"

__all__ = [
    "BUILD_DIR_NAME",
    "BUILD_FILE_NAME",
    "COMPDB_FILE_NAME",
    "DEPS_DIR_NAME",
    "INIT_FILE_NAME",
    "MODULE_FILE_NAME",
    "NINJA_FILE_NAME",
    "RULES_DIR_NAME",
    "SRC_DIR_NAME",
]
