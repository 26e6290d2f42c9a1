"""Shared utilities for yabt."""

from utils.file_walk import iter_named_files
from utils.process import NormalExit, ProcessOutput, UnhandledSignal, run_process

__all__ = [
    "NormalExit",
    "ProcessOutput",
    "UnhandledSignal",
    "iter_named_files",
    "run_process",
]
