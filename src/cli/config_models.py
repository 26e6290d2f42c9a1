"""Typed configuration models for yabt."""

from __future__ import annotations

from serde_msgspec import StructBaseStrict


class BuildConfig(StructBaseStrict, frozen=True):
    """Build-related configuration values."""

    threads: int | None = None
    build_dir: str | None = None
    ninja: str | None = None


class SyncConfig(StructBaseStrict, frozen=True):
    """Dependency synchronization configuration values."""

    strict: bool | None = None


class RootConfigSpec(StructBaseStrict, frozen=True):
    """Root configuration payload (``yabt.toml`` or ``[tool.yabt]``)."""

    log_level: str | None = None
    no_color: bool | None = None
    build: BuildConfig | None = None
    sync: SyncConfig | None = None


__all__ = ["BuildConfig", "RootConfigSpec", "SyncConfig"]
