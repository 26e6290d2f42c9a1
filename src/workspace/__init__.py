"""Workspace layout, module backends and dependency resolution."""
