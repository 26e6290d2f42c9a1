"""Embedded Lua runtime, value codec and build-graph engine."""
