"""Access governance for MySQL MCP Server.

Two pieces:
- AccessPolicy: immutable snapshot of feature flags, read-only mode,
  table allow/block lists and the row ceiling (resolved once at startup)
- AccessGate: per-request admission check evaluated before any SQL is built
"""
