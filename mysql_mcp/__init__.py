"""MySQL MCP Server: gated CRUD tools over a MySQL connection pool."""

__version__ = "1.0.0"
