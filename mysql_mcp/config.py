"""Configuration for MySQL MCP Server.

Connection, pool, logging and transport settings. Access policy settings
(feature flags, read-only mode, table lists, row ceiling) are resolved
separately in mysql_mcp.governance.policy.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from mysql_mcp.utils.errors import ConfigurationError

TRANSPORTS = ("stdio", "streamable-http", "sse")
LOG_LEVELS = ("error", "warning", "warn", "info", "debug")


@dataclass
class DatabaseConfig:
    """Server configuration loaded from environment variables."""

    # MySQL connection
    host: str = field(default_factory=lambda: os.environ.get("MYSQL_HOST", "localhost"))
    port: int = field(
        default_factory=lambda: int(os.environ.get("MYSQL_PORT", "3306"))
    )
    user: str = field(default_factory=lambda: os.environ.get("MYSQL_USER", "root"))
    password: str = field(
        default_factory=lambda: os.environ.get("MYSQL_PASSWORD", "")
    )
    database: str = field(
        default_factory=lambda: os.environ.get("MYSQL_DATABASE", "test")
    )
    ssl: bool = field(
        default_factory=lambda: os.environ.get("MYSQL_SSL", "false").lower() == "true"
    )
    charset: str = field(
        default_factory=lambda: os.environ.get("MYSQL_CHARSET", "utf8mb4")
    )

    # Pool settings
    connection_limit: int = field(
        default_factory=lambda: int(os.environ.get("MYSQL_CONNECTION_LIMIT", "10"))
    )
    pool_min_size: int = field(
        default_factory=lambda: int(os.environ.get("MYSQL_POOL_MIN", "1"))
    )
    connect_timeout: int = field(
        default_factory=lambda: int(os.environ.get("MYSQL_TIMEOUT", "60"))
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "info").lower()
    )
    log_file: Optional[str] = field(
        default_factory=lambda: os.environ.get("LOG_FILE") or None
    )

    # Transport
    transport: str = field(
        default_factory=lambda: os.environ.get("MYSQL_MCP_TRANSPORT", "stdio")
    )
    http_port: int = field(
        default_factory=lambda: int(os.environ.get("APP_PORT", "8000"))
    )

    def validate(self) -> "DatabaseConfig":
        """Check value ranges; raises ConfigurationError on the first problem."""
        if not self.host:
            raise ConfigurationError("MYSQL_HOST must not be empty")
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"MYSQL_PORT out of range: {self.port}")
        if not self.user:
            raise ConfigurationError("MYSQL_USER must not be empty")
        if not self.database:
            raise ConfigurationError("MYSQL_DATABASE must not be empty")
        if not 1 <= self.connection_limit <= 100:
            raise ConfigurationError(
                f"MYSQL_CONNECTION_LIMIT must be between 1 and 100, got {self.connection_limit}"
            )
        if not 0 <= self.pool_min_size <= self.connection_limit:
            raise ConfigurationError(
                f"MYSQL_POOL_MIN must be between 0 and MYSQL_CONNECTION_LIMIT, "
                f"got {self.pool_min_size}"
            )
        if self.connect_timeout < 1:
            raise ConfigurationError(
                f"MYSQL_TIMEOUT must be at least 1 second, got {self.connect_timeout}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown LOG_LEVEL: {self.log_level}")
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"MYSQL_MCP_TRANSPORT must be one of {', '.join(TRANSPORTS)}"
            )
        return self


def load_database_config() -> DatabaseConfig:
    """Read and validate connection settings from the environment."""
    try:
        config = DatabaseConfig()
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e
    return config.validate()
