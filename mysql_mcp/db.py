"""Async MySQL connection pool and statement executor.

Pooling, transport and value escaping are delegated to aiomysql (PyMySQL
underneath). Every statement runs on a connection acquired for the duration
of that statement and released on success or failure.
"""
import ssl
import time
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional, Sequence

import aiomysql

from mysql_mcp.config import DatabaseConfig
from mysql_mcp.models import QueryResult
from mysql_mcp.utils.audit import AuditLogger

logger = logging.getLogger(__name__)


class MySQLPool:
    """Manages the aiomysql pool and normalizes statement results."""

    def __init__(self, config: DatabaseConfig, audit: Optional[AuditLogger] = None):
        self._config = config
        self._audit = audit or AuditLogger()
        self._pool: Optional[aiomysql.Pool] = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def initialize(self):
        """Open the connection pool."""
        cfg = self._config
        self._pool = await aiomysql.create_pool(
            host=cfg.host,
            port=cfg.port,
            user=cfg.user,
            password=cfg.password,
            db=cfg.database,
            minsize=cfg.pool_min_size,
            maxsize=cfg.connection_limit,
            connect_timeout=cfg.connect_timeout,
            charset=cfg.charset,
            autocommit=True,
            ssl=ssl.create_default_context() if cfg.ssl else None,
        )
        logger.info(
            f"MySQL connection pool initialized "
            f"({cfg.host}:{cfg.port}/{cfg.database}, max={cfg.connection_limit})"
        )

    async def close(self):
        if self._pool:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None
            logger.info("MySQL connection pool closed")

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiomysql.Connection, None]:
        """Acquire a pooled connection; it is released when the block exits."""
        if not self._pool:
            raise RuntimeError("Pool not initialized. Call initialize() first.")
        async with self._pool.acquire() as conn:
            yield conn

    async def test_connection(self):
        """Ping the server once; raises ConnectionError if it is unreachable."""
        try:
            async with self.connection() as conn:
                await conn.ping(reconnect=False)
        except Exception as e:
            self._audit.error("Database connection test", e)
            raise ConnectionError(f"Database connection failed: {e}") from e
        logger.info("Database connection successful")

    async def execute(
        self, sql: str, params: Sequence[Any] = ()
    ) -> QueryResult:
        """Run one statement and normalize its outcome.

        Row-returning statements yield columns and rows; anything else yields
        the affected-row count. Driver errors propagate unchanged.
        """
        started = time.perf_counter()
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, tuple(params))
                if cur.description:
                    columns = tuple(d[0] for d in cur.description)
                    rows = tuple(tuple(row) for row in await cur.fetchall())
                    row_count = len(rows)
                else:
                    columns, rows = (), ()
                    row_count = max(cur.rowcount, 0)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        self._audit.query(sql, len(params), elapsed_ms)
        return QueryResult(
            columns=columns,
            rows=rows,
            row_count=row_count,
            execution_time_ms=elapsed_ms,
        )
