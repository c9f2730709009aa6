"""MySQL MCP Server: main entry point.

Exposes gated CRUD tools over a pooled MySQL connection: list/describe/select
always, insert/update/delete/create-table when their feature flags are on.
"""
import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from mysql_mcp.config import DatabaseConfig, load_database_config
from mysql_mcp.db import MySQLPool
from mysql_mcp.governance.gate import AccessGate
from mysql_mcp.governance.policy import AccessPolicy, load_access_policy
from mysql_mcp.handler import QueryHandler
from mysql_mcp.tools.mutation import register_mutation_tools
from mysql_mcp.tools.query import register_query_tools
from mysql_mcp.tools.schema import register_schema_tools
from mysql_mcp.utils.audit import AuditLogger, configure_logging
from mysql_mcp.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


def build_server(
    db_config: DatabaseConfig,
    policy: AccessPolicy,
    audit: Optional[AuditLogger] = None,
    pool: Optional[MySQLPool] = None,
) -> FastMCP:
    """Wire pool, gate and handler together and register the tool surface."""
    audit = audit or AuditLogger()
    pool = pool or MySQLPool(db_config, audit)
    handler = QueryHandler(pool, AccessGate(policy, audit), audit)

    @asynccontextmanager
    async def app_lifespan(server: FastMCP):
        """Open the pool and verify connectivity; close the pool on shutdown."""
        await pool.initialize()
        try:
            await pool.test_connection()
            logger.info(
                "MySQL MCP Server started "
                f"(read_only={policy.read_only}, max_rows={policy.max_rows})"
            )
            yield {"handler": handler}
        finally:
            await pool.close()
            logger.info("MySQL MCP Server stopped")

    mcp = FastMCP(
        "mysql_mcp",
        lifespan=app_lifespan,
        host="0.0.0.0",
        port=db_config.http_port,
    )

    register_schema_tools(mcp, handler)
    register_query_tools(mcp, handler)
    register_mutation_tools(mcp, handler)
    return mcp


def main():
    load_dotenv()
    try:
        db_config = load_database_config()
        configure_logging(db_config.log_level, db_config.log_file)
        policy = load_access_policy()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    mcp = build_server(db_config, policy)
    mcp.run(transport=db_config.transport)


if __name__ == "__main__":
    main()
