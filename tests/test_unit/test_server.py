"""Unit tests for server wiring: tool surface and tool call results."""
import json
from unittest.mock import AsyncMock, MagicMock

import pymysql
import pytest

from mysql_mcp.config import DatabaseConfig
from mysql_mcp.governance.policy import AccessPolicy
from mysql_mcp.main import build_server
from mysql_mcp.models import QueryResult
from mysql_mcp.operations import MUTATION_KINDS, READ_KINDS, OperationKind

READ_TOOLS = {"mysql_list_tables", "mysql_describe_table", "mysql_select_data"}


@pytest.fixture
def fake_pool(sample_result):
    pool = MagicMock()
    pool.execute = AsyncMock(return_value=sample_result)
    pool.initialize = AsyncMock()
    pool.test_connection = AsyncMock()
    pool.close = AsyncMock()
    return pool


def _server(policy, pool, audit):
    return build_server(DatabaseConfig(), policy, audit=audit, pool=pool)


def _text(result) -> str:
    """call_tool returns content blocks, or (content, structured) on newer SDKs."""
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


class TestToolSurface:
    async def test_read_tools_only_by_default(self, fake_pool, audit):
        mcp = _server(AccessPolicy(), fake_pool, audit)
        names = {t.name for t in await mcp.list_tools()}
        assert names == READ_TOOLS

    async def test_all_tools_when_enabled(self, fake_pool, audit):
        policy = AccessPolicy(features_enabled=READ_KINDS | MUTATION_KINDS, read_only=False)
        names = {t.name for t in await _server(policy, fake_pool, audit).list_tools()}
        assert names == READ_TOOLS | {
            "mysql_insert_data",
            "mysql_update_data",
            "mysql_delete_data",
            "mysql_create_table",
        }

    async def test_single_mutation_feature(self, fake_pool, audit):
        policy = AccessPolicy(features_enabled=READ_KINDS | {OperationKind.DELETE})
        names = {t.name for t in await _server(policy, fake_pool, audit).list_tools()}
        assert names == READ_TOOLS | {"mysql_delete_data"}


class TestToolCalls:
    async def test_select_markdown(self, fake_pool, audit):
        mcp = _server(AccessPolicy(max_rows=5), fake_pool, audit)
        text = _text(
            await mcp.call_tool(
                "mysql_select_data", {"params": {"table_name": "users", "limit": 100}}
            )
        )
        assert "2 row(s) returned" in text
        sql, _ = fake_pool.execute.call_args.args
        assert sql == "SELECT * FROM `users` LIMIT 5"

    async def test_denial_is_error_text(self, fake_pool, audit):
        policy = AccessPolicy(blocked_tables=frozenset({"secrets"}))
        mcp = _server(policy, fake_pool, audit)
        text = _text(
            await mcp.call_tool("mysql_select_data", {"params": {"table_name": "secrets"}})
        )
        assert text.startswith("Error [TableBlocked]")
        fake_pool.execute.assert_not_called()

    async def test_read_only_denies_registered_mutation(self, fake_pool, audit):
        policy = AccessPolicy(features_enabled=READ_KINDS | {OperationKind.INSERT})
        mcp = _server(policy, fake_pool, audit)
        text = _text(
            await mcp.call_tool(
                "mysql_insert_data",
                {"params": {"table_name": "users", "data": {"name": "a"}}},
            )
        )
        assert text.startswith("Error [ReadOnlyMode]")

    async def test_driver_error_is_mapped(self, fake_pool, audit):
        fake_pool.execute.side_effect = pymysql.err.ProgrammingError(
            1146, "Table 'test.nope' doesn't exist"
        )
        mcp = _server(AccessPolicy(), fake_pool, audit)
        text = _text(
            await mcp.call_tool("mysql_select_data", {"params": {"table_name": "nope"}})
        )
        assert "mysql_list_tables" in text

    async def test_create_table_json(self, fake_pool, audit):
        fake_pool.execute.return_value = QueryResult(execution_time_ms=4.0)
        policy = AccessPolicy(features_enabled=READ_KINDS | MUTATION_KINDS, read_only=False)
        mcp = _server(policy, fake_pool, audit)
        text = _text(
            await mcp.call_tool(
                "mysql_create_table",
                {
                    "params": {
                        "table_name": "things",
                        "columns": [{"name": "id", "type": "INT", "primary_key": True}],
                        "response_format": "json",
                    }
                },
            )
        )
        assert json.loads(text) == {
            "table": "things",
            "column_count": 1,
            "execution_time_ms": 4.0,
        }

    async def test_list_tables_json(self, fake_pool, audit):
        fake_pool.execute.return_value = QueryResult(
            columns=("Tables_in_test",), rows=(("users",), ("orders",)), row_count=2
        )
        mcp = _server(AccessPolicy(), fake_pool, audit)
        text = _text(
            await mcp.call_tool(
                "mysql_list_tables", {"params": {"response_format": "json"}}
            )
        )
        assert json.loads(text) == {"tables": ["orders", "users"], "count": 2}
