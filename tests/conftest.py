"""Shared test fixtures for MySQL MCP tests."""
import pytest
from unittest.mock import AsyncMock

from mysql_mcp.governance.gate import AccessGate
from mysql_mcp.governance.policy import AccessPolicy
from mysql_mcp.handler import QueryHandler
from mysql_mcp.models import QueryResult
from mysql_mcp.operations import MUTATION_KINDS, READ_KINDS
from mysql_mcp.utils.audit import AuditLogger


@pytest.fixture
def audit():
    return AuditLogger("mysql_mcp.test")


@pytest.fixture
def read_policy():
    """Server defaults: reads only, read-only mode, no table lists."""
    return AccessPolicy()


@pytest.fixture
def write_policy():
    """Every operation enabled and writable."""
    return AccessPolicy(
        features_enabled=READ_KINDS | MUTATION_KINDS,
        read_only=False,
        max_rows=100,
    )


@pytest.fixture
def mutation_result():
    return QueryResult(row_count=1, execution_time_ms=1.5)


@pytest.fixture
def sample_result():
    return QueryResult(
        columns=("id", "name", "email"),
        rows=((1, "Alice", "alice@example.com"), (2, "Bob", "bob@example.com")),
        row_count=2,
        execution_time_ms=3.2,
    )


@pytest.fixture
def mock_executor(sample_result):
    """Mock statement executor (stands in for MySQLPool)."""
    mock = AsyncMock()
    mock.execute = AsyncMock(return_value=sample_result)
    return mock


@pytest.fixture
def make_handler(mock_executor, audit):
    def _make(policy: AccessPolicy) -> QueryHandler:
        return QueryHandler(mock_executor, AccessGate(policy, audit), audit)

    return _make
