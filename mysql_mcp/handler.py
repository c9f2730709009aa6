"""Request path: access gate -> statement builder -> executor -> result.

QueryHandler holds no per-request state; it can serve concurrent requests
against the shared pool and the immutable policy snapshot.
"""
import asyncio
from typing import Any, Protocol, Sequence

from mysql_mcp.governance.gate import AccessGate
from mysql_mcp.models import ColumnInfo, QueryResult, TableInfo
from mysql_mcp.operations import (
    CreateTableRequest,
    DeleteRequest,
    DescribeTableRequest,
    InsertRequest,
    ListTablesRequest,
    OperationKind,
    OperationRequest,
    SelectRequest,
    UpdateRequest,
)
from mysql_mcp.sql import builder
from mysql_mcp.sql.builder import Statement
from mysql_mcp.utils.audit import AuditLogger
from mysql_mcp.utils.errors import OperationDenied


def _text(value: Any) -> str:
    """DESCRIBE may return bytes for some columns depending on server version."""
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return "" if value is None else str(value)


class StatementExecutor(Protocol):
    async def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        ...


class QueryHandler:
    """Runs admitted operations and reports them to the audit log."""

    def __init__(self, executor: StatementExecutor, gate: AccessGate, audit: AuditLogger):
        self._executor = executor
        self._gate = gate
        self._audit = audit

    @property
    def policy(self):
        return self._gate.policy

    def _admit(self, request: OperationRequest) -> None:
        decision = self._gate.check(request)
        if not decision.allowed:
            raise OperationDenied(
                decision.reason, decision.message, table=request.target_table
            )

    async def _run(self, request: OperationRequest, statement: Statement) -> QueryResult:
        try:
            return await self._executor.execute(statement.text, statement.params)
        except Exception as e:
            self._audit.error(
                f"{request.kind.value} on {request.target_table or '-'}",
                e,
                statement=statement.text,
            )
            raise

    async def execute(self, request: OperationRequest) -> Any:
        """Dispatch any request variant to its operation."""
        handlers = {
            OperationKind.LIST_TABLES: self.list_tables,
            OperationKind.DESCRIBE_TABLE: self.describe_table,
            OperationKind.SELECT: self.select,
            OperationKind.INSERT: self.insert,
            OperationKind.UPDATE: self.update,
            OperationKind.DELETE: self.delete,
            OperationKind.CREATE_TABLE: self.create_table,
        }
        return await handlers[request.kind](request)

    async def list_tables(self, request: ListTablesRequest = None) -> list[str]:
        """Names of the accessible tables, in sorted order."""
        request = request or ListTablesRequest()
        self._admit(request)
        result = await self._run(request, builder.build_list_tables())
        names = sorted(str(row[0]) for row in result.rows)
        tables = self.policy.filter_tables(names)
        self._audit.success(
            request.kind,
            None,
            QueryResult(
                columns=("table",),
                rows=tuple((t,) for t in tables),
                row_count=len(tables),
                execution_time_ms=result.execution_time_ms,
            ),
        )
        return tables

    async def describe_table(self, request: DescribeTableRequest) -> TableInfo:
        """Column descriptors and row count, fetched concurrently."""
        self._admit(request)
        describe_stmt, count_stmt = builder.build_describe_table(request.table_name)
        columns_result, count_result = await asyncio.gather(
            self._run(request, describe_stmt),
            self._run(request, count_stmt),
        )
        columns = tuple(
            ColumnInfo(
                name=_text(row[0]),
                type=_text(row[1]),
                nullable=_text(row[2]) == "YES",
                key=_text(row[3]),
                default=row[4],
            )
            for row in columns_result.rows
        )
        row_count = int(count_result.rows[0][0]) if count_result.rows else 0
        info = TableInfo(
            name=request.table_name,
            columns=columns,
            row_count=row_count,
            execution_time_ms=max(
                columns_result.execution_time_ms, count_result.execution_time_ms
            ),
        )
        self._audit.success(request.kind, request.table_name, columns_result)
        return info

    async def select(self, request: SelectRequest) -> QueryResult:
        self._admit(request)
        statement = builder.build_select(request, self.policy.max_rows)
        result = await self._run(request, statement)
        self._audit.success(request.kind, request.table_name, result)
        return result

    async def insert(self, request: InsertRequest) -> QueryResult:
        self._admit(request)
        result = await self._run(request, builder.build_insert(request))
        self._audit.success(request.kind, request.table_name, result)
        return result

    async def update(self, request: UpdateRequest) -> QueryResult:
        self._admit(request)
        result = await self._run(request, builder.build_update(request))
        self._audit.success(request.kind, request.table_name, result)
        return result

    async def delete(self, request: DeleteRequest) -> QueryResult:
        self._admit(request)
        result = await self._run(request, builder.build_delete(request))
        self._audit.success(request.kind, request.table_name, result)
        return result

    async def create_table(self, request: CreateTableRequest) -> QueryResult:
        self._admit(request)
        result = await self._run(request, builder.build_create_table(request))
        self._audit.success(request.kind, request.table_name, result)
        return result
