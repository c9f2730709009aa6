"""Write tools: insert, update, delete and create table.

Each tool is registered only when its feature flag is enabled in the access
policy. Registered tools still pass through the access gate, so read-only
mode and the table lists apply to every call.
"""
import json

from pydantic import Field
from mcp.server.fastmcp import FastMCP

from mysql_mcp.handler import QueryHandler
from mysql_mcp.operations import (
    CreateTableRequest,
    DeleteRequest,
    InsertRequest,
    OperationKind,
    UpdateRequest,
)
from mysql_mcp.utils.errors import handle_error
from mysql_mcp.utils.formatting import ResponseFormat, format_mutation_result


class InsertDataInput(InsertRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class UpdateDataInput(UpdateRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class DeleteDataInput(DeleteRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class CreateTableInput(CreateTableRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


def register_mutation_tools(mcp: FastMCP, handler: QueryHandler):
    features = handler.policy.features_enabled

    if OperationKind.INSERT in features:

        @mcp.tool(
            name="mysql_insert_data",
            annotations={
                "title": "Insert Row",
                "readOnlyHint": False,
                "destructiveHint": False,
                "idempotentHint": False,
                "openWorldHint": False,
            },
        )
        async def mysql_insert_data(params: InsertDataInput) -> str:
            """Insert a new row into a table.

            `data` maps column names to values (string, number, boolean,
            null or ISO date/datetime). Every value is sent as a bound parameter.
            """
            try:
                result = await handler.insert(params)
                return format_mutation_result(
                    "inserted", params.table_name, result, fmt=params.response_format
                )
            except Exception as e:
                return handle_error(e)

    if OperationKind.UPDATE in features:

        @mcp.tool(
            name="mysql_update_data",
            annotations={
                "title": "Update Rows",
                "readOnlyHint": False,
                "destructiveHint": True,
                "idempotentHint": True,
                "openWorldHint": False,
            },
        )
        async def mysql_update_data(params: UpdateDataInput) -> str:
            """Update existing rows in a table.

            `where` is required and identifies the rows to change, e.g.
            where="id = ?" with where_params=[42]. New values in `data` are
            bound before the where_params.
            """
            try:
                result = await handler.update(params)
                return format_mutation_result(
                    "updated", params.table_name, result, fmt=params.response_format
                )
            except Exception as e:
                return handle_error(e)

    if OperationKind.DELETE in features:

        @mcp.tool(
            name="mysql_delete_data",
            annotations={
                "title": "Delete Rows",
                "readOnlyHint": False,
                "destructiveHint": True,
                "idempotentHint": True,
                "openWorldHint": False,
            },
        )
        async def mysql_delete_data(params: DeleteDataInput) -> str:
            """Delete rows from a table.

            `where` is required, e.g. where="created_at < ?" with
            where_params=["2024-01-01"]. Unscoped deletes are rejected.
            """
            try:
                result = await handler.delete(params)
                return format_mutation_result(
                    "deleted", params.table_name, result, fmt=params.response_format
                )
            except Exception as e:
                return handle_error(e)

    if OperationKind.CREATE_TABLE in features:

        @mcp.tool(
            name="mysql_create_table",
            annotations={
                "title": "Create Table",
                "readOnlyHint": False,
                "destructiveHint": False,
                "idempotentHint": False,
                "openWorldHint": False,
            },
        )
        async def mysql_create_table(params: CreateTableInput) -> str:
            """Create a new table from column definitions.

            Columns flagged primary_key form a (composite) PRIMARY KEY.
            Optional engine, charset and collation become table options,
            e.g. engine="InnoDB", charset="utf8mb4".
            """
            try:
                result = await handler.create_table(params)
                if params.response_format == ResponseFormat.JSON:
                    return json.dumps(
                        {
                            "table": params.table_name,
                            "column_count": len(params.columns),
                            "execution_time_ms": result.execution_time_ms,
                        },
                        indent=2,
                    )
                return (
                    f"Table `{params.table_name}` created with "
                    f"{len(params.columns)} column(s). "
                    f"Execution time: {result.execution_time_ms}ms"
                )
            except Exception as e:
                return handle_error(e)
