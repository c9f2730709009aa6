"""Schema discovery tools."""
from pydantic import Field
from mcp.server.fastmcp import FastMCP

from mysql_mcp.handler import QueryHandler
from mysql_mcp.operations import DescribeTableRequest, ListTablesRequest
from mysql_mcp.utils.errors import handle_error
from mysql_mcp.utils.formatting import (
    ResponseFormat,
    format_table_info,
    format_table_list,
)


class ListTablesInput(ListTablesRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class DescribeTableInput(DescribeTableRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


def register_schema_tools(mcp: FastMCP, handler: QueryHandler):

    @mcp.tool(
        name="mysql_list_tables",
        annotations={
            "title": "List Tables",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def mysql_list_tables(params: ListTablesInput) -> str:
        """List all accessible tables in the database.
        Tables hidden by the server's allow/block lists are not shown."""
        try:
            tables = await handler.list_tables(params)
            return format_table_list(tables, fmt=params.response_format)
        except Exception as e:
            return handle_error(e)

    @mcp.tool(
        name="mysql_describe_table",
        annotations={
            "title": "Describe Table Structure",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def mysql_describe_table(params: DescribeTableInput) -> str:
        """Get detailed information about a table structure: column names, types,
        nullability, key role, defaults and the total row count.
        Essential before writing filters or inserting data."""
        try:
            info = await handler.describe_table(params)
            return format_table_info(info, fmt=params.response_format)
        except Exception as e:
            return handle_error(e)
