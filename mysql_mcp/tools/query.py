"""Data retrieval tool with row-limit enforcement."""
from pydantic import Field
from mcp.server.fastmcp import FastMCP

from mysql_mcp.handler import QueryHandler
from mysql_mcp.operations import SelectRequest
from mysql_mcp.utils.errors import handle_error
from mysql_mcp.utils.formatting import ResponseFormat, format_query_result


class SelectDataInput(SelectRequest):
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


def register_query_tools(mcp: FastMCP, handler: QueryHandler):

    @mcp.tool(
        name="mysql_select_data",
        annotations={
            "title": "Select Data",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def mysql_select_data(params: SelectDataInput) -> str:
        """Select data from a table with optional filtering, ordering and pagination.

        `where` and `order_by` are SQL fragments without their keywords, e.g.
        where="age > ? AND status = ?" with where_params=[30, "active"].
        The number of rows returned never exceeds the server row limit,
        whatever `limit` is requested.
        """
        try:
            result = await handler.select(params)
            return format_query_result(result, fmt=params.response_format)
        except Exception as e:
            return handle_error(e)
