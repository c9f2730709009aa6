"""Response formatting helpers."""
import json
from enum import Enum
from typing import Any

from mysql_mcp.models import QueryResult, TableInfo

MAX_CELL_WIDTH = 50


class ResponseFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"


def _cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray)):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value)
    text = text.replace("|", "\\|").replace("\n", " ")
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text


def _footer(row_label: str, count: int, execution_time_ms: float) -> str:
    return f"_{row_label}: {count} | Execution time: {execution_time_ms}ms_"


def format_query_result(
    result: QueryResult, fmt: ResponseFormat = ResponseFormat.MARKDOWN
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(
            {
                "columns": list(result.columns),
                "rows": result.as_dicts(),
                "row_count": result.row_count,
                "execution_time_ms": result.execution_time_ms,
            },
            indent=2,
            default=str,
        )
    if not result.rows:
        return "_No data found._\n\n" + _footer("Rows", 0, result.execution_time_ms)
    cols = list(result.columns)
    lines = [f"**{result.row_count} row(s) returned**\n"]
    lines.append("| " + " | ".join(cols) + " |")
    lines.append("| " + " | ".join(["---"] * len(cols)) + " |")
    for row in result.rows:
        lines.append("| " + " | ".join(_cell(v) for v in row) + " |")
    lines.append("")
    lines.append(_footer("Rows", result.row_count, result.execution_time_ms))
    return "\n".join(lines)


def format_table_list(
    tables: list[str], fmt: ResponseFormat = ResponseFormat.MARKDOWN
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps({"tables": tables, "count": len(tables)}, indent=2)
    if not tables:
        return "_No tables found._"
    lines = [f"## Tables ({len(tables)})\n"]
    for name in tables:
        lines.append(f"- **{name}**")
    return "\n".join(lines)


def format_table_info(
    info: TableInfo, fmt: ResponseFormat = ResponseFormat.MARKDOWN
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(info.to_dict(), indent=2, default=str)
    lines = [f"## Table: `{info.name}`\n", f"Rows: {info.row_count}\n"]
    lines.append("| Column | Type | Nullable | Key | Default |")
    lines.append("| --- | --- | --- | --- | --- |")
    for c in info.columns:
        lines.append(
            f"| {c.name} | {c.type} | {'YES' if c.nullable else 'NO'} | "
            f"{c.key} | {'' if c.default is None else _cell(c.default)} |"
        )
    return "\n".join(lines)


def format_mutation_result(
    action: str,
    table_name: str,
    result: QueryResult,
    fmt: ResponseFormat = ResponseFormat.MARKDOWN,
) -> str:
    """Summary for insert/update/delete/create-table."""
    if fmt == ResponseFormat.JSON:
        return json.dumps(
            {
                "table": table_name,
                "action": action,
                "affected_rows": result.row_count,
                "execution_time_ms": result.execution_time_ms,
            },
            indent=2,
        )
    return (
        f"Data {action} successfully in `{table_name}`. "
        f"Affected rows: {result.row_count}\n\n"
        + _footer("Affected rows", result.row_count, result.execution_time_ms)
    )
