"""Parameterized MySQL statement construction.

Identifiers are validated and backtick-quoted (sqlglot MySQL dialect); values
are always bound through ``%s`` placeholders. Filter and ordering text is
caller-supplied SQL and is inserted as-is, apart from placeholder rewriting:
callers write ``?`` for bound values and the builder converts them to the
driver's ``%s`` style, doubling literal ``%`` so client-side interpolation
leaves the fragment intact.
"""
from dataclasses import dataclass
from typing import Any

from sqlglot import exp

from mysql_mcp.governance.gate import IDENTIFIER_PATTERN
from mysql_mcp.operations import (
    ColumnSpec,
    CreateTableRequest,
    DeleteRequest,
    InsertRequest,
    SelectRequest,
    UpdateRequest,
)
from mysql_mcp.sql.fragments import PLACEHOLDER, bindable_fragment
from mysql_mcp.utils.errors import InvalidIdentifierError

# DEFAULT expressions emitted verbatim instead of bound as string literals
KEYWORD_DEFAULTS = frozenset(
    {"NULL", "CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP()", "CURRENT_DATE", "NOW()"}
)


@dataclass(frozen=True)
class Statement:
    """SQL text plus its ordered bound parameters."""

    text: str
    params: tuple[Any, ...] = ()


def validate_identifier(name: str) -> str:
    if not name or not IDENTIFIER_PATTERN.match(name):
        raise InvalidIdentifierError(
            f"Invalid identifier '{name}'. Only alphanumeric characters and "
            "underscores are allowed."
        )
    return name


def quote_identifier(name: str) -> str:
    """Validate a table/column name and render it as a MySQL identifier."""
    validate_identifier(name)
    return exp.to_identifier(name, quoted=True).sql(dialect="mysql")


def build_list_tables() -> Statement:
    return Statement("SHOW TABLES")


def build_describe_table(table_name: str) -> tuple[Statement, Statement]:
    """Column introspection and row count for one table."""
    table = quote_identifier(table_name)
    return (
        Statement(f"DESCRIBE {table}"),
        Statement(f"SELECT COUNT(*) AS `count` FROM {table}"),
    )


def build_select(request: SelectRequest, max_rows: int) -> Statement:
    """SELECT with the row limit clamped to ``max_rows``."""
    if request.columns:
        columns = ", ".join(quote_identifier(c) for c in request.columns)
    else:
        columns = "*"
    sql = f"SELECT {columns} FROM {quote_identifier(request.table_name)}"

    if request.where:
        sql += f" WHERE {bindable_fragment(request.where)}"
    if request.order_by:
        sql += f" ORDER BY {bindable_fragment(request.order_by)}"

    limit = min(request.limit or max_rows, max_rows)
    sql += f" LIMIT {int(limit)}"
    if request.offset:
        sql += f" OFFSET {int(request.offset)}"

    return Statement(sql, tuple(request.where_params))


def build_insert(request: InsertRequest) -> Statement:
    columns = list(request.data)
    column_sql = ", ".join(quote_identifier(c) for c in columns)
    placeholders = ", ".join(PLACEHOLDER for _ in columns)
    return Statement(
        f"INSERT INTO {quote_identifier(request.table_name)} "
        f"({column_sql}) VALUES ({placeholders})",
        tuple(request.data[c] for c in columns),
    )


def build_update(request: UpdateRequest) -> Statement:
    """UPDATE; params are the new values followed by the filter params."""
    columns = list(request.data)
    set_clause = ", ".join(f"{quote_identifier(c)} = {PLACEHOLDER}" for c in columns)
    return Statement(
        f"UPDATE {quote_identifier(request.table_name)} SET {set_clause} "
        f"WHERE {bindable_fragment(request.where)}",
        tuple(request.data[c] for c in columns) + tuple(request.where_params),
    )


def build_delete(request: DeleteRequest) -> Statement:
    return Statement(
        f"DELETE FROM {quote_identifier(request.table_name)} "
        f"WHERE {bindable_fragment(request.where)}",
        tuple(request.where_params),
    )


def _column_definition(spec: ColumnSpec) -> tuple[str, list[Any]]:
    params: list[Any] = []
    sql = f"{quote_identifier(spec.name)} {spec.type.upper()}"
    if spec.length:
        sql += f"({int(spec.length)})"
    sql += " NULL" if spec.nullable else " NOT NULL"
    if spec.auto_increment:
        sql += " AUTO_INCREMENT"
    if spec.unique:
        sql += " UNIQUE"
    if spec.default is not None:
        if isinstance(spec.default, str) and spec.default.upper() in KEYWORD_DEFAULTS:
            sql += f" DEFAULT {spec.default.upper()}"
        else:
            sql += f" DEFAULT {PLACEHOLDER}"
            params.append(spec.default)
    return sql, params


def build_create_table(request: CreateTableRequest) -> Statement:
    """CREATE TABLE with column definitions, composite primary key and options."""
    definitions: list[str] = []
    params: list[Any] = []
    for spec in request.columns:
        definition, column_params = _column_definition(spec)
        definitions.append(definition)
        params.extend(column_params)

    primary_key = [quote_identifier(c.name) for c in request.columns if c.primary_key]
    if primary_key:
        definitions.append(f"PRIMARY KEY ({', '.join(primary_key)})")

    sql = "CREATE TABLE "
    if request.if_not_exists:
        sql += "IF NOT EXISTS "
    sql += f"{quote_identifier(request.table_name)} (\n  "
    sql += ",\n  ".join(definitions)
    sql += "\n)"

    if request.engine:
        sql += f" ENGINE={validate_identifier(request.engine)}"
    if request.charset:
        sql += f" DEFAULT CHARSET={validate_identifier(request.charset)}"
    if request.collation:
        sql += f" COLLATE={validate_identifier(request.collation)}"

    return Statement(sql, tuple(params))
