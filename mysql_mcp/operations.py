"""Operation requests accepted by the server.

Every tool call is turned into exactly one of these request models before the
access gate sees it. The ``kind`` field tags the variant.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)


class OperationKind(str, Enum):
    LIST_TABLES = "list_tables"
    DESCRIBE_TABLE = "describe_table"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE_TABLE = "create_table"


READ_KINDS: frozenset[OperationKind] = frozenset(
    {OperationKind.LIST_TABLES, OperationKind.DESCRIBE_TABLE, OperationKind.SELECT}
)
MUTATION_KINDS: frozenset[OperationKind] = frozenset(
    {
        OperationKind.INSERT,
        OperationKind.UPDATE,
        OperationKind.DELETE,
        OperationKind.CREATE_TABLE,
    }
)

# Values that may be bound to a placeholder. Objects and arrays are rejected.
ColumnValue = Union[
    StrictBool, StrictInt, StrictFloat, Decimal, datetime, date, StrictStr, None
]


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @property
    def target_table(self) -> Optional[str]:
        return getattr(self, "table_name", None)

    def referenced_columns(self) -> list[str]:
        """Column identifiers that will be interpolated into the statement."""
        return []


class ListTablesRequest(_Request):
    kind: Literal[OperationKind.LIST_TABLES] = OperationKind.LIST_TABLES


class DescribeTableRequest(_Request):
    kind: Literal[OperationKind.DESCRIBE_TABLE] = OperationKind.DESCRIBE_TABLE
    table_name: str = Field(..., description="Name of the table to describe")


class SelectRequest(_Request):
    kind: Literal[OperationKind.SELECT] = OperationKind.SELECT
    table_name: str = Field(..., description="Name of the table to query")
    columns: Optional[list[str]] = Field(
        default=None, description="Specific columns to select (default: all)"
    )
    where: Optional[str] = Field(
        default=None,
        description="WHERE clause conditions, without the WHERE keyword. "
        "Use ? for values passed in where_params.",
    )
    where_params: list[ColumnValue] = Field(
        default_factory=list, description="Values bound to ? placeholders in where"
    )
    order_by: Optional[str] = Field(
        default=None, description="ORDER BY clause, without the ORDER BY keyword"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum rows to return (capped by the server row limit; "
        "0 or omitted means the server row limit)",
    )
    offset: Optional[int] = Field(default=None, ge=0, description="Rows to skip")

    def referenced_columns(self) -> list[str]:
        return list(self.columns or [])


class InsertRequest(_Request):
    kind: Literal[OperationKind.INSERT] = OperationKind.INSERT
    table_name: str = Field(..., description="Name of the table to insert into")
    data: dict[str, ColumnValue] = Field(
        ..., min_length=1, description="Column/value pairs for the new row"
    )

    def referenced_columns(self) -> list[str]:
        return list(self.data)


class UpdateRequest(_Request):
    kind: Literal[OperationKind.UPDATE] = OperationKind.UPDATE
    table_name: str = Field(..., description="Name of the table to update")
    data: dict[str, ColumnValue] = Field(
        ..., min_length=1, description="Column/value pairs to set"
    )
    where: str = Field(
        default="",
        description="WHERE clause identifying the rows to update (required). "
        "Use ? for values passed in where_params.",
    )
    where_params: list[ColumnValue] = Field(
        default_factory=list, description="Values bound to ? placeholders in where"
    )

    def referenced_columns(self) -> list[str]:
        return list(self.data)


class DeleteRequest(_Request):
    kind: Literal[OperationKind.DELETE] = OperationKind.DELETE
    table_name: str = Field(..., description="Name of the table to delete from")
    where: str = Field(
        default="",
        description="WHERE clause identifying the rows to delete (required). "
        "Use ? for values passed in where_params.",
    )
    where_params: list[ColumnValue] = Field(
        default_factory=list, description="Values bound to ? placeholders in where"
    )


class ColumnSpec(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Column name")
    type: str = Field(..., description="MySQL column type, e.g. INT, VARCHAR, DATETIME")
    length: Optional[int] = Field(
        default=None, ge=1, description="Type length, e.g. 255 for VARCHAR(255)"
    )
    nullable: bool = Field(default=True, description="Allow NULL values")
    primary_key: bool = Field(default=False, description="Part of the primary key")
    auto_increment: bool = Field(default=False, description="AUTO_INCREMENT column")
    unique: bool = Field(default=False, description="UNIQUE constraint")
    default: ColumnValue = Field(default=None, description="Default value")


class CreateTableRequest(_Request):
    kind: Literal[OperationKind.CREATE_TABLE] = OperationKind.CREATE_TABLE
    table_name: str = Field(default="", description="Name of the table to create")
    columns: list[ColumnSpec] = Field(
        default_factory=list, description="Ordered column definitions"
    )
    if_not_exists: bool = Field(default=False, description="Add IF NOT EXISTS")
    engine: Optional[str] = Field(default=None, description="Storage engine, e.g. InnoDB")
    charset: Optional[str] = Field(default=None, description="Default character set")
    collation: Optional[str] = Field(default=None, description="Default collation")

    def referenced_columns(self) -> list[str]:
        return [c.name for c in self.columns]


OperationRequest = Annotated[
    Union[
        ListTablesRequest,
        DescribeTableRequest,
        SelectRequest,
        InsertRequest,
        UpdateRequest,
        DeleteRequest,
        CreateTableRequest,
    ],
    Field(discriminator="kind"),
]
