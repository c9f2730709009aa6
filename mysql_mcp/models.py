"""Result shapes shared by the executor, the handler and the formatters."""
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class QueryResult:
    """Normalized outcome of one executed statement.

    Row-returning statements carry column names and rows; mutations carry an
    empty column list and the affected-row count in ``row_count``.
    """

    columns: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()
    row_count: int = 0
    execution_time_ms: float = 0.0

    @property
    def is_mutation(self) -> bool:
        return not self.columns

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: str
    nullable: bool
    key: str = ""
    default: Optional[Any] = None


@dataclass(frozen=True)
class TableInfo:
    """Joined result of the column introspection and row-count statements."""

    name: str
    columns: tuple[ColumnInfo, ...] = field(default_factory=tuple)
    row_count: int = 0
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.name,
            "row_count": self.row_count,
            "columns": [
                {
                    "name": c.name,
                    "type": c.type,
                    "nullable": c.nullable,
                    "key": c.key,
                    "default": c.default,
                }
                for c in self.columns
            ],
        }
