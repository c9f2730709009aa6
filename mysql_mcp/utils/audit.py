"""Operational, security and error logging for the request path.

An AuditLogger is constructed once at startup and handed to the access gate
and the query handler; nothing in the request path looks up a logger on its
own.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from mysql_mcp.models import QueryResult
from mysql_mcp.operations import OperationKind

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    """Install root handlers: stderr always, plus an optional log file.

    stdout is reserved for the stdio MCP transport.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(Path(log_file).resolve()))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class AuditLogger:
    """Structured events for the gate and the handler.

    Security events go to a dedicated ``<name>.security`` logger so they can be
    routed separately from ordinary operational logging.
    """

    def __init__(self, name: str = "mysql_mcp"):
        self._log = logging.getLogger(name)
        self._security = logging.getLogger(f"{name}.security")

    def success(
        self, kind: OperationKind, table: Optional[str], result: QueryResult
    ) -> None:
        count_label = "affected_rows" if result.is_mutation else "row_count"
        self._log.info(
            f"{kind.value} completed",
            extra={
                "operation": kind.value,
                "table": table,
                count_label: result.row_count,
                "execution_time_ms": result.execution_time_ms,
            },
        )

    def security(self, kind: OperationKind, table: Optional[str], reason: str) -> None:
        self._security.warning(
            f"Security event: {kind.value} denied "
            f"(table={table or '-'}, reason={reason})",
            extra={"operation": kind.value, "table": table, "reason": reason},
        )

    def error(
        self, context: str, exc: BaseException, statement: Optional[str] = None
    ) -> None:
        """Log a failure. Only the statement text is logged, never bound values."""
        msg = f"{context} failed: {type(exc).__name__}: {exc}"
        if statement:
            msg += f" [statement: {' '.join(statement.split())}]"
        self._log.error(msg, extra={"context": context, "statement": statement})

    def query(self, statement: str, param_count: int, elapsed_ms: float) -> None:
        self._log.debug(
            f"SQL executed in {elapsed_ms:.1f}ms ({param_count} bound params): "
            f"{' '.join(statement.split())}"
        )
