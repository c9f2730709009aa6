"""Error taxonomy and centralized error handling with actionable messages."""
import asyncio
from enum import Enum
from typing import Optional

import pymysql
from pymysql.constants import CR, ER


class DenialReason(str, Enum):
    """Reason codes produced locally by the access gate."""

    FEATURE_DISABLED = "FeatureDisabled"
    READ_ONLY_MODE = "ReadOnlyMode"
    TABLE_BLOCKED = "TableBlocked"
    TABLE_NOT_ALLOWED = "TableNotAllowed"
    INVALID_REQUEST = "InvalidRequest"

    @property
    def is_authorization(self) -> bool:
        return self is not DenialReason.INVALID_REQUEST


class ConfigurationError(ValueError):
    """Startup configuration could not be resolved or validated."""


class InvalidIdentifierError(ValueError):
    """A table or column name failed the identifier check."""


class OperationDenied(Exception):
    """A request was rejected by the access gate; no SQL was executed."""

    def __init__(self, reason: DenialReason, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.table = table


def _mysql_error_code(e: pymysql.err.MySQLError) -> Optional[int]:
    if e.args and isinstance(e.args[0], int):
        return e.args[0]
    return None


def _mysql_error_message(e: pymysql.err.MySQLError) -> str:
    if len(e.args) > 1:
        return str(e.args[1])
    return str(e)


def handle_error(e: Exception) -> str:
    """Return a human-readable, actionable error message.

    Distinguishes between:
    - Access gate denials (reason code, nothing was executed)
    - Connectivity problems (server down, connection lost)
    - Schema / syntax / constraint errors reported by MySQL
    """
    if isinstance(e, OperationDenied):
        return f"Error [{e.reason.value}]: {e.message}"

    if isinstance(e, InvalidIdentifierError):
        return f"Error [{DenialReason.INVALID_REQUEST.value}]: {e}"

    if isinstance(e, pymysql.err.MySQLError):
        code = _mysql_error_code(e)
        msg = _mysql_error_message(e)

        if code in (CR.CR_CONN_HOST_ERROR, CR.CR_SERVER_GONE_ERROR, CR.CR_SERVER_LOST):
            return (
                "Error: Lost connection to MySQL. Possible causes:\n"
                "- The server is down or unreachable\n"
                "- The connection was idle too long and was closed by the server\n"
                f"Retry the request once the server is reachable. ({msg})"
            )
        if code == ER.ACCESS_DENIED_ERROR:
            return (
                "Error: MySQL rejected the configured credentials. "
                "Check MYSQL_USER and MYSQL_PASSWORD."
            )
        if code == ER.BAD_DB_ERROR:
            return f"Error: Unknown database. Check MYSQL_DATABASE. ({msg})"
        if code == ER.NO_SUCH_TABLE:
            return (
                f"Error: Table does not exist: {msg}. "
                "Use mysql_list_tables to discover available tables."
            )
        if code == ER.BAD_FIELD_ERROR:
            return (
                f"Error: Unknown column: {msg}. "
                "Use mysql_describe_table to see the table's columns."
            )
        if code == ER.PARSE_ERROR:
            return f"Error: SQL syntax error: {msg}. Check the where/order_by text."
        if code == ER.DUP_ENTRY:
            return f"Error: Duplicate entry violates a unique key: {msg}"
        if code in (ER.ROW_IS_REFERENCED_2, ER.NO_REFERENCED_ROW_2):
            return f"Error: Foreign key constraint failed: {msg}"

        return f"Error: Operation failed ({type(e).__name__}): {msg}"

    if isinstance(e, (TimeoutError, asyncio.TimeoutError)):
        return (
            "Error: Timed out waiting for a MySQL connection. "
            "The pool may be exhausted or the server unreachable."
        )

    return f"Error: Operation failed ({type(e).__name__}): {e}"
