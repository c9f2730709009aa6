"""Per-request access gate.

Decides whether an operation request may proceed before any SQL is built.
Checks run in a fixed order and the first failure wins:

1. feature flag for the operation kind
2. read-only mode (mutation kinds only)
3. table block/allow lists
4. request shape (identifiers, required filter, column definitions)
"""
import re
from dataclasses import dataclass
from typing import Optional

from mysql_mcp.governance.policy import AccessPolicy
from mysql_mcp.operations import (
    MUTATION_KINDS,
    CreateTableRequest,
    DeleteRequest,
    OperationKind,
    OperationRequest,
    SelectRequest,
    UpdateRequest,
)
from mysql_mcp.sql.fragments import count_placeholders
from mysql_mcp.utils.audit import AuditLogger
from mysql_mcp.utils.errors import DenialReason

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Type names only; length goes in ColumnSpec.length
COLUMN_TYPE_PATTERN = re.compile(r"^[A-Za-z]+( [A-Za-z]+)*$")


def is_valid_identifier(name: Optional[str]) -> bool:
    return bool(name) and IDENTIFIER_PATTERN.match(name) is not None


@dataclass(frozen=True)
class GateDecision:
    """Allow(request) or Deny(reason). Lives for one request."""

    allowed: bool
    request: OperationRequest
    reason: Optional[DenialReason] = None
    message: str = ""

    @classmethod
    def allow(cls, request: OperationRequest) -> "GateDecision":
        return cls(allowed=True, request=request)

    @classmethod
    def deny(
        cls, request: OperationRequest, reason: DenialReason, message: str
    ) -> "GateDecision":
        return cls(allowed=False, request=request, reason=reason, message=message)


class AccessGate:
    """Evaluates requests against an immutable AccessPolicy snapshot."""

    def __init__(self, policy: AccessPolicy, audit: AuditLogger):
        self._policy = policy
        self._audit = audit

    @property
    def policy(self) -> AccessPolicy:
        return self._policy

    def check(self, request: OperationRequest) -> GateDecision:
        decision = self._evaluate(request)
        if not decision.allowed:
            table = request.target_table
            if decision.reason.is_authorization:
                self._audit.security(request.kind, table, decision.reason.value)
            else:
                self._audit.error(
                    f"{request.kind.value} validation",
                    ValueError(decision.message),
                )
        return decision

    def _evaluate(self, request: OperationRequest) -> GateDecision:
        kind = request.kind
        policy = self._policy

        if not policy.is_feature_enabled(kind):
            return GateDecision.deny(
                request,
                DenialReason.FEATURE_DISABLED,
                f"{kind.value} operations are disabled",
            )

        if kind in MUTATION_KINDS and policy.read_only:
            return GateDecision.deny(
                request, DenialReason.READ_ONLY_MODE, "Server is in read-only mode"
            )

        table = request.target_table
        # ListTables carries no table; its result is filtered after execution
        if kind is not OperationKind.LIST_TABLES and table:
            if table in policy.blocked_tables:
                return GateDecision.deny(
                    request,
                    DenialReason.TABLE_BLOCKED,
                    f"Access to table '{table}' is blocked",
                )
            if not policy.is_table_allowed(table):
                return GateDecision.deny(
                    request,
                    DenialReason.TABLE_NOT_ALLOWED,
                    f"Access to table '{table}' is not allowed",
                )

        problem = self._shape_problem(request)
        if problem:
            return GateDecision.deny(request, DenialReason.INVALID_REQUEST, problem)

        return GateDecision.allow(request)

    def _shape_problem(self, request: OperationRequest) -> Optional[str]:
        """Structural requirements per kind. Returns a message or None."""
        kind = request.kind
        if kind is OperationKind.LIST_TABLES:
            return None

        if isinstance(request, CreateTableRequest):
            if not request.table_name or not request.columns:
                return "Table name and columns are required"

        table = request.target_table
        if not is_valid_identifier(table):
            return (
                f"Invalid table name '{table}'. Only letters, digits and "
                "underscores are allowed, and it cannot start with a digit."
            )

        for column in request.referenced_columns():
            if not is_valid_identifier(column):
                return (
                    f"Invalid column name '{column}'. Only letters, digits and "
                    "underscores are allowed, and it cannot start with a digit."
                )

        if isinstance(request, (UpdateRequest, DeleteRequest)) and not request.where:
            return f"{kind.value} requires a non-empty WHERE clause"

        if isinstance(request, (SelectRequest, UpdateRequest, DeleteRequest)):
            problem = self._placeholder_problem(request)
            if problem:
                return problem

        if isinstance(request, CreateTableRequest):
            for spec in request.columns:
                if not COLUMN_TYPE_PATTERN.match(spec.type):
                    return f"Invalid type '{spec.type}' for column '{spec.name}'"
            for label in ("engine", "charset", "collation"):
                value = getattr(request, label)
                if value is not None and not is_valid_identifier(value):
                    return f"Invalid {label} '{value}'"

        return None

    @staticmethod
    def _placeholder_problem(request: OperationRequest) -> Optional[str]:
        """Bound values must match the ``?`` placeholders one to one."""
        if request.where_params and not request.where:
            return "where_params were given without a WHERE clause"
        expected = count_placeholders(request.where)
        if isinstance(request, SelectRequest):
            expected += count_placeholders(request.order_by)
        if expected != len(request.where_params):
            return (
                f"Filter has {expected} placeholder(s) but "
                f"{len(request.where_params)} where_params value(s) were given"
            )
        return None
