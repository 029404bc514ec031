"""Custom exception hierarchy for chainQL.

All public errors inherit from ChainQLError so callers can catch the base
class for any chainQL-specific failure.  Errors describe caller usage
mistakes; none of them are transient and none should be retried.
"""
from __future__ import annotations

from typing import Any


class ChainQLError(Exception):
    """Base exception for all chainQL errors."""


class ValidationError(ChainQLError):
    """Raised when a statement fails deferred validation at render time.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. MISSING_PREDICATE).
        details: Extra structured context about the failure.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidOperatorError(ValidationError):
    """Raised when a condition uses an operator outside the allow-list.

    Args:
        token: The operator text exactly as the caller supplied it.
        suggestion: The nearest allow-listed operator, if any.
    """

    def __init__(self, token: str, suggestion: str | None = None) -> None:
        if suggestion is not None:
            hint = f"Did you mean '{suggestion}'?"
        else:
            hint = f'Use Operator.custom("{token}") for database-specific operators.'
        super().__init__(
            f"Unknown operator '{token}'. {hint}",
            code="INVALID_OPERATOR",
            details={"token": token, "suggestion": suggestion},
        )
        self.token = token
        self.suggestion = suggestion


class MissingPredicateError(ValidationError):
    """Raised when UPDATE / DELETE reaches render without a WHERE condition
    and without the explicit ``all_rows()`` marker."""

    def __init__(self, statement: str, table: str) -> None:
        super().__init__(
            f"{statement} on '{table}' has no WHERE condition. Add a condition "
            f"or call .all_rows() to affect every row explicitly.",
            code="MISSING_PREDICATE",
            details={"statement": statement, "table": table},
        )


class MismatchedColumnsError(ValidationError):
    """Raised when a batch INSERT row does not match the batch column set."""

    def __init__(
        self,
        expected: list[str],
        got: list[str],
        row_index: int,
    ) -> None:
        super().__init__(
            f"Row {row_index} has columns {got}; expected {expected}.",
            code="MISMATCHED_COLUMNS",
            details={"expected": expected, "got": got, "row_index": row_index},
        )


class MalformedSubqueryError(ValidationError):
    """Raised when a nested statement cannot be embedded where it was used."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="MALFORMED_SUBQUERY", details=details or {})


class IncompleteStatementError(ValidationError):
    """Raised when a statement is missing a clause it cannot render without
    (INSERT without rows, UPDATE without SET)."""

    def __init__(self, statement: str, missing: str) -> None:
        super().__init__(
            f"{statement} requires {missing}.",
            code="INCOMPLETE_STATEMENT",
            details={"statement": statement, "missing": missing},
        )


class TransactionStateError(ChainQLError):
    """Raised when a transaction operation is not legal in the current state.

    Args:
        message: Human-readable description.
        state: The transaction state at the time of the call.
        savepoint: The savepoint name involved, if any.
    """

    code = "TRANSACTION_STATE"

    def __init__(
        self,
        message: str,
        state: str,
        savepoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.state = state
        self.savepoint = savepoint


class CompilationError(ChainQLError):
    """Raised when SQL compilation fails for a reason outside the validation
    taxonomy (unknown dialect target, malformed raw fragment).

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause
