"""chainQL – a fluent, immutable SQL builder with deferred validation.

Chain Calls. Render Once.

Public API
----------
``table`` / ``select_from``, ``insert``, ``update``, ``delete``
    Table-entry functions that start a statement chain::

        sql, params = (
            table("users")
            .select("id", "name")
            .where(("age", GT, 18))
            .and_where(("status", "active"))
            .to_sql()
        )
        # SELECT id, name FROM users WHERE age > $1 AND status = $2

``transaction``
    Context manager that begins, commits, or rolls back a
    :class:`Transaction` on a caller-supplied session.

Re-exported types
-----------------
Statement builders, condition and clause models, ``Value``, ``Operator``
and its constants, ``DialectProfile``, ``CompiledSQL``, and all error
classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from chainql.compile.registry import CompilerFactory

    @CompilerFactory.register("oracle")
    class OracleCompiler(SQLCompiler):
        ...

After registration, ``to_sql("oracle")`` picks it up automatically.
"""

from __future__ import annotations

from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.builder import StatementRenderer, render
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.registry import CompilerFactory
from chainql.compile.sqlite import SQLiteCompiler
from chainql.errors import (
    ChainQLError,
    CompilationError,
    IncompleteStatementError,
    InvalidOperatorError,
    MalformedSubqueryError,
    MismatchedColumnsError,
    MissingPredicateError,
    TransactionStateError,
    ValidationError,
)
from chainql.query.base import Statement, StatementKind
from chainql.query.clauses import (
    Aggregate,
    AggregateFunction,
    Column,
    JoinClause,
    JoinKind,
    RawExpression,
    SortDirection,
    SubqueryColumn,
    avg,
    col,
    count,
    count_distinct,
    max_,
    min_,
    raw,
    subquery_as,
    sum_,
)
from chainql.query.conditions import (
    Atomic,
    ColumnComparison,
    Connector,
    Exists,
    Group,
    RawCondition,
    SubqueryIn,
)
from chainql.query.dialect import DialectProfile, PlaceholderStyle
from chainql.query.operators import (
    EQ,
    GT,
    GTE,
    ILIKE,
    IN,
    IS_NOT_NULL,
    IS_NULL,
    LIKE,
    LT,
    LTE,
    NE,
    NOT_IN,
    Operator,
)
from chainql.query.statements import (
    DeleteQuery,
    InsertQuery,
    SelectQuery,
    UpdateQuery,
    delete,
    insert,
    select_from,
    table,
    update,
)
from chainql.query.value import Value, ValueKind
from chainql.transaction.coordinator import (
    IsolationLevel,
    Transaction,
    TransactionState,
    transaction,
)
from chainql.validate.validator import StatementValidator

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("postgres", PostgresCompiler)
CompilerFactory.register_class("sqlite", SQLiteCompiler)
CompilerFactory.register_class("mysql", MySQLCompiler)

__all__ = [
    # Entry points
    "table",
    "select_from",
    "insert",
    "update",
    "delete",
    "transaction",
    # Statements
    "Statement",
    "StatementKind",
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    # Values & operators
    "Value",
    "ValueKind",
    "Operator",
    "EQ",
    "NE",
    "LT",
    "LTE",
    "GT",
    "GTE",
    "LIKE",
    "ILIKE",
    "IN",
    "NOT_IN",
    "IS_NULL",
    "IS_NOT_NULL",
    # Conditions
    "Atomic",
    "ColumnComparison",
    "Connector",
    "Exists",
    "Group",
    "RawCondition",
    "SubqueryIn",
    # Clauses
    "Aggregate",
    "AggregateFunction",
    "Column",
    "JoinClause",
    "JoinKind",
    "RawExpression",
    "SortDirection",
    "SubqueryColumn",
    "avg",
    "col",
    "count",
    "count_distinct",
    "max_",
    "min_",
    "raw",
    "subquery_as",
    "sum_",
    # Dialects & compilation
    "DialectProfile",
    "PlaceholderStyle",
    "CompiledSQL",
    "CompilerFactory",
    "SQLCompiler",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
    "StatementRenderer",
    "StatementValidator",
    "render",
    # Transactions
    "IsolationLevel",
    "Transaction",
    "TransactionState",
    # Errors
    "ChainQLError",
    "ValidationError",
    "InvalidOperatorError",
    "MissingPredicateError",
    "MismatchedColumnsError",
    "MalformedSubqueryError",
    "IncompleteStatementError",
    "TransactionStateError",
    "CompilationError",
]
