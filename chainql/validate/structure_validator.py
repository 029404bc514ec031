"""Statement-level structural validator.

Checks the rules that are not about individual operators: the mandatory
predicate on UPDATE / DELETE, the shared batch column set on INSERT,
required clauses, and the shape of embedded subqueries.
"""

from __future__ import annotations

from chainql.errors import (
    CompilationError,
    IncompleteStatementError,
    MalformedSubqueryError,
    MismatchedColumnsError,
    MissingPredicateError,
)
from chainql.query.base import Statement
from chainql.query.conditions import Exists, Group, RawCondition, SubqueryIn
from chainql.query.statements import DeleteQuery, InsertQuery, SelectQuery, UpdateQuery
from chainql.validate.operator_validator import iter_nodes, select_subqueries, statement_groups


class StructureValidator:
    """Validates structural constraints on a statement and its subqueries."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_statement(self, statement: Statement) -> None:
        """Raise on the first structural violation.

        Raises:
            MissingPredicateError: UPDATE / DELETE without WHERE or
                ``all_rows()``.
            MismatchedColumnsError: A batch INSERT row with a different
                column set.
            IncompleteStatementError: INSERT without rows or UPDATE
                without SET.
            MalformedSubqueryError: A subquery that cannot be embedded
                where it is used.
            CompilationError: A raw fragment whose ``?`` count does not
                match its parameters.
        """
        self.validate_predicate(statement)
        if isinstance(statement, InsertQuery):
            self.validate_rows(statement)
        if isinstance(statement, UpdateQuery) and not statement.assignments:
            raise IncompleteStatementError("UPDATE", "at least one SET assignment")

        for item in select_subqueries(statement):
            self._validate_embedded(item.query, f"scalar subquery '{item.alias}'", single_column=True)
        for clause, group in statement_groups(statement):
            self.validate_group(group, clause)

    def validate_predicate(self, statement: Statement) -> None:
        if not isinstance(statement, (UpdateQuery, DeleteQuery)):
            return
        if statement.where_clause.is_empty and not statement.all_rows_marker:
            raise MissingPredicateError(statement.keyword, statement.table)

    def validate_rows(self, statement: InsertQuery) -> None:
        if not statement.rows:
            raise IncompleteStatementError("INSERT", "at least one row of values")
        expected = statement.column_names
        if not expected:
            raise IncompleteStatementError("INSERT", "at least one column")
        for index, row in enumerate(statement.rows[1:], start=1):
            got = [column for column, _ in row]
            if set(got) != set(expected):
                raise MismatchedColumnsError(expected, got, index)

    def validate_group(self, group: Group, clause: str = "where") -> None:
        for node in iter_nodes(group):
            if isinstance(node, SubqueryIn):
                self._validate_embedded(
                    node.query,
                    f"{node.operator.symbol} subquery on '{node.column}'",
                    single_column=True,
                )
            elif isinstance(node, Exists):
                self._validate_embedded(node.query, "EXISTS subquery", single_column=False)
            elif isinstance(node, RawCondition):
                markers = node.fragment.count("?")
                if markers != len(node.params):
                    raise CompilationError(
                        f"Raw fragment {node.fragment!r} has {markers} '?' markers "
                        f"but {len(node.params)} parameters.",
                        clause=clause,
                    )

    # ------------------------------------------------------------------
    # Subqueries
    # ------------------------------------------------------------------

    def _validate_embedded(self, inner: Statement, usage: str, single_column: bool) -> None:
        if not isinstance(inner, SelectQuery):
            raise MalformedSubqueryError(
                f"Only SELECT statements can be embedded; {usage} holds "
                f"{inner.keyword or type(inner).__name__}.",
                details={"usage": usage, "statement": inner.keyword},
            )
        # An empty select list (SELECT *) passes; its width is unknown without a schema.
        if single_column and len(inner.columns) > 1:
            raise MalformedSubqueryError(
                f"The {usage} must select a single column; it selects {len(inner.columns)}.",
                details={"usage": usage, "columns": len(inner.columns)},
            )
        self.validate_statement(inner)
