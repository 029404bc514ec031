"""Operator visitor and condition-tree traversal.

``OperatorValidator`` walks every condition reachable from a statement, in
the order the renderer emits them (select-list subqueries, JOIN ON, WHERE,
HAVING), and rejects the first operator outside the allow-list.  Nested
statements are visited recursively, so a typo inside a correlated subquery
surfaces as the outer statement's render error, unchanged.
"""
from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from chainql.query.base import Statement
from chainql.query.clauses import SubqueryColumn
from chainql.query.conditions import (
    Atomic,
    ColumnComparison,
    Exists,
    Group,
    SubqueryIn,
)
from chainql.query.statements import DeleteQuery, SelectQuery, UpdateQuery

# ---------------------------------------------------------------------------
# Traversal helpers (shared with the structural validator)
# ---------------------------------------------------------------------------


def statement_groups(statement: Statement) -> Iterator[tuple[str, Group]]:
    """Yield ``(clause, group)`` for every root condition group, in emission order."""
    if isinstance(statement, SelectQuery):
        for join in statement.joins:
            yield "join", join.conditions
        yield "where", statement.where_clause
        yield "having", statement.having_clause
    elif isinstance(statement, (UpdateQuery, DeleteQuery)):
        yield "where", statement.where_clause


def select_subqueries(statement: Statement) -> Iterator[SubqueryColumn]:
    if isinstance(statement, SelectQuery):
        for item in statement.columns:
            if isinstance(item, SubqueryColumn):
                yield item


def iter_nodes(group: Group) -> Iterator[Any]:
    """Yield every node of ``group`` depth first (nested groups included)."""
    for condition in group.iter_conditions():
        yield condition
        if isinstance(condition, Group):
            yield from iter_nodes(condition)


# ---------------------------------------------------------------------------
# Operator visitor
# ---------------------------------------------------------------------------


class OperatorValidator:
    """Validates every operator in a statement tree."""

    def validate_statement(self, statement: Statement) -> None:
        """Raise on the first unknown operator.

        Raises:
            InvalidOperatorError: Naming the offending token and the nearest
                allow-listed operator.
        """
        for item in select_subqueries(statement):
            self.validate_statement(item.query)
        for _, group in statement_groups(statement):
            self.validate_group(group)

    def validate_group(self, group: Group) -> None:
        for node in iter_nodes(group):
            if isinstance(node, (Atomic, ColumnComparison)):
                node.operator.validate()
            elif isinstance(node, SubqueryIn):
                node.operator.validate()
                self.validate_statement(node.query)
            elif isinstance(node, Exists):
                self.validate_statement(node.query)
