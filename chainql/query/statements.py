"""Immutable statement builders.

Each builder exposes only the operations legal for its statement kind and
returns a fresh model from every call::

    base = table("users").select("id", "name")
    adults = base.where(("age", GT, 18))       # base is unchanged
    admins = base.where(("role", "admin"))

Validation (operators, predicates, batch shape) is deferred to ``to_sql``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from chainql.query.base import Statement, StatementKind
from chainql.query.clauses import (
    ColumnSelector,
    JoinClause,
    JoinKind,
    OrderByItem,
    SortDirection,
    to_selector,
)
from chainql.query.conditions import ConditionBuilderMixin, Connector, Group
from chainql.query.value import Value

#: One row / SET map: ordered ``(column, value)`` pairs.
Assignments = tuple[tuple[str, Value], ...]


def _flatten(items: tuple[Any, ...]) -> tuple[Any, ...]:
    """Accept both ``f("a", "b")`` and ``f(("a", "b"))``."""
    if len(items) == 1 and isinstance(items[0], (tuple, list)):
        return tuple(items[0])
    return items


def _assignments(data: Mapping[str, Any]) -> Assignments:
    return tuple((str(column), Value.of(value)) for column, value in data.items())


def _non_negative(name: str, n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {n!r}.")
    return n


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


class SelectQuery(ConditionBuilderMixin, Statement):
    """``SELECT`` builder.

    Attributes:
        columns: Select list; empty means ``*``.
        is_distinct: Emit ``SELECT DISTINCT``.
        joins: JOIN clauses in append order.
        where_clause: Root WHERE group.
        group_by_columns: GROUP BY columns.
        having_clause: Root HAVING group.
        order_by_items: ORDER BY items in append order.
        limit_count: LIMIT value.
        offset_count: OFFSET value.
    """

    keyword: ClassVar[str] = "SELECT"
    kind: ClassVar[StatementKind] = StatementKind.ROWS

    columns: tuple[ColumnSelector, ...] = ()
    is_distinct: bool = False
    joins: tuple[JoinClause, ...] = ()
    where_clause: Group = Group()
    group_by_columns: tuple[str, ...] = ()
    having_clause: Group = Group()
    order_by_items: tuple[OrderByItem, ...] = ()
    limit_count: int | None = None
    offset_count: int | None = None

    def _filter_group(self) -> Group:
        return self.where_clause

    def _with_filter_group(self, group: Group) -> SelectQuery:
        return self.model_copy(update={"where_clause": group})

    # -- select list -----------------------------------------------------

    def select(self, *columns: Any) -> SelectQuery:
        """Replace the select list; no columns means ``*``."""
        items = tuple(to_selector(c) for c in _flatten(columns))
        return self.model_copy(update={"columns": items})

    def select_all(self) -> SelectQuery:
        return self.model_copy(update={"columns": ()})

    def add_select(self, *columns: Any) -> SelectQuery:
        """Append to the select list."""
        items = tuple(to_selector(c) for c in _flatten(columns))
        return self.model_copy(update={"columns": (*self.columns, *items)})

    def distinct(self) -> SelectQuery:
        return self.model_copy(update={"is_distinct": True})

    # -- joins -----------------------------------------------------------

    def join(self, table: str, *args: Any, kind: JoinKind | str = JoinKind.INNER) -> SelectQuery:
        """Append a JOIN.

        Accepted forms::

            .join("posts", "users.id", "posts.user_id")          # equality
            .join("posts", "users.id", "<>", "posts.user_id")    # operator
            .join("posts", lambda j: j.on(...).or_on(...))       # ON group

        Raises:
            TypeError: If a non-CROSS join has no ON condition, or a CROSS
                join is given one.
        """
        kind = JoinKind(kind.upper()) if isinstance(kind, str) else kind
        clause = JoinClause(kind=kind, table=table)
        if kind is JoinKind.CROSS:
            if args:
                raise TypeError(f"CROSS JOIN takes no ON condition, got {args!r}.")
        elif len(args) == 1 and callable(args[0]):
            clause = args[0](clause)
            if not isinstance(clause, JoinClause):
                raise TypeError("A join callable must return the JoinClause it was given.")
        elif len(args) in (2, 3):
            clause = clause.on(*args)
        else:
            raise TypeError(f"Unsupported join arguments for {kind.value} JOIN: {args!r}")
        return self.model_copy(update={"joins": (*self.joins, clause)})

    def inner_join(self, table: str, *args: Any) -> SelectQuery:
        return self.join(table, *args, kind=JoinKind.INNER)

    def left_join(self, table: str, *args: Any) -> SelectQuery:
        return self.join(table, *args, kind=JoinKind.LEFT)

    def right_join(self, table: str, *args: Any) -> SelectQuery:
        return self.join(table, *args, kind=JoinKind.RIGHT)

    def full_join(self, table: str, *args: Any) -> SelectQuery:
        return self.join(table, *args, kind=JoinKind.FULL)

    def cross_join(self, table: str) -> SelectQuery:
        return self.join(table, kind=JoinKind.CROSS)

    # -- grouping --------------------------------------------------------

    def group_by(self, *columns: str) -> SelectQuery:
        return self.model_copy(update={"group_by_columns": tuple(_flatten(columns))})

    def having(self, condition: Any) -> SelectQuery:
        """Append a HAVING condition with AND (same shorthand as WHERE)."""
        group = self.having_clause.append(condition, Connector.AND)
        return self.model_copy(update={"having_clause": group})

    def and_having(self, condition: Any) -> SelectQuery:
        return self.having(condition)

    def or_having(self, condition: Any) -> SelectQuery:
        group = self.having_clause.append(condition, Connector.OR)
        return self.model_copy(update={"having_clause": group})

    # -- ordering & paging -----------------------------------------------

    def order_by(self, column: str, direction: SortDirection | str = SortDirection.ASC) -> SelectQuery:
        direction = SortDirection(direction.upper()) if isinstance(direction, str) else direction
        item = OrderByItem(column=column, direction=direction)
        return self.model_copy(update={"order_by_items": (*self.order_by_items, item)})

    def order_by_desc(self, column: str) -> SelectQuery:
        return self.order_by(column, SortDirection.DESC)

    def limit(self, count: int) -> SelectQuery:
        return self.model_copy(update={"limit_count": _non_negative("limit", count)})

    def offset(self, count: int) -> SelectQuery:
        return self.model_copy(update={"offset_count": _non_negative("offset", count)})


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------


class InsertQuery(Statement):
    """``INSERT INTO`` builder; one or many rows sharing one column set.

    Attributes:
        rows: Rows in append order, each as ordered ``(column, value)``
            pairs.  The first row fixes the batch column order.
    """

    keyword: ClassVar[str] = "INSERT"
    kind: ClassVar[StatementKind] = StatementKind.AFFECTED_ROWS

    rows: tuple[Assignments, ...] = ()

    def values(self, data: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> InsertQuery:
        """Append one row (a mapping) or several rows (an iterable of mappings)."""
        if isinstance(data, Mapping):
            return self.values_many([data])
        return self.values_many(data)

    def values_many(self, rows: Iterable[Mapping[str, Any]]) -> InsertQuery:
        new_rows = tuple(_assignments(row) for row in rows)
        return self.model_copy(update={"rows": (*self.rows, *new_rows)})

    @property
    def column_names(self) -> list[str]:
        """The batch column set (the first row's keys in order)."""
        if not self.rows:
            return []
        return [column for column, _ in self.rows[0]]


# ---------------------------------------------------------------------------
# UPDATE / DELETE
# ---------------------------------------------------------------------------


class _DestructiveStatement(ConditionBuilderMixin, Statement):
    """Shared WHERE handling for statements that require a predicate.

    Attributes:
        where_clause: Root WHERE group.
        all_rows_marker: Explicit opt-in to affect every row; never set by
            default.
    """

    kind: ClassVar[StatementKind] = StatementKind.AFFECTED_ROWS

    where_clause: Group = Group()
    all_rows_marker: bool = False

    def _filter_group(self) -> Group:
        return self.where_clause

    def _with_filter_group(self, group: Group) -> Any:
        return self.model_copy(update={"where_clause": group})

    def all_rows(self) -> Any:
        """Explicitly target every row in the table.

        Without this marker (or a WHERE condition) rendering fails with
        :class:`~chainql.errors.MissingPredicateError`.
        """
        return self.model_copy(update={"all_rows_marker": True})


class UpdateQuery(_DestructiveStatement):
    """``UPDATE ... SET ... WHERE`` builder.

    Attributes:
        assignments: Ordered SET map.
    """

    keyword: ClassVar[str] = "UPDATE"

    assignments: Assignments = ()

    def set(self, data: Mapping[str, Any] | None = None, **columns: Any) -> UpdateQuery:
        """Add SET assignments; a repeated column keeps its first position."""
        merged = dict(self.assignments)
        merged.update(_assignments(data or {}))
        merged.update(_assignments(columns))
        return self.model_copy(update={"assignments": tuple(merged.items())})


class DeleteQuery(_DestructiveStatement):
    """``DELETE FROM ... WHERE`` builder."""

    keyword: ClassVar[str] = "DELETE"


# ---------------------------------------------------------------------------
# Table-entry functions
# ---------------------------------------------------------------------------


def table(name: str) -> SelectQuery:
    """Start a SELECT against ``name`` (``SELECT *`` until columns are chosen)."""
    return SelectQuery(table=name)


select_from = table


def insert(name: str) -> InsertQuery:
    return InsertQuery(table=name)


def update(name: str) -> UpdateQuery:
    return UpdateQuery(table=name)


def delete(name: str) -> DeleteQuery:
    return DeleteQuery(table=name)
