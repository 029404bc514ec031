"""Clause containers: select items, joins and ordering.

Everything here is a frozen Pydantic model; builders produce new instances
instead of mutating, matching the statement models that hold them.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag

from chainql.query.base import Statement
from chainql.query.conditions import ColumnComparison, Connector, Group, to_condition
from chainql.query.operators import EQ, Operator

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class AggregateFunction(str, Enum):
    """Built-in aggregate functions."""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class JoinKind(str, Enum):
    """SQL join types."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"
    CROSS = "CROSS"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# ---------------------------------------------------------------------------
# Select items
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """A plain column reference (``"users.id"``, ``"*"``)."""

    model_config = _FROZEN

    name: str
    alias: str | None = None

    def label(self, alias: str) -> Column:
        return self.model_copy(update={"alias": alias})


class Aggregate(BaseModel):
    """``FUNC([DISTINCT] column)``; a missing column means ``*``."""

    model_config = _FROZEN

    function: AggregateFunction
    column: str | None = None
    distinct: bool = False
    alias: str | None = None

    def label(self, alias: str) -> Aggregate:
        return self.model_copy(update={"alias": alias})


class RawExpression(BaseModel):
    """Trusted expression text emitted verbatim (``"LOWER(email)"``)."""

    model_config = _FROZEN

    sql: str
    alias: str | None = None

    def label(self, alias: str) -> RawExpression:
        return self.model_copy(update={"alias": alias})


class SubqueryColumn(BaseModel):
    """A scalar subquery in the select list: ``(SELECT ...) AS alias``."""

    model_config = _FROZEN

    query: Statement
    alias: str


def _selector_discriminator(v: Any) -> str | None:
    """Return the tag for the Pydantic discriminated union."""
    if isinstance(v, Column):
        return "column"
    if isinstance(v, Aggregate):
        return "aggregate"
    if isinstance(v, RawExpression):
        return "raw"
    if isinstance(v, SubqueryColumn):
        return "subquery"
    return None


ColumnSelector = Annotated[
    Union[
        Annotated[Column, Tag("column")],
        Annotated[Aggregate, Tag("aggregate")],
        Annotated[RawExpression, Tag("raw")],
        Annotated[SubqueryColumn, Tag("subquery")],
    ],
    Discriminator(_selector_discriminator),
]


def to_selector(item: Any) -> Any:
    """Convert a column name or selector into a select item.

    Raises:
        TypeError: For anything that is not a string or selector.
    """
    if isinstance(item, (Column, Aggregate, RawExpression, SubqueryColumn)):
        return item
    if isinstance(item, str):
        return Column(name=item)
    raise TypeError(f"Cannot select {item!r}; expected a column name or selector.")


# Factory helpers -----------------------------------------------------------


def col(name: str) -> Column:
    """A column reference that can be labelled: ``col("id").label("user_id")``."""
    return Column(name=name)


def raw(sql: str) -> RawExpression:
    return RawExpression(sql=sql)


def count(column: str | None = None) -> Aggregate:
    """``COUNT(*)`` or ``COUNT(column)``."""
    return Aggregate(function=AggregateFunction.COUNT, column=column)


def count_distinct(column: str) -> Aggregate:
    return Aggregate(function=AggregateFunction.COUNT, column=column, distinct=True)


def sum_(column: str) -> Aggregate:
    return Aggregate(function=AggregateFunction.SUM, column=column)


def avg(column: str) -> Aggregate:
    return Aggregate(function=AggregateFunction.AVG, column=column)


def min_(column: str) -> Aggregate:
    return Aggregate(function=AggregateFunction.MIN, column=column)


def max_(column: str) -> Aggregate:
    return Aggregate(function=AggregateFunction.MAX, column=column)


def subquery_as(query: Statement, alias: str) -> SubqueryColumn:
    return SubqueryColumn(query=query, alias=alias)


# ---------------------------------------------------------------------------
# Joins
# ---------------------------------------------------------------------------


class JoinClause(BaseModel):
    """A single ``<kind> JOIN table ON ...`` entry.

    ON conditions live in a :class:`~chainql.query.conditions.Group`, so
    column comparisons and bound-value comparisons can be mixed with AND /
    OR exactly like WHERE conditions::

        table("users").join(
            "posts",
            lambda j: j.on("users.id", "posts.user_id").on_value("posts.draft", False),
        )

    Attributes:
        kind: Join type; CROSS joins carry no ON group.
        table: Joined table (opaque text, may include an alias).
        conditions: ON conditions in append order.
    """

    model_config = _FROZEN

    kind: JoinKind = JoinKind.INNER
    table: str
    conditions: Group = Group()

    def _add(self, condition: Any, connector: Connector) -> JoinClause:
        return self.model_copy(
            update={"conditions": self.conditions.append(condition, connector)}
        )

    @staticmethod
    def _comparison(left: str, op: Operator | str, right: str | None) -> ColumnComparison:
        if right is None:
            # on("a.id", "b.a_id") is shorthand for equality.
            return ColumnComparison(left=left, operator=EQ, right=str(op))
        return ColumnComparison(left=left, operator=Operator.coerce(op), right=right)

    def on(self, left: str, op: Operator | str, right: str | None = None) -> JoinClause:
        """Append a column-to-column comparison with AND."""
        return self._add(self._comparison(left, op, right), Connector.AND)

    def and_on(self, left: str, op: Operator | str, right: str | None = None) -> JoinClause:
        return self.on(left, op, right)

    def or_on(self, left: str, op: Operator | str, right: str | None = None) -> JoinClause:
        """Append a column-to-column comparison with OR."""
        return self._add(self._comparison(left, op, right), Connector.OR)

    def on_value(self, column: str, *args: Any) -> JoinClause:
        """Append a bound-value comparison (``(column, value)`` or
        ``(column, op, value)`` shorthand) with AND."""
        return self._add(to_condition((column, *args)), Connector.AND)

    def or_on_value(self, column: str, *args: Any) -> JoinClause:
        return self._add(to_condition((column, *args)), Connector.OR)


class OrderByItem(BaseModel):
    """A single ORDER BY expression."""

    model_config = _FROZEN

    column: str
    direction: SortDirection = SortDirection.ASC
