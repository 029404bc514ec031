"""The recursive condition tree behind WHERE, HAVING and JOIN ... ON.

A :class:`Group` is an ordered list of entries; each entry pairs a child
condition with the connector (AND / OR) used to append it.  The first entry
never carries a connector.  Precedence is never resolved while building:
the renderer parenthesises every nested group so mixed AND / OR chains
evaluate strictly in append order.

Condition shorthand accepted by every ``where`` / ``having`` entry point::

    ("status", "active")             # status = ?
    ("age", GT, 18)                  # age > ?
    ("age", ">", 18)                 # same; the string is coerced lazily
    ("deleted_at", IS_NULL)          # deleted_at IS NULL
    ("id", IN, [1, 2, 3])            # id IN (?, ?, ?)
    lambda g: g.where(...).or_where(...)   # nested, parenthesised group
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Annotated, Any, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag

from chainql.query.base import Statement
from chainql.query.operators import EQ, IN, IS_NOT_NULL, IS_NULL, NOT_IN, Operator
from chainql.query.value import Value

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class Connector(str, Enum):
    """How a group entry is joined to its previous sibling."""

    AND = "AND"
    OR = "OR"


# ---------------------------------------------------------------------------
# Leaf conditions
# ---------------------------------------------------------------------------


class Atomic(BaseModel):
    """``column <operator> value``.

    Attributes:
        column: Opaque column text.
        operator: Possibly-unknown operator; validated at render.
        value: A single value, a tuple for IN lists, or ``None`` for
            IS [NOT] NULL.
    """

    model_config = _FROZEN

    column: str
    operator: Operator
    value: Value | tuple[Value, ...] | None = None


class ColumnComparison(BaseModel):
    """``left <operator> right`` where both sides are column text (JOIN ON)."""

    model_config = _FROZEN

    left: str
    operator: Operator
    right: str


class RawCondition(BaseModel):
    """An opaque SQL fragment; each ``?`` marks one bound parameter."""

    model_config = _FROZEN

    fragment: str
    params: tuple[Value, ...] = ()


class SubqueryIn(BaseModel):
    """``column <operator> (<inner statement>)``.

    Usually ``IN`` / ``NOT IN``; a comparison operator gives a scalar
    subquery comparison such as ``total > (SELECT AVG(total) ...)``.

    Attributes:
        column: Opaque column text.
        query: The inner statement, rendered recursively.
        operator: Possibly-unknown operator; validated at render.
    """

    model_config = _FROZEN

    column: str
    query: Statement
    operator: Operator = IN

    @property
    def negate(self) -> bool:
        return self.operator.known and self.operator.symbol == "NOT IN"


class Exists(BaseModel):
    """``[NOT] EXISTS (<inner statement>)``."""

    model_config = _FROZEN

    query: Statement
    negate: bool = False


# ---------------------------------------------------------------------------
# Discriminated union
# ---------------------------------------------------------------------------


def _condition_discriminator(v: Any) -> str | None:
    """Return the tag for the Pydantic discriminated union."""
    if isinstance(v, Atomic):
        return "atomic"
    if isinstance(v, ColumnComparison):
        return "columns"
    if isinstance(v, RawCondition):
        return "raw"
    if isinstance(v, SubqueryIn):
        return "subquery_in"
    if isinstance(v, Exists):
        return "exists"
    if isinstance(v, Group):
        return "group"
    return None


Condition = Annotated[
    Union[
        Annotated[Atomic, Tag("atomic")],
        Annotated[ColumnComparison, Tag("columns")],
        Annotated[RawCondition, Tag("raw")],
        Annotated[SubqueryIn, Tag("subquery_in")],
        Annotated[Exists, Tag("exists")],
        Annotated["Group", Tag("group")],
    ],
    Discriminator(_condition_discriminator),
]

_CONDITION_TYPES = (Atomic, ColumnComparison, RawCondition, SubqueryIn, Exists)


# ---------------------------------------------------------------------------
# Shorthand parsing
# ---------------------------------------------------------------------------


def _values(items: Iterable[Any]) -> tuple[Value, ...]:
    return tuple(Value.of(item) for item in items)


def _membership(column: str, operator: Operator, value: Any) -> Atomic | SubqueryIn:
    if isinstance(value, Statement):
        return SubqueryIn(column=column, query=value, operator=operator)
    if isinstance(value, (list, tuple, set, frozenset)):
        return Atomic(column=column, operator=operator, value=_values(value))
    return Atomic(column=column, operator=operator, value=(Value.of(value),))


def to_condition(spec: Any) -> Any:
    """Convert condition shorthand into a condition node.

    Args:
        spec: A condition node, a ``(column, value)`` /
            ``(column, operator)`` / ``(column, operator, value)`` tuple, or
            a callable that receives an empty :class:`Group` and returns a
            filled one.

    Returns:
        A condition node.

    Raises:
        TypeError: If ``spec`` has none of the accepted shapes.
    """
    if isinstance(spec, (*_CONDITION_TYPES, Group)):
        return spec
    if callable(spec):
        result = spec(Group())
        if not isinstance(result, Group):
            raise TypeError(
                "A nested condition callable must return the Group it was given."
            )
        return result
    if isinstance(spec, (tuple, list)):
        if len(spec) == 2:
            column, second = spec
            if isinstance(second, Operator) and second.is_null_check:
                return Atomic(column=column, operator=second)
            if isinstance(second, Statement):
                return SubqueryIn(column=column, query=second, operator=EQ)
            return Atomic(column=column, operator=EQ, value=Value.of(second))
        if len(spec) == 3:
            column, op, value = spec
            operator = Operator.coerce(op)
            if operator.is_null_check:
                return Atomic(column=column, operator=operator)
            if operator.is_membership:
                return _membership(column, operator, value)
            if isinstance(value, Statement):
                return SubqueryIn(column=column, query=value, operator=operator)
            if not operator.known and isinstance(value, (list, tuple, set, frozenset)):
                # Kept as a list so the bad operator, not the value, is reported at render.
                return Atomic(column=column, operator=operator, value=_values(value))
            return Atomic(column=column, operator=operator, value=Value.of(value))
    raise TypeError(f"Unsupported condition shape: {spec!r}")


# ---------------------------------------------------------------------------
# Condition-building surface shared by Group and filterable statements
# ---------------------------------------------------------------------------

_F = TypeVar("_F", bound="ConditionBuilderMixin")


class ConditionBuilderMixin:
    """WHERE-style entry points over some root :class:`Group`.

    Subclasses provide :meth:`_filter_group` and :meth:`_with_filter_group`;
    everything else is expressed in terms of :meth:`Group.append`.
    """

    def _filter_group(self) -> Group:
        raise NotImplementedError

    def _with_filter_group(self: _F, group: Group) -> _F:
        raise NotImplementedError

    def _append(self: _F, condition: Any, connector: Connector) -> _F:
        return self._with_filter_group(self._filter_group().append(condition, connector))

    # -- plain conditions ------------------------------------------------

    def where(self: _F, condition: Any) -> _F:
        """Append ``condition`` with AND."""
        return self._append(condition, Connector.AND)

    def and_where(self: _F, condition: Any) -> _F:
        """Alias of :meth:`where`."""
        return self._append(condition, Connector.AND)

    def or_where(self: _F, condition: Any) -> _F:
        """Append ``condition`` with OR."""
        return self._append(condition, Connector.OR)

    def where_not(self: _F, condition: Any) -> _F:
        """Append ``NOT (condition)`` with AND."""
        return self._append(_negated(condition), Connector.AND)

    def or_where_not(self: _F, condition: Any) -> _F:
        return self._append(_negated(condition), Connector.OR)

    # -- null checks -----------------------------------------------------

    def where_null(self: _F, column: str) -> _F:
        return self._append(Atomic(column=column, operator=IS_NULL), Connector.AND)

    def or_where_null(self: _F, column: str) -> _F:
        return self._append(Atomic(column=column, operator=IS_NULL), Connector.OR)

    def where_not_null(self: _F, column: str) -> _F:
        return self._append(Atomic(column=column, operator=IS_NOT_NULL), Connector.AND)

    def or_where_not_null(self: _F, column: str) -> _F:
        return self._append(Atomic(column=column, operator=IS_NOT_NULL), Connector.OR)

    # -- membership ------------------------------------------------------

    def where_in(self: _F, column: str, values: Any) -> _F:
        """Append ``column IN (...)`` for a value list or a subquery."""
        return self._append(_membership(column, IN, values), Connector.AND)

    def or_where_in(self: _F, column: str, values: Any) -> _F:
        return self._append(_membership(column, IN, values), Connector.OR)

    def where_not_in(self: _F, column: str, values: Any) -> _F:
        return self._append(_membership(column, NOT_IN, values), Connector.AND)

    def or_where_not_in(self: _F, column: str, values: Any) -> _F:
        return self._append(_membership(column, NOT_IN, values), Connector.OR)

    # -- existence -------------------------------------------------------

    def where_exists(self: _F, query: Statement) -> _F:
        """Append ``EXISTS (query)``; ``query`` may be correlated."""
        return self._append(Exists(query=query), Connector.AND)

    def or_where_exists(self: _F, query: Statement) -> _F:
        return self._append(Exists(query=query), Connector.OR)

    def where_not_exists(self: _F, query: Statement) -> _F:
        return self._append(Exists(query=query, negate=True), Connector.AND)

    def or_where_not_exists(self: _F, query: Statement) -> _F:
        return self._append(Exists(query=query, negate=True), Connector.OR)

    # -- raw fragments ---------------------------------------------------

    def where_raw(self: _F, fragment: str, params: Iterable[Any] = ()) -> _F:
        """Append an opaque fragment; each ``?`` binds the next param."""
        return self._append(
            RawCondition(fragment=fragment, params=_values(params)), Connector.AND
        )

    def or_where_raw(self: _F, fragment: str, params: Iterable[Any] = ()) -> _F:
        return self._append(
            RawCondition(fragment=fragment, params=_values(params)), Connector.OR
        )


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


class GroupEntry(BaseModel):
    """One child of a :class:`Group` plus the connector used to append it.

    Attributes:
        connector: ``None`` for the first entry, AND / OR afterwards.
        condition: The child node.
    """

    model_config = _FROZEN

    connector: Connector | None = None
    condition: Condition


class Group(ConditionBuilderMixin, BaseModel):
    """An ordered, explicitly parenthesised list of conditions.

    Attributes:
        entries: Children in append order.
        negate: Render as ``NOT (...)``.
    """

    model_config = _FROZEN

    entries: tuple[GroupEntry, ...] = ()
    negate: bool = False

    def _filter_group(self) -> Group:
        return self

    def _with_filter_group(self, group: Group) -> Group:
        return group

    def append(self, condition: Any, connector: Connector = Connector.AND) -> Group:
        """Return a new group with ``condition`` appended.

        The connector is dropped for the first entry; an empty nested
        group is ignored.
        """
        node = to_condition(condition)
        if isinstance(node, Group) and node.is_empty:
            return self
        entry = GroupEntry(
            connector=connector if self.entries else None,
            condition=node,
        )
        return self.model_copy(update={"entries": (*self.entries, entry)})

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def iter_conditions(self) -> Iterable[Any]:
        """Yield child conditions in append order."""
        for entry in self.entries:
            yield entry.condition


def _negated(condition: Any) -> Group:
    node = to_condition(condition)
    if isinstance(node, Group) and not node.negate:
        return node.model_copy(update={"negate": True})
    return Group(entries=(GroupEntry(condition=node),), negate=True)


# Resolve forward references in recursive types.
GroupEntry.model_rebuild()
Group.model_rebuild()
