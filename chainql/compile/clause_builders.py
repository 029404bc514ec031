"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  Builders that can contain a
nested statement receive a *shared build function*
(``Callable[[Statement], str]``) so every subquery is rendered with the
**same** :class:`~chainql.compile.expression_builder.RuntimeContext` as the
outer statement.

Classes
-------
SelectClauseBuilder   — ``SELECT [DISTINCT] <items>``
JoinClauseBuilder     — ``<kind> JOIN … ON …``
OrderByBuilder        — ``ORDER BY … ASC|DESC``
ValuesClauseBuilder   — ``(cols) VALUES (…),(…)``
SetClauseBuilder      — ``SET col = …, …``
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from chainql.compile.context import CompilationContext
from chainql.compile.expression_builder import PredicateBuilder, ValueBinder
from chainql.errors import CompilationError
from chainql.query.base import Statement
from chainql.query.clauses import (
    Aggregate,
    Column,
    JoinClause,
    JoinKind,
    OrderByItem,
    RawExpression,
    SubqueryColumn,
)
from chainql.query.statements import Assignments

_JOIN_KEYWORDS: dict[JoinKind, str] = {
    JoinKind.INNER: "INNER JOIN",
    JoinKind.LEFT: "LEFT JOIN",
    JoinKind.RIGHT: "RIGHT JOIN",
    JoinKind.FULL: "FULL OUTER JOIN",
    JoinKind.CROSS: "CROSS JOIN",
}


class SelectClauseBuilder:
    """Builds the ``SELECT [DISTINCT] …`` clause."""

    def __init__(
        self,
        ctx: CompilationContext,
        build_fn: Callable[[Statement], str],
    ) -> None:
        self._ctx = ctx
        self._build_fn = build_fn

    def build(self, columns: tuple[Any, ...], distinct: bool) -> str:
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        if not columns:
            return f"{prefix} *"
        items = [self._build_item(item) for item in columns]
        return f"{prefix} {', '.join(items)}"

    def _build_item(self, item: Any) -> str:
        ref = self._ctx.compiler.reference
        if isinstance(item, Column):
            expr_sql = ref(item.name)
        elif isinstance(item, Aggregate):
            target = ref(item.column) if item.column else "*"
            if item.distinct:
                target = f"DISTINCT {target}"
            expr_sql = f"{item.function.value}({target})"
        elif isinstance(item, RawExpression):
            expr_sql = item.sql
        elif isinstance(item, SubqueryColumn):
            expr_sql = f"({self._build_fn(item.query)})"
        else:
            raise CompilationError(
                f"Unknown select item: {type(item).__name__}", clause="select"
            )

        if item.alias:
            return f"{expr_sql} AS {ref(item.alias)}"
        return expr_sql


class JoinClauseBuilder:
    """Builds ``<kind> JOIN <table> [ON <conditions>]`` fragments."""

    def __init__(self, ctx: CompilationContext, predicate_builder: PredicateBuilder) -> None:
        self._ctx = ctx
        self._pred = predicate_builder

    def build(self, join: JoinClause) -> str:
        head = f"{_JOIN_KEYWORDS[join.kind]} {self._ctx.compiler.reference(join.table)}"
        if join.kind is JoinKind.CROSS or join.conditions.is_empty:
            return head
        return f"{head} ON {self._pred.build(join.conditions)}"


class OrderByBuilder:
    """Builds the ``ORDER BY …`` clause."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, items: tuple[OrderByItem, ...]) -> str:
        ref = self._ctx.compiler.reference
        parts = [f"{ref(item.column)} {item.direction.value}" for item in items]
        return f"ORDER BY {', '.join(parts)}"


class ValuesClauseBuilder:
    """Builds ``(col, …) VALUES (…),(…)`` for single-row and batch inserts.

    Rows must already have been checked against the batch column set; each
    row is re-ordered to the first row's column order before binding, so
    parameters come out in row-major order.
    """

    def __init__(self, ctx: CompilationContext, binder: ValueBinder) -> None:
        self._ctx = ctx
        self._binder = binder

    def build(self, rows: tuple[Assignments, ...]) -> str:
        columns = [column for column, _ in rows[0]]
        ref = self._ctx.compiler.reference
        groups: list[str] = []
        for row in rows:
            by_column = dict(row)
            bound = ",".join(self._binder.bind(by_column[c]) for c in columns)
            groups.append(f"({bound})")
        return f"({', '.join(ref(c) for c in columns)}) VALUES {','.join(groups)}"


class SetClauseBuilder:
    """Builds ``SET col = …, …`` for UPDATE."""

    def __init__(self, ctx: CompilationContext, binder: ValueBinder) -> None:
        self._ctx = ctx
        self._binder = binder

    def build(self, assignments: Assignments) -> str:
        ref = self._ctx.compiler.reference
        parts = [f"{ref(column)} = {self._binder.bind(value)}" for column, value in assignments]
        return f"SET {', '.join(parts)}"
