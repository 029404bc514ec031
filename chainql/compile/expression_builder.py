"""Value binding and condition-tree rendering.

``PredicateBuilder`` turns a :class:`~chainql.query.conditions.Group` into
SQL text.  It receives a :class:`~chainql.compile.context.CompilationContext`
(static config) and a :class:`RuntimeContext` (per-render parameter state).
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from chainql.compile.context import CompilationContext
from chainql.errors import CompilationError
from chainql.query.base import Statement
from chainql.query.conditions import (
    Atomic,
    ColumnComparison,
    Exists,
    Group,
    RawCondition,
    SubqueryIn,
)
from chainql.query.value import Value

# ---------------------------------------------------------------------------
# Runtime parameter accumulator (shared across all sub-builders in one run)
# ---------------------------------------------------------------------------


@dataclass
class RuntimeContext:
    """Accumulates bound parameters during a single render.

    A single instance is threaded through every sub-builder and every nested
    subquery, so the Nth placeholder emitted anywhere in the statement binds
    the Nth entry of :attr:`params`.
    """

    params: list[Value] = field(default_factory=list)

    def add_value(self, value: Value) -> int:
        """Store a value and return its 1-based ordinal."""
        self.params.append(value)
        return len(self.params)


class ValueBinder:
    """Turns a :class:`Value` into SQL text at the current emission point.

    RAW values are inlined verbatim; everything else becomes a placeholder
    and is appended to the runtime parameter list.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def bind(self, value: Value) -> str:
        if value.is_raw:
            return str(value.data)
        return self._ctx.compiler.placeholder(self._runtime.add_value(value))


# ---------------------------------------------------------------------------
# Predicate builder
# ---------------------------------------------------------------------------


class PredicateBuilder:
    """Renders condition groups (WHERE / HAVING / JOIN ON) to SQL.

    Nested groups are always parenthesised and children are joined with the
    connector stored on each entry, so the emitted text evaluates strictly in
    append order.  The root group is emitted without outer parentheses.

    The ``_build_subquery_fn`` is injected by
    :class:`~chainql.compile.builder.StatementRenderer` after construction.
    It renders an inner statement with the **shared** ``RuntimeContext`` so
    placeholder ordinals continue across subquery boundaries.

    Args:
        ctx: Static compilation context.
        binder: Value binder over the shared parameter accumulator.
    """

    def __init__(self, ctx: CompilationContext, binder: ValueBinder) -> None:
        self._ctx = ctx
        self._binder = binder
        # Injected by StatementRenderer after construction.
        self._build_subquery_fn: Callable[[Statement], str] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, group: Group) -> str:
        """Render a root group (no outer parentheses unless negated)."""
        body = self._build_entries(group)
        return f"NOT ({body})" if group.negate else body

    # ------------------------------------------------------------------
    # Node dispatch
    # ------------------------------------------------------------------

    def _build_entries(self, group: Group) -> str:
        parts: list[str] = []
        for entry in group.entries:
            sql = self._build_node(entry.condition)
            if entry.connector is None:
                parts.append(sql)
            else:
                parts.append(f"{entry.connector.value} {sql}")
        return " ".join(parts)

    def _build_node(self, node: Any) -> str:
        if isinstance(node, Group):
            body = f"({self._build_entries(node)})"
            return f"NOT {body}" if node.negate else body
        if isinstance(node, Atomic):
            return self._build_atomic(node)
        if isinstance(node, ColumnComparison):
            ref = self._ctx.compiler.reference
            return f"{ref(node.left)} {node.operator.symbol} {ref(node.right)}"
        if isinstance(node, RawCondition):
            return self._build_raw(node)
        if isinstance(node, SubqueryIn):
            column = self._ctx.compiler.reference(node.column)
            return f"{column} {node.operator.symbol} ({self._build_subquery(node.query)})"
        if isinstance(node, Exists):
            keyword = "NOT EXISTS" if node.negate else "EXISTS"
            return f"{keyword} ({self._build_subquery(node.query)})"
        raise CompilationError(
            f"Unknown condition type: {type(node).__name__}", clause="where"
        )

    def _build_atomic(self, node: Atomic) -> str:
        column = self._ctx.compiler.reference(node.column)
        op = node.operator
        if op.is_null_check:
            return f"{column} {op.symbol}"
        if op.is_membership:
            values = node.value if isinstance(node.value, tuple) else (node.value,)
            if not values:
                # An empty IN list matches nothing; an empty NOT IN matches everything.
                return "1 = 0" if op.symbol == "IN" else "1 = 1"
            rendered = ", ".join(self._binder.bind(v) for v in values)
            return f"{column} {op.symbol} ({rendered})"
        if node.value is None or isinstance(node.value, tuple):
            raise CompilationError(
                f"Operator '{op.symbol}' on '{node.column}' needs a single value.",
                clause="where",
            )
        return f"{column} {op.symbol} {self._binder.bind(node.value)}"

    def _build_raw(self, node: RawCondition) -> str:
        pieces = node.fragment.split("?")
        if len(pieces) - 1 != len(node.params):
            raise CompilationError(
                f"Raw fragment {node.fragment!r} has {len(pieces) - 1} '?' markers "
                f"but {len(node.params)} parameters.",
                clause="where",
            )
        out = [pieces[0]]
        for value, piece in zip(node.params, pieces[1:]):
            out.append(self._binder.bind(value))
            out.append(piece)
        return "".join(out)

    def _build_subquery(self, statement: Statement) -> str:
        if self._build_subquery_fn is None:
            raise CompilationError("No subquery build function configured.")
        return self._build_subquery_fn(statement)
