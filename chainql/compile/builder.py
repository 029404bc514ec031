"""Statement → SQL rendering.

``StatementRenderer`` is the top-level orchestrator.  It wires together the
clause-level and expression-level sub-builders, then assembles clauses in
their canonical order.  All dialect-specific behaviour is delegated to the
injected ``SQLCompiler``.

Sub-builder hierarchy
---------------------
StatementRenderer
  ├── ValueBinder          (expression_builder.py)
  ├── PredicateBuilder     (expression_builder.py)
  ├── SelectClauseBuilder  (clause_builders.py)
  ├── JoinClauseBuilder    (clause_builders.py)
  ├── OrderByBuilder       (clause_builders.py)
  ├── ValuesClauseBuilder  (clause_builders.py)
  └── SetClauseBuilder     (clause_builders.py)

Runtime context sharing
-----------------------
A single :class:`~chainql.compile.expression_builder.RuntimeContext` is
created per ``build()`` call and threaded through every sub-builder and
every nested subquery (select-list subqueries, IN / EXISTS subqueries).
Parameters are therefore collected in strict textual emission order and
the Nth placeholder always binds the Nth parameter.
"""

from __future__ import annotations

import logging

from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.clause_builders import (
    JoinClauseBuilder,
    OrderByBuilder,
    SelectClauseBuilder,
    SetClauseBuilder,
    ValuesClauseBuilder,
)
from chainql.compile.context import CompilationContext
from chainql.compile.expression_builder import PredicateBuilder, RuntimeContext, ValueBinder
from chainql.compile.registry import CompilerFactory
from chainql.errors import CompilationError
from chainql.query.base import Statement
from chainql.query.dialect import DialectProfile
from chainql.query.statements import DeleteQuery, InsertQuery, SelectQuery, UpdateQuery
from chainql.validate.validator import StatementValidator

logger = logging.getLogger(__name__)

#: Emitted in place of a WHERE condition for explicit ``all_rows()`` writes.
ALL_ROWS_PREDICATE = "1 = 1"


class StatementRenderer:
    """Renders a validated statement to parameterized SQL.

    Args:
        compiler: Dialect-specific compiler instance.
        dialect: The profile ``compiler`` was resolved from.
    """

    def __init__(self, compiler: SQLCompiler, dialect: DialectProfile | None = None) -> None:
        self._ctx = CompilationContext(
            compiler=compiler,
            dialect=dialect or DialectProfile(target=compiler.dialect_name),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, statement: Statement) -> CompiledSQL:
        """Render ``statement`` with a fresh parameter accumulator.

        The statement must already have passed
        :class:`~chainql.validate.validator.StatementValidator`.

        Raises:
            CompilationError: If an unexpected statement shape is encountered.
        """
        runtime = RuntimeContext()
        sub_builders = self._make_sub_builders(runtime)
        sql = self._build_statement(statement, sub_builders)
        return CompiledSQL(
            sql=sql,
            params=runtime.params,
            dialect=self._ctx.compiler.dialect_name,
            kind=statement.kind,
        )

    # ------------------------------------------------------------------
    # Per-statement assembly
    # ------------------------------------------------------------------

    def _build_statement(self, statement: Statement, sb: dict) -> str:
        if isinstance(statement, SelectQuery):
            return self._build_select(statement, sb)
        if isinstance(statement, InsertQuery):
            return self._build_insert(statement, sb)
        if isinstance(statement, UpdateQuery):
            return self._build_update(statement, sb)
        if isinstance(statement, DeleteQuery):
            return self._build_delete(statement, sb)
        raise CompilationError(
            f"Unsupported statement type: {type(statement).__name__}", clause="statement"
        )

    def _build_select(self, query: SelectQuery, sb: dict) -> str:
        ref = self._ctx.compiler.reference
        parts: list[str] = [sb["select"].build(query.columns, query.is_distinct)]
        parts.append(f"FROM {ref(query.table)}")

        for join in query.joins:
            parts.append(sb["join"].build(join))

        if not query.where_clause.is_empty:
            parts.append(f"WHERE {sb['pred'].build(query.where_clause)}")

        if query.group_by_columns:
            parts.append(f"GROUP BY {', '.join(ref(c) for c in query.group_by_columns)}")

        if not query.having_clause.is_empty:
            parts.append(f"HAVING {sb['pred'].build(query.having_clause)}")

        if query.order_by_items:
            parts.append(sb["order_by"].build(query.order_by_items))

        if query.limit_count is not None:
            parts.append(f"LIMIT {query.limit_count}")

        if query.offset_count is not None:
            parts.append(f"OFFSET {query.offset_count}")

        return " ".join(parts)

    def _build_insert(self, query: InsertQuery, sb: dict) -> str:
        target = self._ctx.compiler.reference(query.table)
        return f"INSERT INTO {target} {sb['values'].build(query.rows)}"

    def _build_update(self, query: UpdateQuery, sb: dict) -> str:
        target = self._ctx.compiler.reference(query.table)
        set_sql = sb["set"].build(query.assignments)
        return f"UPDATE {target} {set_sql} {self._build_where(query, sb)}"

    def _build_delete(self, query: DeleteQuery, sb: dict) -> str:
        target = self._ctx.compiler.reference(query.table)
        return f"DELETE FROM {target} {self._build_where(query, sb)}"

    def _build_where(self, query: UpdateQuery | DeleteQuery, sb: dict) -> str:
        if query.where_clause.is_empty:
            # Only reachable with the all_rows() marker; validation rejects the rest.
            return f"WHERE {ALL_ROWS_PREDICATE}"
        return f"WHERE {sb['pred'].build(query.where_clause)}"

    # ------------------------------------------------------------------
    # Sub-builder wiring
    # ------------------------------------------------------------------

    def _make_sub_builders(self, runtime: RuntimeContext) -> dict:
        """Construct and wire the sub-builder graph for one render.

        Nested statements share ``runtime`` via the ``build_fn`` closure so
        placeholder ordinals continue across subquery boundaries.
        """
        binder = ValueBinder(self._ctx, runtime)
        pred_builder = PredicateBuilder(self._ctx, binder)

        sub_builders: dict = {"pred": pred_builder}

        def build_fn(statement: Statement) -> str:
            return self._build_statement(statement, sub_builders)

        pred_builder._build_subquery_fn = build_fn

        sub_builders["select"] = SelectClauseBuilder(self._ctx, build_fn)
        sub_builders["join"] = JoinClauseBuilder(self._ctx, pred_builder)
        sub_builders["order_by"] = OrderByBuilder(self._ctx)
        sub_builders["values"] = ValuesClauseBuilder(self._ctx, binder)
        sub_builders["set"] = SetClauseBuilder(self._ctx, binder)
        return sub_builders


def render(statement: Statement, dialect: DialectProfile | str | None = None) -> CompiledSQL:
    """Validate ``statement`` and render it for ``dialect``.

    This is what :meth:`~chainql.query.base.Statement.to_sql` calls.

    Args:
        statement: Any statement builder.
        dialect: A profile, a registered target name, or ``None`` for
            PostgreSQL.

    Returns:
        :class:`~chainql.compile.base.CompiledSQL`.

    Raises:
        ValidationError: (or subclass) on the first validation failure.
        CompilationError: For an unknown dialect target or a malformed raw
            fragment.
    """
    profile = DialectProfile.resolve(dialect)
    # Resolve the compiler first so an unknown target fails before validation work.
    compiler = CompilerFactory.create(profile.target)
    StatementValidator().validate(statement)
    compiled = StatementRenderer(compiler, profile).build(statement)
    logger.debug(
        "Rendered %s for %s with %d parameter(s): %s",
        statement.keyword,
        compiled.dialect,
        len(compiled.params),
        compiled.sql,
    )
    return compiled
