"""The shared "compiles to SQL" contract for every statement builder."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from chainql.compile.base import CompiledSQL
    from chainql.query.dialect import DialectProfile


class StatementKind(str, Enum):
    """What an executor should expect back from running a statement."""

    ROWS = "rows"
    AFFECTED_ROWS = "affected_rows"


class Statement(BaseModel):
    """Immutable base for SELECT / INSERT / UPDATE / DELETE builders.

    Every builder method returns a new statement via ``model_copy``; a
    statement is never mutated after construction, so two chains built from
    a shared ancestor never interfere.

    Attributes:
        table: Target table name (opaque text).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    #: Human-readable statement keyword used in error messages.
    keyword: ClassVar[str] = ""
    #: Result shape an executor should expect.
    kind: ClassVar[StatementKind] = StatementKind.ROWS

    table: str

    def to_sql(self, dialect: DialectProfile | str | None = None) -> CompiledSQL:
        """Validate and render this statement.

        Pure and repeatable: two calls return identical text and parameters.

        Args:
            dialect: A :class:`~chainql.query.dialect.DialectProfile`, a
                registered target name (``"postgres"``, ``"sqlite"``,
                ``"mysql"``), or ``None`` for PostgreSQL.

        Returns:
            :class:`~chainql.compile.base.CompiledSQL`.

        Raises:
            ValidationError: (or subclass) on the first deferred-validation
                failure; no SQL is produced.
        """
        from chainql.compile.builder import render

        return render(self, dialect)
