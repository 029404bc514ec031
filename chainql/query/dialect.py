"""Pydantic model for dialect selection.

Dialect choice is the only configuration chainQL has.  It is made once per
connection or pool and passed to ``to_sql``; statements themselves are
dialect-neutral::

    from chainql import DialectProfile, table

    sqlite = DialectProfile(target="sqlite")
    sql, params = table("users").where(("id", 7)).to_sql(sqlite)

Dialect variation is confined to placeholder syntax and reserved-word
quoting, both owned by the compiler registered for ``target``.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PlaceholderStyle(str, Enum):
    """How bound parameters are written into SQL text."""

    ORDINAL = "ordinal"  # $1, $2, ...
    POSITIONAL = "positional"  # ?, ?, ...


class DialectProfile(BaseModel):
    """Selects the backend a statement is rendered for.

    Attributes:
        target: Name of a compiler registered in
            :class:`~chainql.compile.registry.CompilerFactory`
            (built in: ``'postgres'``, ``'sqlite'``, ``'mysql'``).  Unknown
            targets fail at render time with ``CompilationError``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: str = "postgres"

    @property
    def placeholder_style(self) -> PlaceholderStyle:
        """The placeholder style of the compiler registered for ``target``."""
        from chainql.compile.registry import CompilerFactory

        return CompilerFactory.create(self.target).placeholder_style

    @classmethod
    def resolve(cls, dialect: DialectProfile | str | None) -> DialectProfile:
        """Normalise the ``dialect`` argument accepted by ``to_sql``."""
        if dialect is None:
            return cls()
        if isinstance(dialect, DialectProfile):
            return dialect
        return cls(target=dialect)
