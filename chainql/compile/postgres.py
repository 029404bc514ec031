"""PostgreSQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler
from chainql.query.dialect import PlaceholderStyle


class PostgresCompiler(SQLCompiler):
    """Renders PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1, $2, ...`` – the native ordinal form used by
    ``asyncpg`` and server-side prepared statements.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    @property
    def placeholder_style(self) -> PlaceholderStyle:
        return PlaceholderStyle.ORDINAL

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
