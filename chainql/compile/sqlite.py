"""SQLite dialect compiler."""
from __future__ import annotations

from chainql.compile.base import SQLCompiler
from chainql.query.dialect import PlaceholderStyle


class SQLiteCompiler(SQLCompiler):
    """Renders SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    positional execution (``cursor.execute(sql, params)``).

    Note: SQLite has no ``ILIKE``; the operator is emitted unchanged and
    fails at execution, so callers targeting SQLite should use ``LIKE``
    (case-insensitive for ASCII by default).
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    @property
    def placeholder_style(self) -> PlaceholderStyle:
        return PlaceholderStyle.POSITIONAL

    def placeholder(self, index: int) -> str:
        return "?"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
