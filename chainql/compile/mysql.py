"""MySQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler
from chainql.query.dialect import PlaceholderStyle


class MySQLCompiler(SQLCompiler):
    """Renders MySQL-flavoured parameterized SQL.

    Parameter style: ``?`` – the positional form of MySQL server-side
    prepared statements.

    Identifiers are quoted with backticks (`` ` ``) rather than double-quotes.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    @property
    def placeholder_style(self) -> PlaceholderStyle:
        return PlaceholderStyle.POSITIONAL

    def placeholder(self, index: int) -> str:
        return "?"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"
