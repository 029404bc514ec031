"""Compiler abstractions: CompiledSQL and the SQLCompiler ABC.

The Template Method pattern is used:
- ``SQLCompiler`` owns the dialect-neutral rendering helpers (reserved-word
  detection, dotted-reference quoting).
- ``PostgresCompiler``, ``SQLiteCompiler`` and ``MySQLCompiler`` override
  the dialect-specific steps (placeholder syntax, quote character).
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from chainql.query.base import StatementKind
from chainql.query.dialect import PlaceholderStyle
from chainql.query.value import Value

#: Words that must be quoted when used as a bare identifier part.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "all", "and", "any", "as", "asc", "between", "by", "case", "check",
        "column", "constraint", "create", "cross", "default", "delete", "desc",
        "distinct", "drop", "else", "end", "exists", "false", "for", "foreign",
        "from", "full", "group", "having", "in", "index", "inner", "insert",
        "into", "is", "join", "key", "left", "like", "limit", "not", "null",
        "offset", "on", "or", "order", "outer", "primary", "references",
        "right", "select", "set", "table", "then", "to", "true", "union",
        "unique", "update", "user", "using", "values", "when", "where", "with",
    }
)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass
class CompiledSQL:
    """The output of a successful render.

    Supports tuple unpacking: ``sql, params = statement.to_sql()``.

    Attributes:
        sql: Single-line SQL text with dialect placeholders.
        params: Bound values; the Nth placeholder binds the Nth entry.
        dialect: The target dialect name (``'postgres'``, ``'sqlite'``, ...).
        kind: What an executor should expect back.
    """

    sql: str
    params: list[Value] = field(default_factory=list)
    dialect: str = "postgres"
    kind: StatementKind = StatementKind.ROWS

    def bind_params(self) -> list[Any]:
        """Return the host objects to pass to the driver, in order."""
        return [value.unwrap() for value in self.params]

    def __iter__(self) -> Iterator[Any]:
        yield self.sql
        yield self.params


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers.

    Subclasses implement the dialect-specific methods; the renderer in
    :mod:`chainql.compile.builder` uses this interface only.
    """

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the placeholder for the ``index``-th (1-based) parameter."""

    @property
    @abstractmethod
    def placeholder_style(self) -> PlaceholderStyle:
        """Return whether placeholders are ordinal or positional."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Args:
            name: Unquoted identifier part (no dots).

        Returns:
            Quoted identifier.
        """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def is_reserved(self, word: str) -> bool:
        return word.lower() in RESERVED_WORDS

    def reference(self, text: str) -> str:
        """Render an opaque table / column reference.

        Dotted references made only of simple identifiers (``users.order``,
        ``t.*``) have their reserved parts quoted.  Anything else (aliases,
        expressions, already-quoted names) is emitted verbatim.
        """
        parts = text.split(".")
        if not all(p == "*" or _IDENTIFIER.fullmatch(p) for p in parts):
            return text
        return ".".join(
            self.quote_identifier(p) if p != "*" and self.is_reserved(p) else p
            for p in parts
        )
