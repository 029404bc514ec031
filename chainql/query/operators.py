"""Comparison and text operators with deferred validation.

An :class:`Operator` is either *known* (allow-listed, or registered through
:meth:`Operator.custom`) or *unknown* (a free-form string the caller typed).
Unknown operators are accepted at construction time and rejected by
:meth:`Operator.validate` when the statement is rendered, so building a
query never raises for a typo; rendering does, once, with a suggestion.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass

from chainql.errors import InvalidOperatorError

#: Every operator symbol accepted from plain strings.
ALLOWED_SYMBOLS: tuple[str, ...] = (
    "=", "!=", "<", "<=", ">", ">=",
    "LIKE", "ILIKE", "IN", "NOT IN", "IS NULL", "IS NOT NULL",
)

_ALIASES: dict[str, str] = {"<>": "!="}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Operator:
    """A SQL operator token.

    Attributes:
        symbol: The text emitted into SQL.
        known: ``False`` for free-form tokens awaiting render-time rejection.
    """

    symbol: str
    known: bool = True

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def custom(cls, symbol: str) -> Operator:
        """Register a database-specific operator, bypassing the allow-list.

        Example::

            FTS = Operator.custom("@@")
            DISTANCE = Operator.custom("<->")
        """
        return cls(symbol=symbol, known=True)

    @classmethod
    def coerce(cls, token: Operator | str) -> Operator:
        """Map a caller-supplied token onto an operator.

        Strings are matched case-insensitively against the allow-list;
        anything else becomes an unknown operator.
        """
        if isinstance(token, Operator):
            return token
        normalised = _WHITESPACE.sub(" ", str(token).strip()).upper()
        normalised = _ALIASES.get(normalised, normalised)
        if normalised in ALLOWED_SYMBOLS:
            return cls(symbol=normalised, known=True)
        return cls(symbol=str(token), known=False)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise :class:`~chainql.errors.InvalidOperatorError` if unknown."""
        if self.known:
            return
        matches = difflib.get_close_matches(
            self.symbol.strip().upper(), ALLOWED_SYMBOLS, n=1, cutoff=0.5
        )
        raise InvalidOperatorError(self.symbol, matches[0] if matches else None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_null_check(self) -> bool:
        """True for ``IS NULL`` / ``IS NOT NULL`` (no right-hand operand)."""
        return self.known and self.symbol in ("IS NULL", "IS NOT NULL")

    @property
    def is_membership(self) -> bool:
        """True for ``IN`` / ``NOT IN``."""
        return self.known and self.symbol in ("IN", "NOT IN")

    def __str__(self) -> str:
        return self.symbol


EQ = Operator("=")
NE = Operator("!=")
LT = Operator("<")
LTE = Operator("<=")
GT = Operator(">")
GTE = Operator(">=")
LIKE = Operator("LIKE")
ILIKE = Operator("ILIKE")
IN = Operator("IN")
NOT_IN = Operator("NOT IN")
IS_NULL = Operator("IS NULL")
IS_NOT_NULL = Operator("IS NOT NULL")
