"""Transaction state machine and savepoint stack.

A :class:`Transaction` emits the transaction-control text for one session
and routes rendered statements through it::

    with transaction(conn, dialect="sqlite") as tx:
        tx.execute(insert("users").values({"name": "ada"}))
        tx.savepoint("before_audit")
        ...

States move ``IDLE → ACTIVE → COMMITTED | ROLLED_BACK``; the last two are
terminal.  Every emitted text is recorded in :attr:`Transaction.log` and
forwarded verbatim to the session, when one is supplied.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from enum import Enum
from typing import Any, Protocol

from chainql.errors import TransactionStateError
from chainql.query.base import Statement
from chainql.query.dialect import DialectProfile

logger = logging.getLogger(__name__)

_SAVEPOINT_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class IsolationLevel(str, Enum):
    """SQL standard isolation levels."""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Session(Protocol):
    """Anything that can run SQL text, e.g. a ``sqlite3.Connection``."""

    def execute(self, sql: str, parameters: Sequence[Any] = ..., /) -> Any: ...


class Transaction:
    """Coordinates one transaction on one session.

    Not thread-safe: a transaction exclusively borrows its session and
    calls must be sequenced by the caller.

    Args:
        session: Optional object receiving every emitted text via
            ``execute(sql, params)``.
        isolation: Isolation level emitted with ``BEGIN``; fixed for the
            lifetime of the transaction.
        dialect: Dialect used to render statements passed to
            :meth:`execute`.
    """

    def __init__(
        self,
        session: Session | None = None,
        isolation: IsolationLevel | str | None = None,
        dialect: DialectProfile | str | None = None,
    ) -> None:
        self._session = session
        self.isolation = (
            IsolationLevel(isolation.upper()) if isinstance(isolation, str) else isolation
        )
        self.dialect = DialectProfile.resolve(dialect)
        self.state = TransactionState.IDLE
        self.log: list[str] = []
        self._savepoints: list[str] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is TransactionState.ACTIVE

    @property
    def savepoints(self) -> tuple[str, ...]:
        """Established savepoints, oldest first."""
        return tuple(self._savepoints)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """Start the transaction (``BEGIN [ISOLATION LEVEL ...]``).

        Raises:
            TransactionStateError: If the transaction was already started.
        """
        if self.state is TransactionState.ACTIVE:
            raise TransactionStateError("Transaction is already active.", self.state.value)
        if self.state is not TransactionState.IDLE:
            raise TransactionStateError(
                f"Cannot begin: transaction closed ({self.state.value}).", self.state.value
            )
        sql = "BEGIN"
        if self.isolation is not None:
            sql = f"BEGIN ISOLATION LEVEL {self.isolation.value}"
        self._emit(sql)
        self.state = TransactionState.ACTIVE
        logger.debug("Transaction began (isolation=%s)", self.isolation)

    def commit(self) -> None:
        self._require_active("commit")
        self._emit("COMMIT")
        self._close(TransactionState.COMMITTED)

    def rollback(self) -> None:
        self._require_active("rollback")
        self._emit("ROLLBACK")
        self._close(TransactionState.ROLLED_BACK)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, statement: Statement) -> Any:
        """Render ``statement`` with this transaction's dialect and run it.

        Returns:
            Whatever the session's ``execute`` returns (a cursor for
            ``sqlite3``), or ``None`` when there is no session.

        Raises:
            TransactionStateError: If the transaction is not active.
            ValidationError: If the statement fails to render.
        """
        self._require_active("execute")
        compiled = statement.to_sql(self.dialect)
        return self._emit(compiled.sql, compiled.bind_params())

    # ------------------------------------------------------------------
    # Savepoints
    # ------------------------------------------------------------------

    def savepoint(self, name: str) -> None:
        """Establish a savepoint; a repeated name shadows the earlier one."""
        self._require_active("savepoint", name)
        self._check_name(name)
        self._emit(f"SAVEPOINT {name}")
        self._savepoints.append(name)

    def release_savepoint(self, name: str) -> None:
        """Release ``name`` and every savepoint established after it."""
        self._require_active("release savepoint", name)
        index = self._find(name)
        self._emit(f"RELEASE SAVEPOINT {name}")
        del self._savepoints[index:]

    def rollback_to_savepoint(self, name: str) -> None:
        """Undo work since ``name``; ``name`` itself stays established."""
        self._require_active("rollback to savepoint", name)
        index = self._find(name)
        self._emit(f"ROLLBACK TO SAVEPOINT {name}")
        del self._savepoints[index + 1 :]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit(self, sql: str, params: Sequence[Any] = ()) -> Any:
        self.log.append(sql)
        if self._session is None:
            return None
        return self._session.execute(sql, params)

    def _close(self, state: TransactionState) -> None:
        self._savepoints.clear()
        self.state = state
        logger.debug("Transaction %s", state.value)

    def _require_active(self, operation: str, savepoint: str | None = None) -> None:
        if self.state is TransactionState.ACTIVE:
            return
        if self.state is TransactionState.IDLE:
            reason = "transaction not active; call begin() first"
        else:
            reason = f"transaction closed ({self.state.value})"
        raise TransactionStateError(
            f"Cannot {operation}: {reason}.", self.state.value, savepoint=savepoint
        )

    def _check_name(self, name: str) -> None:
        if not isinstance(name, str) or not _SAVEPOINT_NAME.fullmatch(name):
            raise TransactionStateError(
                f"Invalid savepoint name {name!r}; expected a simple identifier.",
                self.state.value,
                savepoint=str(name),
            )

    def _find(self, name: str) -> int:
        self._check_name(name)
        for index in range(len(self._savepoints) - 1, -1, -1):
            if self._savepoints[index] == name:
                return index
        raise TransactionStateError(
            f"Unknown savepoint '{name}'.", self.state.value, savepoint=name
        )


@contextmanager
def transaction(
    session: Session | None = None,
    isolation: IsolationLevel | str | None = None,
    dialect: DialectProfile | str | None = None,
) -> Iterator[Transaction]:
    """Run a block inside a transaction.

    Commits when the block exits normally.  Rolls back (then re-raises)
    when the block raises or when the COMMIT itself fails.  A block that
    commits or rolls back explicitly is left alone.

    Example::

        with transaction(conn, dialect="sqlite") as tx:
            tx.execute(update("accounts").set(balance=0).where(("id", 1)))
    """
    tx = Transaction(session, isolation=isolation, dialect=dialect)
    tx.begin()
    try:
        yield tx
        if tx.is_active:
            tx.commit()
    except Exception as exc:
        # A failed COMMIT leaves the transaction active, so it is rolled back too.
        if tx.is_active:
            logger.warning("Rolling back transaction after %s: %s", type(exc).__name__, exc)
            tx.rollback()
        raise
