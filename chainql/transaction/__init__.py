"""chainQL transaction coordination: state machine, savepoints, isolation."""
from chainql.transaction.coordinator import (
    IsolationLevel,
    Session,
    Transaction,
    TransactionState,
    transaction,
)

__all__ = [
    "IsolationLevel",
    "Session",
    "Transaction",
    "TransactionState",
    "transaction",
]
