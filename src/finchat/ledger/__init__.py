"""Transaction and budget storage used by the chat commands."""

from .connection import get_connection, get_db_path, init_db, run_migrations
from .duckdb_ledger import DuckDBLedger
from .interface import (
    Budget,
    LedgerError,
    LedgerProvider,
    Transaction,
    TransactionNotFoundError,
)

__all__ = [
    "Budget",
    "DuckDBLedger",
    "LedgerError",
    "LedgerProvider",
    "Transaction",
    "TransactionNotFoundError",
    "get_connection",
    "get_db_path",
    "init_db",
    "run_migrations",
]
