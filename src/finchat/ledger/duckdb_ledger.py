"""DuckDB-backed ledger.

Stores transactions and budgets in the schema created by the ledger
migrations. DuckDB connections are not safe for concurrent use, so every
statement runs under a lock.
"""

import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import Any

import duckdb

from .interface import (
    TRANSACTION_TYPES,
    Budget,
    LedgerProvider,
    Transaction,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)

_TRANSACTION_COLUMNS = (
    "id, type, amount, category, date, payment_method, description, is_recurring"
)

# Fields a caller may change through update_transaction
UPDATABLE_FIELDS = {
    "type",
    "amount",
    "category",
    "date",
    "payment_method",
    "description",
    "is_recurring",
}


def _row_to_transaction(row: tuple) -> Transaction:
    return Transaction(
        id=row[0],
        type=row[1],
        amount=Decimal(row[2]),
        category=row[3],
        date=row[4],
        payment_method=row[5],
        description=row[6],
        is_recurring=bool(row[7]),
    )


class DuckDBLedger(LedgerProvider):
    """Ledger on a DuckDB connection that already has the schema applied.

    The methods are async to satisfy LedgerProvider, but each statement runs
    synchronously on the calling thread and blocks the event loop while it
    executes. Statements are short single-row or small-range queries.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    def _fetch_transaction(self, transaction_id: int) -> Transaction | None:
        row = self.conn.execute(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            [transaction_id],
        ).fetchone()
        return _row_to_transaction(row) if row else None

    async def create_transaction(
        self,
        type: str,
        amount: Decimal,
        category: str,
        date: str,
        payment_method: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        if type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {type}")
        if amount is None or not category or not date:
            raise ValueError("amount, category and date are required")

        with self._lock:
            row = self.conn.execute(
                """
                INSERT INTO transactions
                (type, amount, category, date, payment_method, description)
                VALUES (?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                [type, amount, category, date, payment_method or "outro", description],
            ).fetchone()
            transaction = self._fetch_transaction(row[0])

        logger.info("Created %s transaction %s", type, transaction.id)
        return transaction

    async def update_transaction(self, transaction_id: int, fields: dict[str, Any]) -> Transaction:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self._lock:
            if self._fetch_transaction(transaction_id) is None:
                raise TransactionNotFoundError(transaction_id)

            if fields:
                assignments = ", ".join(f"{name} = ?" for name in fields)
                self.conn.execute(
                    f"UPDATE transactions SET {assignments}, updated_at = ? WHERE id = ?",
                    [*fields.values(), datetime.now(), transaction_id],
                )
            transaction = self._fetch_transaction(transaction_id)

        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(fields))
        return transaction

    async def delete_transaction(self, transaction_id: int) -> None:
        with self._lock:
            if self._fetch_transaction(transaction_id) is None:
                raise TransactionNotFoundError(transaction_id)
            self.conn.execute("DELETE FROM transactions WHERE id = ?", [transaction_id])

        logger.info("Deleted transaction %s", transaction_id)

    async def list_transactions(
        self,
        type: str | None = None,
        date: str | None = None,
        month: str | None = None,
    ) -> list[Transaction]:
        query = f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE 1=1"
        params: list[Any] = []

        if type is not None:
            query += " AND type = ?"
            params.append(type)
        if date is not None:
            query += " AND date = ?"
            params.append(date)
        if month is not None:
            query += " AND date LIKE ?"
            params.append(f"{month}-%")

        query += " ORDER BY id"

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()
        return [_row_to_transaction(row) for row in rows]

    async def list_budgets(self, month: str | None = None) -> list[Budget]:
        query = "SELECT id, category, limit_amount, month FROM budgets"
        params: list[Any] = []
        if month is not None:
            query += " WHERE month = ?"
            params.append(month)
        query += " ORDER BY id"

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()
        return [
            Budget(id=row[0], category=row[1], limit=Decimal(row[2]), month=row[3]) for row in rows
        ]

    async def create_budget(self, category: str, limit: Decimal, month: str) -> Budget:
        """Add a monthly budget for a category."""
        with self._lock:
            row = self.conn.execute(
                """
                INSERT INTO budgets (category, limit_amount, month)
                VALUES (?, ?, ?)
                RETURNING id
                """,
                [category, limit, month],
            ).fetchone()
        return Budget(id=row[0], category=category, limit=Decimal(limit), month=month)
