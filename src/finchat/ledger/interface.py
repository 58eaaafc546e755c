"""Ledger interface definition.

This module defines the records and the abstract interface that transaction
storage backends implement for the chat command service.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

TRANSACTION_TYPES = ("expense", "income")


class LedgerError(Exception):
    """Base error for ledger operations."""


class TransactionNotFoundError(LedgerError):
    """Raised when a transaction id does not exist."""

    def __init__(self, transaction_id: int) -> None:
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


@dataclass
class Transaction:
    """A recorded income or expense."""

    id: int
    type: str
    amount: Decimal
    category: str
    date: str  # YYYY-MM-DD
    payment_method: str = "outro"
    description: str | None = None
    is_recurring: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "amount": str(self.amount),
            "category": self.category,
            "date": self.date,
            "payment_method": self.payment_method,
            "description": self.description,
            "is_recurring": self.is_recurring,
        }


@dataclass
class Budget:
    """A monthly spending limit for one category."""

    id: int
    category: str
    limit: Decimal
    month: str  # YYYY-MM


class LedgerProvider(ABC):
    """Abstract interface for the transaction and budget store.

    Mutations are only issued from a confirmed chat action; reads back the
    balance, listing and budget alert replies.
    """

    @abstractmethod
    async def create_transaction(
        self,
        type: str,
        amount: Decimal,
        category: str,
        date: str,
        payment_method: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        """Record a new transaction.

        Raises:
            ValueError: If a required field is missing or the type is invalid
        """

    @abstractmethod
    async def update_transaction(self, transaction_id: int, fields: dict[str, Any]) -> Transaction:
        """Update some fields of a transaction.

        Raises:
            TransactionNotFoundError: If the id does not exist
        """

    @abstractmethod
    async def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction.

        Raises:
            TransactionNotFoundError: If the id does not exist
        """

    @abstractmethod
    async def list_transactions(
        self,
        type: str | None = None,
        date: str | None = None,
        month: str | None = None,
    ) -> list[Transaction]:
        """List transactions in the order they were stored."""

    @abstractmethod
    async def list_budgets(self, month: str | None = None) -> list[Budget]:
        """List budgets, optionally for a single month (YYYY-MM)."""
