"""Notification service: daily summaries and history maintenance."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from finchat.commands import replies
from finchat.ledger.interface import LedgerProvider, Transaction
from finchat.notifications.history import NotificationHistory
from finchat.notifications.provider import MessageDeliveryProvider

logger = logging.getLogger(__name__)


def build_daily_summary(transactions: list[Transaction], today: str) -> tuple[str, Decimal, int]:
    """Render the summary of transactions dated ``today``.

    Returns:
        (message text, balance of the day, number of transactions)
    """
    income = Decimal(0)
    expense = Decimal(0)
    count = 0
    for t in transactions:
        if t.date != today:
            continue
        count += 1
        if t.type == "income":
            income += t.amount
        else:
            expense += t.amount
    return replies.daily_summary(income, expense, count), income - expense, count


class NotificationService:
    """Delivers summaries and keeps the notification history bounded."""

    def __init__(
        self,
        ledger: LedgerProvider,
        delivery: MessageDeliveryProvider,
        history: NotificationHistory,
        retention_days: int = 7,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.ledger = ledger
        self.delivery = delivery
        self.history = history
        self.retention_days = retention_days
        self.clock = clock

    async def send_daily_summary(self, key: str) -> dict[str, Any]:
        """Send today's summary to a conversation and record it."""
        now = self.clock()
        today = now.date().isoformat()
        transactions = await self.ledger.list_transactions(date=today)
        text, day_balance, count = build_daily_summary(transactions, today)

        result = await self.delivery.send_text(key, text)
        self.history.add(
            key,
            "daily_summary",
            title="Resumo Diário",
            message=f"{count} transações | Saldo: {replies.money(day_balance)}",
            timestamp=now,
        )
        return {"text": text, "delivery": result}

    def cleanup(self) -> int:
        """Remove notifications older than the retention window."""
        cutoff = self.clock() - timedelta(days=self.retention_days)
        removed = self.history.cleanup_older_than(cutoff)
        if removed:
            logger.info("Removed %d old notifications", removed)
        return removed
