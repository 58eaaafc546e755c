"""Command dispatcher with two-phase confirmation.

Each conversation is either idle or awaiting confirmation of exactly one
staged action. Mutating commands only stage an action; the ledger is written
solely when a later ``confirm`` finds a live staged action. Every failure is
turned into a reply, so ``process_message`` never raises.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from decimal import Decimal

from finchat import budgets
from finchat.commands import replies
from finchat.commands.command_parser import Command, CommandKind, CommandParser
from finchat.commands.pending_actions import (
    InMemoryPendingActionStore,
    PendingAction,
    PendingActionStore,
    generate_confirmation_token,
)
from finchat.config import Settings
from finchat.ledger.interface import LedgerProvider, Transaction
from finchat.logging_utils import (
    clear_conversation_id,
    log_debug,
    log_error,
    log_info,
    log_warning,
    set_conversation_id,
)
from finchat.metrics import MetricsCollector
from finchat.notifications.history import NotificationHistory

logger = logging.getLogger(__name__)

_KIND_BY_COMMAND = {
    CommandKind.RECORD_EXPENSE: "expense",
    CommandKind.RECORD_INCOME: "income",
    CommandKind.EDIT_TRANSACTION: "edit",
    CommandKind.DELETE_TRANSACTION: "delete",
}


def _local_date(value: str) -> date | None:
    """Parse a stored YYYY-MM-DD date; None when malformed."""
    try:
        year, month, day = (int(part) for part in value.split("-"))
        return date(year, month, day)
    except ValueError:
        return None


class CommandDispatcher:
    """Route parsed commands and compose reply text."""

    def __init__(
        self,
        ledger: LedgerProvider,
        store: PendingActionStore | None = None,
        settings: Settings | None = None,
        parser: CommandParser | None = None,
        history: NotificationHistory | None = None,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            ledger: Store of transactions and budgets
            store: Pending confirmation store (in-memory when omitted)
            settings: Service settings (defaults when omitted)
            parser: Command parser
            history: Optional notification history to record confirmations in
            metrics: Optional metrics collector
            clock: Returns the current local time
        """
        self.ledger = ledger
        self.store = store if store is not None else InMemoryPendingActionStore()
        self.settings = settings or Settings()
        self.parser = parser or CommandParser()
        self.history = history
        self.metrics = metrics
        self.clock = clock

        self._handlers: dict[CommandKind, Callable[[str, Command], Awaitable[str]]] = {
            CommandKind.CONFIRM: self._handle_confirm,
            CommandKind.CANCEL: self._handle_cancel,
            CommandKind.QUERY_BALANCE: self._handle_balance,
            CommandKind.LIST_RECENT: self._handle_list_recent,
            CommandKind.UNRECOGNIZED: self._handle_unrecognized,
        }

    async def process_message(self, key: str, raw_text: str) -> str:
        """Parse and dispatch one inbound message.

        Args:
            key: Conversation key of the sender
            raw_text: Message text

        Returns:
            Reply text for the sender
        """
        started = time.perf_counter()
        set_conversation_id(key)
        command = self.parser.parse(raw_text)
        log_debug(logger, "Parsed message", **command.to_dict())
        try:
            return await self.dispatch(key, command)
        except Exception as e:
            log_error(
                logger,
                "Failed to process message",
                command=command.kind.value,
                error=type(e).__name__,
                detail=e,
            )
            return replies.PROCESSING_FAILED_TEXT
        finally:
            if self.metrics is not None:
                latency_ms = (time.perf_counter() - started) * 1000
                self.metrics.record_command(command.kind.value, latency_ms)
            clear_conversation_id()

    async def dispatch(self, key: str, command: Command) -> str:
        """Execute a parsed command for a conversation and return the reply."""
        if command.is_mutating:
            return await self._handle_stage(key, command)
        return await self._handlers[command.kind](key, command)

    def _record_confirmation(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_confirmation(outcome)

    async def _handle_stage(self, key: str, command: Command) -> str:
        """Stage a mutating command, replacing any action already pending."""
        kind = _KIND_BY_COMMAND[command.kind]
        token = generate_confirmation_token(self.settings.confirmation.token_length)

        if kind == "expense":
            payload = {
                "amount": str(command.amount),
                "category": command.category,
                "payment_method": command.payment_method,
                "description": f"{command.category} - {command.payment_method or 'outro'}",
            }
            prompt = replies.expense_prompt(
                command.amount, command.category, command.payment_method, token
            )
        elif kind == "income":
            payload = {
                "amount": str(command.amount),
                "category": command.category,
                "description": command.category,
            }
            prompt = replies.income_prompt(command.amount, command.category, token)
        elif kind == "edit":
            payload = {"transaction_id": command.transaction_id, "amount": str(command.amount)}
            prompt = replies.edit_prompt(command.transaction_id, command.amount, token)
        else:
            payload = {"transaction_id": command.transaction_id}
            prompt = replies.delete_prompt(command.transaction_id, token)

        if self.store.get(key) is not None:
            log_info(logger, "Replacing pending action", kind=kind)
        action = PendingAction(kind=kind, payload=payload, created_at=self.clock(), token=token)
        self.store.set(key, action)
        log_info(logger, "Staged action awaiting confirmation", kind=kind)
        return prompt

    async def _handle_confirm(self, key: str, command: Command) -> str:
        pending = self.store.get(key)
        if pending is None:
            self._record_confirmation("none_pending")
            return replies.NO_PENDING_TEXT

        now = self.clock()
        if pending.is_expired(now, self.settings.confirmation.ttl_seconds):
            self.store.delete(key)
            self._record_confirmation("expired")
            log_info(logger, "Pending action expired", kind=pending.kind)
            return replies.EXPIRED_TEXT

        supplied = (command.confirmation_token or "").upper()
        if self.settings.confirmation.require_token_match and supplied != pending.token.upper():
            self._record_confirmation("invalid_token")
            log_warning(logger, "Confirmation token mismatch", kind=pending.kind)
            return replies.invalid_token(supplied)

        try:
            reply, recorded = await self._execute(pending, now)
        except Exception as e:
            # Not retried: the user has to send the command again
            self.store.delete(key)
            self._record_confirmation("error")
            log_error(
                logger,
                "Failed to execute confirmed action",
                kind=pending.kind,
                error=type(e).__name__,
                detail=e,
            )
            return replies.CONFIRM_FAILED_TEXT

        self.store.delete(key)
        self._record_confirmation("ok")
        log_info(logger, "Executed confirmed action", kind=pending.kind)

        if recorded is not None:
            alert = await self._budget_alert(recorded, now)
            self._remember(key, recorded, alert, now)
            if alert:
                reply = f"{reply}\n\n{alert}"
        return reply

    async def _execute(
        self, pending: PendingAction, now: datetime
    ) -> tuple[str, Transaction | None]:
        """Apply a staged action to the ledger.

        Returns:
            (success text, created transaction for expense/income else None)
        """
        payload = pending.payload
        today = now.date().isoformat()

        if pending.kind == "delete":
            await self.ledger.delete_transaction(payload["transaction_id"])
            return replies.deleted(payload["transaction_id"]), None

        amount = Decimal(payload["amount"])
        if pending.kind == "edit":
            await self.ledger.update_transaction(
                payload["transaction_id"], {"amount": amount, "date": today}
            )
            return replies.edited(payload["transaction_id"], amount), None

        transaction = await self.ledger.create_transaction(
            type=pending.kind,
            amount=amount,
            category=payload["category"],
            date=today,
            payment_method=payload.get("payment_method") or "outro",
            description=payload.get("description"),
        )
        return replies.recorded(pending.kind, amount), transaction

    async def _budget_alert(self, transaction: Transaction, now: datetime) -> str | None:
        """Check the transaction's category against its budget for this month."""
        month = now.strftime("%Y-%m")
        try:
            month_budgets = await self.ledger.list_budgets(month=month)
            if not month_budgets:
                return None
            transactions = await self.ledger.list_transactions(month=month)
        except Exception as e:
            # The transaction is already stored; report success without the alert
            log_warning(logger, "Budget check failed", error=type(e).__name__, detail=e)
            return None

        status = budgets.budget_status(transactions, month_budgets, transaction.category, month)
        return budgets.budget_alert(
            status,
            warning_percent=self.settings.budget.warning_percent,
            exceeded_percent=self.settings.budget.exceeded_percent,
        )

    def _remember(
        self, key: str, transaction: Transaction, alert: str | None, now: datetime
    ) -> None:
        if self.history is None:
            return
        label = "Entrada" if transaction.type == "income" else "Saída"
        self.history.add(
            key,
            "transaction_created",
            title=f"{label} de {replies.money(transaction.amount)}",
            message=f"{transaction.category} - {now:%d/%m/%Y %H:%M}",
            timestamp=now,
        )
        if alert:
            self.history.add(
                key, "budget_alert", title="Alerta de orçamento", message=alert, timestamp=now
            )

    async def _handle_cancel(self, key: str, command: Command) -> str:
        if self.store.delete(key):
            log_info(logger, "Pending action cancelled")
            return replies.CANCELLED_TEXT
        return replies.NOTHING_TO_CANCEL_TEXT

    async def _handle_balance(self, key: str, command: Command) -> str:
        transactions = await self.ledger.list_transactions()
        if command.period == "today":
            today = self.clock().date()
            transactions = [t for t in transactions if _local_date(t.date) == today]

        income = sum((t.amount for t in transactions if t.type == "income"), Decimal(0))
        expense = sum((t.amount for t in transactions if t.type != "income"), Decimal(0))
        return replies.balance(income, expense, command.period or "all")

    async def _handle_list_recent(self, key: str, command: Command) -> str:
        transactions = await self.ledger.list_transactions()
        recent = transactions[-self.settings.recent_limit :][::-1]
        return replies.recent_transactions(recent)

    async def _handle_unrecognized(self, key: str, command: Command) -> str:
        return replies.HELP_TEXT
