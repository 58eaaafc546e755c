"""Command parser for converting chat text to structured commands."""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

DEFAULT_EXPENSE_CATEGORY = "Outros"
DEFAULT_INCOME_CATEGORY = "Renda"

# Amounts are stored as DECIMAL(12, 2)
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("10000000000")

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_INTEGER_RE = re.compile(r"[+-]?\d+")


class CommandKind(str, Enum):
    """Kinds of command a chat message can carry."""

    RECORD_EXPENSE = "record_expense"
    RECORD_INCOME = "record_income"
    QUERY_BALANCE = "query_balance"
    LIST_RECENT = "list_recent"
    EDIT_TRANSACTION = "edit_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    UNRECOGNIZED = "unrecognized"


@dataclass
class Command:
    """Structured representation of a parsed chat command."""

    kind: CommandKind
    amount: Decimal | None = None
    category: str | None = None
    payment_method: str | None = None
    period: str | None = None
    transaction_id: int | None = None
    confirmation_token: str | None = None
    raw_text: str = field(default="", repr=False)

    @property
    def is_mutating(self) -> bool:
        """Whether executing this command changes financial records."""
        return self.kind in MUTATING_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logs; the confirmation token is left out."""
        data: dict[str, Any] = {"kind": self.kind.value}
        for key in ("category", "payment_method", "period", "transaction_id"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.amount is not None:
            data["amount"] = str(self.amount)
        return data


MUTATING_KINDS = frozenset(
    {
        CommandKind.RECORD_EXPENSE,
        CommandKind.RECORD_INCOME,
        CommandKind.EDIT_TRANSACTION,
        CommandKind.DELETE_TRANSACTION,
    }
)


def parse_decimal(token: str | None) -> Decimal | None:
    """Parse a plain decimal token (dot separator only).

    Returns None when the whole token is not a number.
    """
    if not token or not _DECIMAL_RE.fullmatch(token):
        return None
    try:
        return Decimal(token)
    except InvalidOperation:
        return None


def parse_amount(token: str | None) -> Decimal | None:
    """Parse a monetary amount rounded to cents.

    Returns None unless the rounded amount is positive and below MAX_AMOUNT.
    """
    amount = parse_decimal(token)
    if amount is None or amount >= MAX_AMOUNT:
        return None
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if not 0 < amount < MAX_AMOUNT:
        return None
    return amount


def parse_int(token: str | None) -> int | None:
    """Parse an integer token, returning None on failure."""
    if not token or not _INTEGER_RE.fullmatch(token):
        return None
    return int(token)


def _parse_delete(args: list[str], text: str) -> Command | None:
    transaction_id = parse_int(args[0] if args else None)
    if transaction_id is None or transaction_id <= 0:
        return None
    return Command(kind=CommandKind.DELETE_TRANSACTION, transaction_id=transaction_id)


def _parse_edit(args: list[str], text: str) -> Command | None:
    if len(args) < 2:
        return None
    transaction_id = parse_int(args[0])
    amount = parse_amount(args[1])
    if transaction_id is None or transaction_id <= 0 or amount is None:
        return None
    return Command(
        kind=CommandKind.EDIT_TRANSACTION,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_confirm(args: list[str], text: str) -> Command:
    # The token is the second word of the message, not what follows the verb
    words = text.split()
    token = words[1] if len(words) > 1 else ""
    return Command(kind=CommandKind.CONFIRM, confirmation_token=token)


def _parse_balance(args: list[str], text: str) -> Command:
    period = "today" if "hoje" in text else "all"
    return Command(kind=CommandKind.QUERY_BALANCE, period=period)


def _parse_expense(args: list[str], text: str) -> Command | None:
    amount = parse_amount(args[0] if args else None)
    if amount is None:
        return None
    rest = args[1:]
    # The last word is the payment method, everything between is the category
    payment_method = rest[-1] if rest else None
    category = " ".join(rest[:-1]) or DEFAULT_EXPENSE_CATEGORY
    return Command(
        kind=CommandKind.RECORD_EXPENSE,
        amount=amount,
        category=category,
        payment_method=payment_method,
    )


def _parse_income(args: list[str], text: str) -> Command | None:
    amount = parse_amount(args[0] if args else None)
    if amount is None:
        return None
    category = " ".join(args[1:]) or DEFAULT_INCOME_CATEGORY
    return Command(kind=CommandKind.RECORD_INCOME, amount=amount, category=category)


Extractor = Callable[[list[str], str], Command | None]


@dataclass(frozen=True)
class CommandRule:
    """A verb pattern plus the extractor that builds the command."""

    pattern: re.Pattern[str]
    extractor: Extractor

    def apply(self, text: str) -> Command | None:
        """Return the extracted command, or None when the verb does not match.

        A matching verb whose arguments fail to parse yields ``unrecognized``.
        """
        match = self.pattern.match(text)
        if match is None:
            return None
        args = text[match.end() :].split()
        command = self.extractor(args, text)
        if command is None:
            return Command(kind=CommandKind.UNRECOGNIZED)
        return command


def _verb(*prefixes: str, bare: tuple[str, ...] = ()) -> re.Pattern[str]:
    """Match a literal verb prefix, or a bare word that must stand alone."""
    alternatives = [re.escape(p) for p in prefixes]
    alternatives += [re.escape(w) + r"\b" for w in bare]
    return re.compile(r"^(?:" + "|".join(alternatives) + ")")


class CommandParser:
    """Parse chat messages into commands using an ordered list of verb rules."""

    def __init__(self) -> None:
        """Initialize the parser with its rules, highest priority first."""
        self.rules: list[CommandRule] = [
            CommandRule(_verb("listar"), lambda args, text: Command(kind=CommandKind.LIST_RECENT)),
            CommandRule(_verb("deletar"), _parse_delete),
            CommandRule(_verb("editar"), _parse_edit),
            CommandRule(_verb("confirmar", bare=("sim",)), _parse_confirm),
            CommandRule(
                _verb("cancelar", bare=("não", "nao")),
                lambda args, text: Command(kind=CommandKind.CANCEL),
            ),
            CommandRule(_verb("saldo"), _parse_balance),
            CommandRule(_verb("gasto"), _parse_expense),
            CommandRule(_verb("entrada"), _parse_income),
        ]

    def parse(self, text: str) -> Command:
        """Parse message text into a command.

        Args:
            text: Raw message text as typed by the user

        Returns:
            Command; ``unrecognized`` when no rule accepts the text
        """
        normalized = (text or "").strip().lower()

        for rule in self.rules:
            command = rule.apply(normalized)
            if command is not None:
                command.raw_text = normalized
                return command

        return Command(kind=CommandKind.UNRECOGNIZED, raw_text=normalized)


_default_parser = CommandParser()


def parse(text: str) -> Command:
    """Parse text with the module-level parser."""
    return _default_parser.parse(text)
