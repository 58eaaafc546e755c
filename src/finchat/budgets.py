"""Budget threshold checks for the chat replies."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from finchat.commands import replies
from finchat.ledger.interface import Budget, Transaction


@dataclass
class BudgetStatus:
    """Spend of one category against its monthly limit."""

    category: str
    limit: Decimal
    spent: Decimal

    @property
    def percentage(self) -> Decimal:
        if self.limit <= 0:
            return Decimal(0)
        return self.spent / self.limit * 100


def category_spend(transactions: Iterable[Transaction], category: str, month: str) -> Decimal:
    """Sum expenses of a category dated within ``month`` (YYYY-MM)."""
    wanted = category.casefold()
    return sum(
        (
            t.amount
            for t in transactions
            if t.type == "expense"
            and t.category.casefold() == wanted
            and t.date.startswith(month)
        ),
        Decimal(0),
    )


def budget_status(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    category: str,
    month: str,
) -> BudgetStatus | None:
    """Return the status of the category's budget for ``month``, if one exists."""
    wanted = category.casefold()
    budget = next(
        (b for b in budgets if b.month == month and b.category.casefold() == wanted),
        None,
    )
    if budget is None or budget.limit <= 0:
        return None
    return BudgetStatus(
        category=budget.category,
        limit=budget.limit,
        spent=category_spend(transactions, category, month),
    )


def budget_alert(
    status: BudgetStatus | None,
    warning_percent: int = 80,
    exceeded_percent: int = 100,
) -> str | None:
    """Render the alert for a budget status; the exceeded alert wins over the warning."""
    if status is None:
        return None
    if status.percentage >= exceeded_percent:
        return replies.budget_exceeded(status.category, status.limit, status.spent)
    if status.percentage >= warning_percent:
        return replies.budget_warning(status.category, status.limit, status.spent)
    return None
