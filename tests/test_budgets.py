"""Tests for budget threshold checks."""

from decimal import Decimal

from finchat.budgets import BudgetStatus, budget_alert, budget_status, category_spend
from finchat.ledger.interface import Budget, Transaction


def tx(id, amount, category="Mercado", date="2026-03-10", type="expense") -> Transaction:
    return Transaction(id=id, type=type, amount=Decimal(amount), category=category, date=date)


TRANSACTIONS = [
    tx(1, "300", "Mercado"),
    tx(2, "200.50", "mercado"),
    tx(3, "999", "Lazer"),
    tx(4, "5000", "Mercado", type="income"),
    tx(5, "80", "Mercado", date="2026-02-28"),
]

BUDGETS = [
    Budget(id=1, category="Mercado", limit=Decimal("1000"), month="2026-03"),
    Budget(id=2, category="Lazer", limit=Decimal("0"), month="2026-03"),
    Budget(id=3, category="Mercado", limit=Decimal("50"), month="2026-02"),
]


class TestCategorySpend:
    """Test the monthly category sum."""

    def test_sums_expenses_of_month_ignoring_case(self) -> None:
        assert category_spend(TRANSACTIONS, "MERCADO", "2026-03") == Decimal("500.50")

    def test_other_month(self) -> None:
        assert category_spend(TRANSACTIONS, "Mercado", "2026-02") == Decimal("80")

    def test_nothing_spent(self) -> None:
        assert category_spend(TRANSACTIONS, "Transporte", "2026-03") == Decimal(0)


class TestBudgetStatus:
    """Test budget lookup."""

    def test_found(self) -> None:
        status = budget_status(TRANSACTIONS, BUDGETS, "mercado", "2026-03")
        assert status == BudgetStatus(
            category="Mercado", limit=Decimal("1000"), spent=Decimal("500.50")
        )
        assert status.percentage == Decimal("50.05")

    def test_no_budget(self) -> None:
        assert budget_status(TRANSACTIONS, BUDGETS, "Transporte", "2026-03") is None

    def test_zero_limit_ignored(self) -> None:
        assert budget_status(TRANSACTIONS, BUDGETS, "Lazer", "2026-03") is None


class TestBudgetAlert:
    """Test alert thresholds."""

    def status(self, spent: str) -> BudgetStatus:
        return BudgetStatus(category="Mercado", limit=Decimal("1000"), spent=Decimal(spent))

    def test_no_status(self) -> None:
        assert budget_alert(None) is None

    def test_below_warning(self) -> None:
        assert budget_alert(self.status("799.99")) is None

    def test_warning_at_eighty_percent(self) -> None:
        alert = budget_alert(self.status("800"))
        assert alert.startswith("⚠️ ATENÇÃO: Você está próximo da meta de Mercado!")
        assert "Restante: R$ 200.00" in alert

    def test_exceeded_at_limit(self) -> None:
        alert = budget_alert(self.status("1000"))
        assert alert.startswith("⚠️ ALERTA: Você ultrapassou a meta de Mercado!")
        assert "Meta: R$ 1000.00" in alert
        assert "Gasto: R$ 1000.00" in alert
        assert "Excesso: R$ 0.00" in alert

    def test_exceeded_only_once(self) -> None:
        alert = budget_alert(self.status("1500"))
        assert "ALERTA" in alert
        assert "ATENÇÃO" not in alert
        assert "Excesso: R$ 500.00" in alert

    def test_custom_thresholds(self) -> None:
        assert budget_alert(self.status("500"), warning_percent=50, exceeded_percent=90)
        assert "ALERTA" in budget_alert(
            self.status("900"), warning_percent=50, exceeded_percent=90
        )
