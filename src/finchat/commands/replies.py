"""Reply texts for chat commands.

Every function here is pure: it takes values and returns the message sent
back to the user.
"""

from collections.abc import Iterable
from decimal import Decimal

from finchat.ledger.interface import Transaction

HELP_TEXT = (
    "❓ Comando não reconhecido.\n\n"
    "📋 Comandos disponíveis:\n\n"
    "💸 gasto 25 mercado pix\n"
    "💰 entrada 100 salário\n"
    "📊 saldo total\n"
    "📊 saldo hoje\n"
    "📋 listar\n"
    "✏️ editar 123 50\n"
    "🗑️ deletar 123"
)

NO_TRANSACTIONS_TEXT = "📋 Nenhuma transação registrada ainda.\n\nUse: gasto 25 mercado pix"
NO_PENDING_TEXT = "❌ Nenhuma confirmação pendente."
EXPIRED_TEXT = "⏰ Confirmação expirada. Tente novamente.\n\n" + NO_PENDING_TEXT
CANCELLED_TEXT = "❌ Operação cancelada."
NOTHING_TO_CANCEL_TEXT = "❌ Nenhuma operação para cancelar."
CONFIRM_FAILED_TEXT = "❌ Erro ao processar confirmação. Tente novamente."
PROCESSING_FAILED_TEXT = "❌ Erro ao processar sua mensagem. Tente novamente."


def money(value: Decimal | float | int) -> str:
    """Format a value as ``R$ 12.34``."""
    return f"R$ {Decimal(value):.2f}"


def _confirm_prompt(token: str) -> str:
    return f"Responda: confirmar {token}\nOu: cancelar"


def expense_prompt(
    amount: Decimal, category: str, payment_method: str | None, token: str
) -> str:
    return (
        "💸 Confirmar gasto?\n\n"
        f"Valor: {money(amount)}\n"
        f"Categoria: {category}\n"
        f"Método: {payment_method or 'outro'}\n\n" + _confirm_prompt(token)
    )


def income_prompt(amount: Decimal, category: str, token: str) -> str:
    return (
        "💰 Confirmar entrada?\n\n"
        f"Valor: {money(amount)}\n"
        f"Categoria: {category}\n\n" + _confirm_prompt(token)
    )


def edit_prompt(transaction_id: int, amount: Decimal, token: str) -> str:
    return (
        f"⚠️ Confirmar edição da transação #{transaction_id}?\n\n"
        f"Novo valor: {money(amount)}\n\n" + _confirm_prompt(token)
    )


def delete_prompt(transaction_id: int, token: str) -> str:
    return f"⚠️ Confirmar exclusão da transação #{transaction_id}?\n\n" + _confirm_prompt(token)


def invalid_token(token: str) -> str:
    return f"❌ Código de confirmação inválido: {token.upper() or '(vazio)'}.\n\n" + (
        "Confira o código enviado ou responda: cancelar"
    )


def recorded(kind: str, amount: Decimal) -> str:
    """Success text after an expense or income was stored."""
    if kind == "expense":
        return f"✅ 💸 Gasto de {money(amount)} registrado com sucesso!"
    return f"✅ 💰 Entrada de {money(amount)} registrada com sucesso!"


def edited(transaction_id: int, amount: Decimal) -> str:
    return f"✅ Transação #{transaction_id} atualizada para {money(amount)}!"


def deleted(transaction_id: int) -> str:
    return f"✅ Transação #{transaction_id} deletada com sucesso!"


def balance(income: Decimal, expense: Decimal, period: str) -> str:
    label = "de hoje" if period == "today" else "total"
    return (
        f"💰 Saldo {label}:\n\n"
        f"📈 Entradas: {money(income)}\n"
        f"📉 Saídas: {money(expense)}\n"
        f"💵 Saldo: {money(income - expense)}"
    )


def recent_transactions(transactions: Iterable[Transaction]) -> str:
    """Render transactions one per entry, or the usage hint when empty."""
    transactions = list(transactions)
    if not transactions:
        return NO_TRANSACTIONS_TEXT

    lines = [f"📋 Últimas {len(transactions)} Transações:", ""]
    for t in transactions:
        icon = "📈" if t.type == "income" else "📉"
        lines.append(f"{icon} [ID: {t.id}] {t.category}")
        lines.append(f"   {money(t.amount)} | {t.date}")
    return "\n".join(lines)


def budget_exceeded(category: str, limit: Decimal, spent: Decimal) -> str:
    return (
        f"⚠️ ALERTA: Você ultrapassou a meta de {category}!\n\n"
        f"Meta: {money(limit)}\n"
        f"Gasto: {money(spent)}\n"
        f"Excesso: {money(spent - limit)}"
    )


def budget_warning(category: str, limit: Decimal, spent: Decimal) -> str:
    return (
        f"⚠️ ATENÇÃO: Você está próximo da meta de {category}!\n\n"
        f"Meta: {money(limit)}\n"
        f"Gasto: {money(spent)}\n"
        f"Restante: {money(limit - spent)}"
    )


def daily_summary(income: Decimal, expense: Decimal, count: int) -> str:
    return (
        "📊 Resumo de Hoje:\n\n"
        f"📈 Entradas: {money(income)}\n"
        f"📉 Saídas: {money(expense)}\n"
        f"💵 Saldo: {money(income - expense)}\n\n"
        f"📋 Transações: {count}"
    )
