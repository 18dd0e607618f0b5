"""
Money arithmetic for projects.

Pure functions over model instances (or anything with the same attributes),
so they can be unit-tested without a database.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


def margin_percent(billing: float | None, cost: float | None) -> float:
    billing = float(billing or 0)
    cost = float(cost or 0)
    if billing <= 0:
        return 0.0
    return round((billing - cost) / billing * 100, 2)


def total_amount(items: Iterable, attr: str = "amount") -> float:
    return float(sum(float(getattr(i, attr) or 0) for i in items))


def client_balance(commercial, payments: Iterable) -> float:
    """Receivable still outstanding from the client."""
    if commercial is None:
        return 0.0
    return round(
        float(commercial.client_project_cost or 0) - float(commercial.client_advance_received or 0) - total_amount(payments),
        2,
    )


def vendor_balance(commercial, payments: Iterable) -> float:
    """Payable still owed to the vendor."""
    if commercial is None:
        return 0.0
    return round(
        float(commercial.vendor_total_cost or 0) - float(commercial.vendor_advance_paid or 0) - total_amount(payments),
        2,
    )


@dataclass(frozen=True)
class ProfitAndLoss:
    total_income: float
    total_expenses: float
    net_profit: float
    margin_percent: float

    @property
    def is_profitable(self) -> bool:
        return self.net_profit >= 0


def profit_and_loss(incomes: Iterable, expenses: Iterable) -> ProfitAndLoss:
    # Extra expenses are reported alongside, not netted here.
    total_income = total_amount(incomes)
    total_expenses = total_amount(expenses)
    net = total_income - total_expenses
    margin = round(net / total_income * 100, 1) if total_income > 0 else 0.0
    return ProfitAndLoss(
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=net,
        margin_percent=margin,
    )


def expenses_by_category(expenses: Iterable) -> dict[str, float]:
    out: dict[str, float] = {}
    for e in expenses:
        out[e.category] = out.get(e.category, 0.0) + float(e.amount or 0)
    return dict(sorted(out.items(), key=lambda kv: kv[1], reverse=True))


def extra_expense_total(extra_expenses: Iterable) -> float:
    return total_amount(extra_expenses)
