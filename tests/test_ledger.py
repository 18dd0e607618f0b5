"""Project money arithmetic over plain stand-in objects."""
from types import SimpleNamespace

from app.markeng.modules.projects import ledger


def _row(amount, **kw):
    return SimpleNamespace(amount=amount, **kw)


def _commercial(**kw):
    base = dict(client_project_cost=0, client_advance_received=0, vendor_total_cost=0, vendor_advance_paid=0)
    base.update(kw)
    return SimpleNamespace(**base)


def test_margin_percent():
    assert ledger.margin_percent(100000, 75000) == 25.0
    assert ledger.margin_percent(0, 500) == 0.0
    assert ledger.margin_percent(None, None) == 0.0


def test_client_balance_subtracts_advance_and_payments():
    cd = _commercial(client_project_cost=500000, client_advance_received=100000)
    assert ledger.client_balance(cd, [_row(150000), _row(50000)]) == 200000.0


def test_vendor_balance_subtracts_advance_and_payments():
    cd = _commercial(vendor_total_cost=300000, vendor_advance_paid=50000)
    assert ledger.vendor_balance(cd, [_row(25000)]) == 225000.0


def test_balances_without_commercials_are_zero():
    assert ledger.client_balance(None, [_row(10)]) == 0.0
    assert ledger.vendor_balance(None, []) == 0.0


def test_profit_and_loss():
    pnl = ledger.profit_and_loss([_row(200000), _row(50000)], [_row(100000), _row(None)])
    assert pnl.total_income == 250000.0
    assert pnl.total_expenses == 100000.0
    assert pnl.net_profit == 150000.0
    assert pnl.margin_percent == 60.0
    assert pnl.is_profitable


def test_loss_without_income_has_zero_margin():
    pnl = ledger.profit_and_loss([], [_row(1200)])
    assert pnl.net_profit == -1200.0
    assert pnl.margin_percent == 0.0
    assert not pnl.is_profitable


def test_expenses_by_category_sorted_descending():
    expenses = [
        _row(100, category="Power"),
        _row(900, category="Raw Material"),
        _row(300, category="Power"),
    ]
    assert list(ledger.expenses_by_category(expenses).items()) == [("Raw Material", 900.0), ("Power", 400.0)]


def test_extra_expense_total():
    assert ledger.extra_expense_total([_row(120.5), _row(79.5)]) == 200.0
