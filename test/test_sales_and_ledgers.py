from pathlib import Path

import pytest
from conftest import add_product, cash, make_store

from rdash.domain.errors import InsufficientFundsError, InsufficientStockError, NotFoundError, ValidationError
from rdash.services.expense_service import ExpenseService, search_expenses
from rdash.services.loader_service import DataLoader
from rdash.services.reinvestment_service import ReinvestmentService
from rdash.services.sales_service import SalesService, recent_sales


def test_sale_moves_stock_cash_and_appends_record(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    p = add_product(store, "Cafe", 10, 15.0, 10.0)

    sale = SalesService(store).record_sale(p, 3)

    snap = DataLoader(store).load()
    assert snap.products[0].quantity == 7
    assert snap.cash_balance == 145.0
    assert snap.sales == (sale,)
    assert sale.product_id == p.id
    assert sale.product_name == "Cafe"
    assert sale.quantity == 3
    assert sale.unit_price == 15.0
    assert sale.total == 45.0


def test_sale_total_is_rounded_to_cents(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=0.0)
    p = add_product(store, "Chicle", 10, 0.1, 0.05)

    sale = SalesService(store).record_sale(p, 3)

    assert sale.total == 0.3
    assert cash(store) == 0.3


def test_oversell_writes_nothing(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    p = add_product(store, "Cafe", 2, 15.0, 10.0)

    with pytest.raises(InsufficientStockError, match="Available: 2"):
        SalesService(store).record_sale(p, 3)

    snap = DataLoader(store).load()
    assert snap.products[0].quantity == 2
    assert snap.cash_balance == 100.0
    assert snap.sales == ()


def test_stale_snapshot_is_rechecked_against_the_store(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=0.0)
    stale = add_product(store, "Cafe", 5, 1.0, 0.5)
    store.update("productos", stale.id, {"cantidad": 1})

    with pytest.raises(InsufficientStockError, match="Available: 1"):
        SalesService(store).record_sale(stale, 3)

    assert cash(store) == 0.0
    assert store.select_all("ventas", "created_at") == []


def test_sale_copies_current_name_and_price(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=0.0)
    stale = add_product(store, "Cafe", 5, 1.0, 0.5)
    store.update("productos", stale.id, {"nombre": "Cafe tostado", "precioVenta": 2.5})

    sale = SalesService(store).record_sale(stale, 2)

    assert sale.product_name == "Cafe tostado"
    assert sale.unit_price == 2.5
    assert sale.total == 5.0
    assert cash(store) == 5.0


@pytest.mark.parametrize("qty", [0, -1, 1.5, "2", True])
def test_sale_quantity_must_be_positive_integer(tmp_path: Path, qty):
    store = make_store(tmp_path)
    p = add_product(store, "Cafe", 5, 1.0, 0.5)

    with pytest.raises(ValidationError):
        SalesService(store).record_sale(p, qty)


def test_recent_sales_caps_list():
    assert recent_sales(range(30)) == list(range(20))
    assert recent_sales([1, 2], limit=5) == [1, 2]


def test_expense_above_cash_is_rejected_without_writes(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=20.0)

    with pytest.raises(InsufficientFundsError):
        ExpenseService(store).record_expense("Luz", 20.01, cash_balance=20.0)

    assert cash(store) == 20.0
    assert store.select_all("gastos", "created_at") == []


@pytest.mark.parametrize(
    "concept, amount",
    [("", 5.0), ("Luz", None), ("Luz", 0), ("Luz", -3.0), ("Luz", float("nan")), ("Luz", float("inf")), ("Luz", float("-inf"))],
)
def test_expense_validation(tmp_path: Path, concept, amount):
    store = make_store(tmp_path)
    with pytest.raises(ValidationError):
        ExpenseService(store).record_expense(concept, amount, cash_balance=100.0)
    assert cash(store) == 100.0
    assert store.select_all("gastos", "created_at") == []


@pytest.mark.parametrize("qty", [float("inf"), float("nan")])
def test_non_finite_quantity_is_a_validation_error(tmp_path: Path, qty):
    store = make_store(tmp_path, opening_balance=100.0)
    p = add_product(store, "Cafe", 10, 15.0, 10.0)

    with pytest.raises(ValidationError, match="whole number"):
        SalesService(store).record_sale(p, qty)
    with pytest.raises(ValidationError, match="whole number"):
        ReinvestmentService(store).record_reinvestment(p, qty, cash_balance=100.0)
    assert cash(store) == 100.0


def test_expense_then_delete_refunds_exact_amount(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    expenses = ExpenseService(store)

    e = expenses.record_expense("  Renta ", 40.25, cash_balance=100.0)
    assert e.concept == "Renta"
    assert cash(store) == 59.75

    expenses.delete_expense(e)

    snap = DataLoader(store).load()
    assert snap.cash_balance == 100.0
    assert snap.expenses == ()


def test_deleting_a_missing_expense_leaves_cash_alone(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    expenses = ExpenseService(store)
    e = expenses.record_expense("Renta", 10.0, cash_balance=100.0)
    store.delete("gastos", e.id)

    with pytest.raises(NotFoundError):
        expenses.delete_expense(e)

    assert cash(store) == 90.0


def test_search_expenses_by_concept(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    expenses = ExpenseService(store)
    expenses.record_expense("Luz", 5.0, cash_balance=100.0)
    expenses.record_expense("Agua potable", 5.0, cash_balance=95.0)

    found = search_expenses(DataLoader(store).load().expenses, "agua")
    assert [e.concept for e in found] == ["Agua potable"]


def test_reinvestment_buys_stock_with_cash(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    p = add_product(store, "Cafe", 2, 15.0, 10.0)

    r = ReinvestmentService(store).record_reinvestment(p, 4, cash_balance=100.0)

    snap = DataLoader(store).load()
    assert snap.products[0].quantity == 6
    assert snap.cash_balance == 60.0
    assert snap.reinvestments == (r,)
    assert (r.product_name, r.quantity_purchased, r.unit_cost, r.total_cost) == ("Cafe", 4, 10.0, 40.0)


def test_reinvestment_above_cash_is_rejected(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=30.0)
    p = add_product(store, "Cafe", 2, 15.0, 10.0)

    with pytest.raises(InsufficientFundsError):
        ReinvestmentService(store).record_reinvestment(p, 4, cash_balance=30.0)

    assert cash(store) == 30.0
    assert store.get("productos", p.id)["cantidad"] == 2
    assert store.select_all("reinversiones", "created_at") == []


def test_reinvestment_rechecks_cash_in_the_store(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=100.0)
    p = add_product(store, "Cafe", 2, 15.0, 10.0)
    store.update("dinero", 1, {"monto": 5.0})

    with pytest.raises(InsufficientFundsError):
        ReinvestmentService(store).record_reinvestment(p, 1, cash_balance=100.0)

    assert cash(store) == 5.0
    assert store.get("productos", p.id)["cantidad"] == 2
