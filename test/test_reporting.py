from datetime import date, datetime
from pathlib import Path

from openpyxl import load_workbook

from rdash.domain.models import Expense, Product, Reinvestment, Sale, Snapshot
from rdash.services.reporting_service import (
    ReportingService,
    daily_total,
    format_money,
    gross_profit,
    low_stock,
    net_profit,
    top_sellers,
)

TODAY = date(2024, 5, 10)
NOON = datetime(2024, 5, 10, 12, 0)
YESTERDAY = datetime(2024, 5, 9, 23, 59)


def product(pid, qty=10, price=15.0, cost=10.0, name=None):
    return Product(id=pid, name=name or f"P{pid}", quantity=qty, sale_price=price, purchase_cost=cost)


def sale(sid, pid, name, qty, price=15.0, at=NOON):
    return Sale(id=sid, product_id=pid, product_name=name, quantity=qty, unit_price=price,
                total=round(price * qty, 2), created_at=at)


def expense(eid, amount, at=NOON, concept="Luz"):
    return Expense(id=eid, concept=concept, amount=amount, created_at=at)


def test_gross_profit_matches_hand_computation():
    assert gross_profit([product(1, cost=10.0)], [sale(1, 1, "P1", 3, price=15.0)]) == 15.0

    products = [product(1, cost=10.0), product(2, cost=2.5)]
    sales = [sale(1, 1, "P1", 3, price=15.0), sale(2, 2, "P2", 4, price=4.0), sale(3, 1, "P1", 1, price=12.0)]
    assert gross_profit(products, sales) == 15.0 + 6.0 + 2.0


def test_gross_profit_skips_sales_of_deleted_products():
    sales = [sale(1, 1, "P1", 3), sale(2, 99, "Gone", 5), sale(3, None, "Gone", 1)]
    assert gross_profit([product(1)], sales) == 15.0


def test_net_profit_subtracts_all_expenses():
    assert net_profit(15.0, [expense(1, 4.0), expense(2, 1.5, at=YESTERDAY)]) == 9.5
    assert net_profit(2.0, [expense(1, 5.0)]) == -3.0


def test_top_sellers_groups_by_name_and_sorts():
    sales = [sale(1, 1, "A", 5), sale(2, 2, "B", 9), sale(3, 1, "A", 2)]
    assert top_sellers(sales) == [("B", 9), ("A", 7)]


def test_top_sellers_limit_and_stable_ties():
    sales = [sale(i, i, name, 1) for i, name in enumerate("CABDEFG")]
    assert top_sellers(sales, limit=3) == [("C", 1), ("A", 1), ("B", 1)]
    assert len(top_sellers(sales)) == 5


def test_low_stock_keeps_natural_order():
    products = [product(i, qty=q) for i, q in enumerate([0, 5, 6, 3, 10])]
    assert [p.quantity for p in low_stock(products, 5)] == [0, 5, 3]


def test_daily_total_counts_only_today():
    sales = [sale(1, 1, "A", 2, at=NOON), sale(2, 1, "A", 1, at=YESTERDAY), sale(3, 1, "A", 1, at=datetime(2024, 5, 10, 0, 0))]
    t = daily_total(sales, "total", TODAY)
    assert (t.total, t.count) == (45.0, 2)


def test_daily_total_uses_local_day_for_aware_timestamps():
    local_noon = datetime(2024, 5, 10, 12, 0).astimezone()
    t = daily_total([expense(1, 7.5, at=local_noon)], "amount", TODAY)
    assert (t.total, t.count) == (7.5, 1)


def test_format_money():
    assert format_money(1234.5) == "$1,234.50"
    assert format_money(-3) == "-$3.00"


def snapshot():
    return Snapshot(
        products=(product(1, qty=2, cost=10.0, name="Cafe"), product(2, qty=40, cost=1.0, price=2.0, name="Agua")),
        sales=(sale(2, 2, "Agua", 10, price=2.0), sale(1, 1, "Cafe", 3, at=YESTERDAY)),
        expenses=(expense(1, 5.0),),
        reinvestments=(
            Reinvestment(id=1, product_name="Cafe", quantity_purchased=2, unit_cost=10.0, total_cost=20.0, created_at=NOON),
        ),
        cash_balance=120.0,
    )


def test_cash_cut_summary():
    cut = ReportingService().cash_cut(snapshot(), TODAY)

    assert cut.day == TODAY
    assert cut.cash_balance == 120.0
    assert cut.gross_profit == 15.0 + 10.0
    assert cut.total_expenses == 5.0
    assert cut.net_profit == 20.0
    assert cut.total_reinvested == 20.0
    assert (cut.sales_today.total, cut.sales_today.count) == (20.0, 1)
    assert cut.expenses_today.count == 1
    assert cut.reinvestments_today.total == 20.0
    assert cut.top_sellers == [("Agua", 10), ("Cafe", 3)]
    assert [p.name for p in cut.low_stock] == ["Cafe"]


def test_cash_drift_against_ledgers():
    reporting = ReportingService(opening_balance=80.0)
    snap = snapshot()
    # 80 + (20 + 45) - 5 - 20
    assert reporting.expected_cash_balance(snap) == 120.0
    assert reporting.cash_drift(snap) == 0.0
    assert ReportingService(opening_balance=70.0).cash_drift(snap) == 10.0


def test_export_cash_cut_excel(tmp_path: Path):
    path = tmp_path / "cut.xlsx"
    ReportingService().export_cash_cut_excel(str(path), snapshot(), TODAY)

    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "Sales", "Expenses", "Reinvestments"]
    summary = wb["Summary"]
    assert summary["A1"].value == "Cash cut 2024-05-10"
    assert summary["B3"].value == 120.0
    assert wb["Sales"].max_row == 3
    assert wb["Sales"]["C2"].value == "Agua"
    assert wb["Expenses"]["D2"].value == 5.0
