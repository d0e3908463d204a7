from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from rdash.domain.models import Expense, Product, Sale, Snapshot

LOW_STOCK_THRESHOLD = 5
TOP_SELLERS_LIMIT = 5


@dataclass(frozen=True)
class DailyTotal:
    total: float
    count: int


@dataclass(frozen=True)
class CashCut:
    day: date
    cash_balance: float
    gross_profit: float
    total_expenses: float
    total_reinvested: float
    net_profit: float
    sales_today: DailyTotal
    expenses_today: DailyTotal
    reinvestments_today: DailyTotal
    top_sellers: list[tuple[str, int]]
    low_stock: list[Product]


def format_money(value: float) -> str:
    if value < 0:
        return f"-${abs(value):,.2f}"
    return f"${value:,.2f}"


def local_day(moment: datetime) -> date:
    # Naive timestamps are already local.
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def daily_total(records: Iterable, field: str, today: Optional[date] = None) -> DailyTotal:
    today = today or date.today()
    total = 0.0
    count = 0
    for r in records:
        if local_day(r.created_at) == today:
            total += float(getattr(r, field))
            count += 1
    return DailyTotal(total=round(total, 2), count=count)


def gross_profit(products: Iterable[Product], sales: Iterable[Sale]) -> float:
    costs = {p.id: p.purchase_cost for p in products}
    profit = 0.0
    for s in sales:
        cost = costs.get(s.product_id)
        if cost is None:
            # product deleted since the sale
            continue
        profit += (s.unit_price - cost) * s.quantity
    return round(profit, 2)


def net_profit(gross: float, expenses: Iterable[Expense]) -> float:
    return round(gross - sum(e.amount for e in expenses), 2)


def top_sellers(sales: Iterable[Sale], limit: int = TOP_SELLERS_LIMIT) -> list[tuple[str, int]]:
    units: dict[str, int] = {}
    for s in sales:
        units[s.product_name] = units.get(s.product_name, 0) + int(s.quantity)
    # sorted() is stable: ties keep first-seen order
    ranked = sorted(units.items(), key=lambda kv: kv[1], reverse=True)
    return ranked[:limit]


def low_stock(products: Iterable[Product], threshold: int = LOW_STOCK_THRESHOLD) -> list[Product]:
    return [p for p in products if p.quantity <= threshold]


class ReportingService:
    def __init__(
        self,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
        top_sellers_limit: int = TOP_SELLERS_LIMIT,
        opening_balance: float = 0.0,
    ):
        self.low_stock_threshold = low_stock_threshold
        self.top_sellers_limit = top_sellers_limit
        self.opening_balance = opening_balance

    def cash_cut(self, snapshot: Snapshot, today: Optional[date] = None) -> CashCut:
        today = today or date.today()
        gross = gross_profit(snapshot.products, snapshot.sales)
        return CashCut(
            day=today,
            cash_balance=snapshot.cash_balance,
            gross_profit=gross,
            total_expenses=round(sum(e.amount for e in snapshot.expenses), 2),
            total_reinvested=round(sum(r.total_cost for r in snapshot.reinvestments), 2),
            net_profit=net_profit(gross, snapshot.expenses),
            sales_today=daily_total(snapshot.sales, "total", today),
            expenses_today=daily_total(snapshot.expenses, "amount", today),
            reinvestments_today=daily_total(snapshot.reinvestments, "total_cost", today),
            top_sellers=top_sellers(snapshot.sales, self.top_sellers_limit),
            low_stock=low_stock(snapshot.products, self.low_stock_threshold),
        )

    def expected_cash_balance(self, snapshot: Snapshot) -> float:
        inflow = sum(s.total for s in snapshot.sales)
        outflow = sum(e.amount for e in snapshot.expenses) + sum(r.total_cost for r in snapshot.reinvestments)
        return round(self.opening_balance + inflow - outflow, 2)

    def cash_drift(self, snapshot: Snapshot) -> float:
        """Stored balance minus the balance implied by the ledgers.

        Zero unless the balance was adjusted by hand or a write went missing.
        """
        return round(snapshot.cash_balance - self.expected_cash_balance(snapshot), 2)

    def export_cash_cut_excel(self, path: str, snapshot: Snapshot, today: Optional[date] = None) -> None:
        wb = Workbook()
        cut = self.cash_cut(snapshot, today)

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, end_col: int):
            if ws.max_row < 2:
                return
            ref = f"A1:{get_column_letter(end_col)}{ws.max_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = f"Cash cut {cut.day.isoformat()}"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Cash on hand", cut.cash_balance),
            ("Gross profit (sales)", cut.gross_profit),
            ("Total expenses", cut.total_expenses),
            ("Total reinvested", cut.total_reinvested),
            ("Net profit (gross - expenses)", cut.net_profit),
            ("Sales today", cut.sales_today.total),
            ("Expenses today", cut.expenses_today.total),
            ("Reinvestment today", cut.reinvestments_today.total),
        ]
        for i, (label, val) in enumerate(rows):
            r = 3 + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = float(val)
            money(ws[f"B{r}"])

        r = 3 + len(rows) + 1
        ws[f"A{r}"] = "Top sellers"
        ws[f"A{r}"].font = Font(bold=True)
        for name, units in cut.top_sellers:
            r += 1
            ws[f"A{r}"] = name
            ws[f"B{r}"] = int(units)

        r += 2
        ws[f"A{r}"] = f"Low stock (<= {self.low_stock_threshold})"
        ws[f"A{r}"].font = Font(bold=True)
        for p in cut.low_stock:
            r += 1
            ws[f"A{r}"] = p.name
            ws[f"B{r}"] = int(p.quantity)
        set_widths(ws, {"A": 34, "B": 18})

        # -------- 2) Ledgers --------
        ws2 = wb.create_sheet("Sales")
        ws2.append(["Sale ID", "Datetime", "Product", "Qty", "Unit price", "Total"])
        bold_row(ws2, 1)
        for s in snapshot.sales:
            ws2.append([s.id, s.created_at.isoformat(sep=" "), s.product_name, s.quantity, s.unit_price, s.total])
            money(ws2[f"E{ws2.max_row}"])
            money(ws2[f"F{ws2.max_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 10, "B": 26, "C": 34, "D": 8, "E": 14, "F": 14})
        add_table(ws2, "SalesDetail", 6)

        ws3 = wb.create_sheet("Expenses")
        ws3.append(["Expense ID", "Datetime", "Concept", "Amount"])
        bold_row(ws3, 1)
        for e in snapshot.expenses:
            ws3.append([e.id, e.created_at.isoformat(sep=" "), e.concept, e.amount])
            money(ws3[f"D{ws3.max_row}"])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 12, "B": 26, "C": 40, "D": 14})
        add_table(ws3, "ExpensesDetail", 4)

        ws4 = wb.create_sheet("Reinvestments")
        ws4.append(["Reinvestment ID", "Datetime", "Product", "Qty", "Unit cost", "Total cost"])
        bold_row(ws4, 1)
        for x in snapshot.reinvestments:
            ws4.append([x.id, x.created_at.isoformat(sep=" "), x.product_name, x.quantity_purchased, x.unit_cost, x.total_cost])
            money(ws4[f"E{ws4.max_row}"])
            money(ws4[f"F{ws4.max_row}"])
        ws4.freeze_panes = "A2"
        set_widths(ws4, {"A": 16, "B": 26, "C": 34, "D": 8, "E": 14, "F": 14})
        add_table(ws4, "ReinvestmentsDetail", 6)

        wb.save(path)
