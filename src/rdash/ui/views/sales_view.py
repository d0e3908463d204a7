from __future__ import annotations

import tkinter as tk
from tkinter import ttk
import logging

from rdash.services.inventory_service import sellable_products
from rdash.services.reporting_service import daily_total, format_money
from rdash.services.sales_service import recent_sales
from rdash.ui.views.common import clear_tree, make_tree, parse_int


log = logging.getLogger(__name__)


def product_choices(products) -> dict[str, int]:
    """Combobox label -> product id for everything in stock. The id keeps look-alike rows apart."""
    return {
        f"#{p.id} {p.name} (stock: {p.quantity}, {format_money(p.sale_price)})": p.id
        for p in sellable_products(products)
    }


class SalesView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Sales")

        self.pick = tk.StringVar()
        self.today_var = tk.StringVar(value="Sales today: $0.00")
        self.charge_var = tk.StringVar(value="To charge: $0.00")
        self.choices: dict[str, int] = {}

        self._build()

    def _build(self):
        tab = self.frame

        ttk.Label(tab, textvariable=self.today_var, style="Title.TLabel").pack(anchor="w", padx=10, pady=(10, 0))

        top = ttk.LabelFrame(tab, text="Record sale")
        top.pack(fill="x", padx=10, pady=10)

        ttk.Label(top, text="Product").grid(row=0, column=0, padx=10, pady=8, sticky="w")
        self.combo = ttk.Combobox(top, textvariable=self.pick, width=48, state="readonly")
        self.combo.grid(row=0, column=1, padx=10, pady=8, sticky="w")
        self.combo.bind("<<ComboboxSelected>>", lambda _e: self.update_charge())

        ttk.Label(top, text="Qty").grid(row=0, column=2, padx=10, pady=8, sticky="w")
        self.qty_e = ttk.Entry(top, width=10)
        self.qty_e.grid(row=0, column=3, padx=10, pady=8, sticky="w")
        self.qty_e.bind("<KeyRelease>", lambda _e: self.update_charge())
        self.qty_e.bind("<Return>", lambda _e: self.on_record())

        ttk.Label(top, textvariable=self.charge_var).grid(row=0, column=4, padx=10, pady=8)
        ttk.Button(top, text="Record sale", style="Big.TButton", command=self.on_record)\
            .grid(row=0, column=5, padx=10, pady=8)

        hist = ttk.LabelFrame(tab, text="Latest sales")
        hist.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        cols = ("dt", "name", "qty", "unit", "total")
        heads = {"dt": "Date", "name": "Product", "qty": "Qty", "unit": "Unit price", "total": "Total"}
        widths = {"dt": 170, "name": 300, "qty": 70, "unit": 110, "total": 110}
        self.tree = make_tree(hist, cols, heads, widths)

    def _picked(self):
        pid = self.choices.get(self.pick.get())
        if pid is None:
            return None
        return self.app.dashboard.snapshot.product_by_id(pid)

    def update_charge(self):
        p = self._picked()
        try:
            qty = parse_int(self.qty_e.get(), "Qty")
        except ValueError:
            qty = 0
        total = round(p.sale_price * qty, 2) if p is not None and qty > 0 else 0.0
        self.charge_var.set(f"To charge: {format_money(total)}")

    def on_record(self):
        try:
            p = self._picked()
            if p is None:
                raise ValueError("Select a product.")
            qty = parse_int(self.qty_e.get(), "Qty")
            sale = self.app.dashboard.record_sale(p.id, qty)
            self.app.toast(f"Sale recorded: {sale.product_name} x{sale.quantity} = {format_money(sale.total)}", kind="success")
            self.qty_e.delete(0, tk.END)
            self.pick.set("")
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Record sale", e, "Failed to record sale.")

    def refresh(self):
        snap = self.app.dashboard.snapshot

        self.choices = product_choices(snap.products)
        self.combo["values"] = list(self.choices)
        if self.pick.get() not in self.choices:
            self.pick.set("")
        self.update_charge()

        today = daily_total(snap.sales, "total")
        self.today_var.set(f"Sales today: {format_money(today.total)} ({today.count})")

        clear_tree(self.tree)
        for s in recent_sales(snap.sales):
            self.tree.insert(
                "", "end",
                values=(
                    s.created_at.strftime("%Y-%m-%d %H:%M"), s.product_name, s.quantity,
                    format_money(s.unit_price), format_money(s.total),
                ),
            )
