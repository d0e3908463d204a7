from __future__ import annotations

import tkinter as tk
from tkinter import ttk
import logging

from rdash.services.reporting_service import daily_total, format_money
from rdash.ui.views.common import clear_tree, make_tree, parse_int


log = logging.getLogger(__name__)


class ReinvestmentView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Reinvestment")

        self.pick = tk.StringVar()
        self.today_var = tk.StringVar(value="Reinvested today: $0.00")
        self.cost_var = tk.StringVar(value="Cost: $0.00")
        self.choices: dict[str, int] = {}

        ttk.Label(self.frame, textvariable=self.today_var, style="Title.TLabel")\
            .pack(anchor="w", padx=10, pady=(10, 0))

        top = ttk.LabelFrame(self.frame, text="Buy stock with register cash")
        top.pack(fill="x", padx=10, pady=10)

        ttk.Label(top, text="Product").grid(row=0, column=0, padx=10, pady=8, sticky="w")
        self.combo = ttk.Combobox(top, textvariable=self.pick, width=48, state="readonly")
        self.combo.grid(row=0, column=1, padx=10, pady=8, sticky="w")
        self.combo.bind("<<ComboboxSelected>>", lambda _e: self.update_cost())

        ttk.Label(top, text="Qty").grid(row=0, column=2, padx=10, pady=8, sticky="w")
        self.qty_e = ttk.Entry(top, width=10)
        self.qty_e.grid(row=0, column=3, padx=10, pady=8, sticky="w")
        self.qty_e.bind("<KeyRelease>", lambda _e: self.update_cost())
        self.qty_e.bind("<Return>", lambda _e: self.on_record())

        ttk.Label(top, textvariable=self.cost_var).grid(row=0, column=4, padx=10, pady=8)
        ttk.Button(top, text="Reinvest", style="Big.TButton", command=self.on_record)\
            .grid(row=0, column=5, padx=10, pady=8)

        hist = ttk.LabelFrame(self.frame, text="Reinvestment history")
        hist.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        cols = ("dt", "name", "qty", "unit", "total")
        heads = {"dt": "Date", "name": "Product", "qty": "Qty", "unit": "Unit cost", "total": "Total cost"}
        widths = {"dt": 170, "name": 300, "qty": 70, "unit": 110, "total": 110}
        self.tree = make_tree(hist, cols, heads, widths)

    def _picked(self):
        pid = self.choices.get(self.pick.get())
        if pid is None:
            return None
        return self.app.dashboard.snapshot.product_by_id(pid)

    def update_cost(self):
        p = self._picked()
        try:
            qty = parse_int(self.qty_e.get(), "Qty")
        except ValueError:
            qty = 0
        cost = round(p.purchase_cost * qty, 2) if p is not None and qty > 0 else 0.0
        self.cost_var.set(f"Cost: {format_money(cost)}")

    def on_record(self):
        try:
            p = self._picked()
            if p is None:
                raise ValueError("Select a product.")
            qty = parse_int(self.qty_e.get(), "Qty")
            r = self.app.dashboard.record_reinvestment(p.id, qty)
            self.app.toast(f"Reinvested {format_money(r.total_cost)} in {r.product_name}.", kind="success")
            self.qty_e.delete(0, tk.END)
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Reinvest", e, "Failed to record reinvestment.")

    def refresh(self):
        snap = self.app.dashboard.snapshot
        self.choices = {f"#{p.id} {p.name} (stock: {p.quantity}, cost {format_money(p.purchase_cost)})": p.id for p in snap.products}
        self.combo["values"] = list(self.choices)
        if self.pick.get() not in self.choices:
            self.pick.set("")
        self.update_cost()

        today = daily_total(snap.reinvestments, "total_cost")
        self.today_var.set(f"Reinvested today: {format_money(today.total)} ({today.count})")

        clear_tree(self.tree)
        for r in snap.reinvestments:
            self.tree.insert(
                "", "end",
                values=(
                    r.created_at.strftime("%Y-%m-%d %H:%M"), r.product_name, r.quantity_purchased,
                    format_money(r.unit_cost), format_money(r.total_cost),
                ),
            )
