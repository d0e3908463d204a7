from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from rdash.services.expense_service import search_expenses
from rdash.services.reporting_service import daily_total, format_money
from rdash.ui.views.common import clear_entries, clear_tree, entry, make_tree, parse_float


log = logging.getLogger(__name__)


class ExpensesView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Expenses")

        self.search_var = tk.StringVar()
        self.today_var = tk.StringVar(value="Expenses today: $0.00")
        self.cash_var = tk.StringVar(value="In register: $0.00")

        head = ttk.Frame(self.frame)
        head.pack(fill="x", padx=10, pady=(10, 0))
        ttk.Label(head, textvariable=self.today_var, style="Title.TLabel").pack(side="left")
        ttk.Label(head, textvariable=self.cash_var).pack(side="right")

        form = ttk.LabelFrame(self.frame, text="Record expense")
        form.pack(fill="x", padx=10, pady=10)
        self.concept_e = entry(form, "Concept", 0, width=40)
        self.amount_e = entry(form, "Amount", 1, width=14)
        ttk.Button(form, text="Record", style="Big.TButton", command=self.on_record)\
            .grid(row=2, column=1, sticky="e", padx=8, pady=(4, 8))
        self.amount_e.bind("<Return>", lambda _e: self.on_record())

        lst = ttk.LabelFrame(self.frame, text="Expenses")
        lst.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        bar = ttk.Frame(lst)
        bar.pack(fill="x", padx=8, pady=(8, 0))
        ttk.Label(bar, text="Search").pack(side="left")
        search = ttk.Entry(bar, textvariable=self.search_var, width=32)
        search.pack(side="left", padx=8)
        search.bind("<KeyRelease>", lambda _e: self.refresh())
        ttk.Button(bar, text="Delete selected", command=self.on_delete).pack(side="right")

        cols = ("id", "dt", "concept", "amount")
        heads = {"id": "ID", "dt": "Date", "concept": "Concept", "amount": "Amount"}
        widths = {"id": 50, "dt": 170, "concept": 380, "amount": 110}
        self.tree = make_tree(lst, cols, heads, widths)

    def on_record(self):
        try:
            concept = self.concept_e.get().strip()
            amount = parse_float(self.amount_e.get(), "Amount")
            self.app.dashboard.record_expense(concept, amount)
            self.app.toast(f"Expense recorded: {format_money(amount)}", kind="success")
            clear_entries(self.concept_e, self.amount_e)
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Record expense", e, "Failed to record expense.")

    def on_delete(self):
        try:
            sel = self.tree.selection()
            if not sel:
                raise ValueError("Select an expense.")
            expense_id = int(self.tree.item(sel[0], "values")[0])
            deleted = self.app.dashboard.delete_expense(
                expense_id, lambda msg: messagebox.askyesno("Confirm delete", msg, parent=self.frame)
            )
            if not deleted:
                return
            self.app.toast("Expense deleted. Amount returned to the register.", kind="success")
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Delete expense", e, "Failed to delete expense.")

    def refresh(self):
        snap = self.app.dashboard.snapshot
        today = daily_total(snap.expenses, "amount")
        self.today_var.set(f"Expenses today: {format_money(today.total)} ({today.count})")
        self.cash_var.set(f"In register: {format_money(snap.cash_balance)}")

        clear_tree(self.tree)
        for e in search_expenses(snap.expenses, self.search_var.get()):
            self.tree.insert(
                "", "end",
                values=(e.id, e.created_at.strftime("%Y-%m-%d %H:%M"), e.concept, format_money(e.amount)),
            )
