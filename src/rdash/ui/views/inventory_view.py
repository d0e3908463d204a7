from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from rdash.services.inventory_service import search_products
from rdash.services.reporting_service import format_money
from rdash.ui.views.common import clear_entries, clear_tree, entry, make_tree, parse_float, parse_int


log = logging.getLogger(__name__)


class InventoryView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Inventory")

        self.editing_id: int | None = None
        self.search_var = tk.StringVar()
        self.form_title = tk.StringVar(value="New product")

        left = ttk.LabelFrame(self.frame, text="Product", width=270)
        left.pack(side="left", fill="y", padx=(0, 6), pady=8)
        left.pack_propagate(False)

        ttk.Label(left, textvariable=self.form_title, style="Title.TLabel")\
            .grid(row=0, column=0, columnspan=2, sticky="w", padx=8, pady=(8, 4))
        self.name_e = entry(left, "Name", 1)
        self.qty_e = entry(left, "Quantity", 2)
        self.price_e = entry(left, "Sale price", 3)
        self.cost_e = entry(left, "Purchase cost", 4)

        btns = ttk.Frame(left)
        btns.grid(row=5, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))
        for i in range(3):
            btns.columnconfigure(i, weight=1)
        ttk.Button(btns, text="Save", command=self.on_save).grid(row=0, column=0, sticky="ew", padx=(0, 6))
        ttk.Button(btns, text="Delete", command=self.on_delete).grid(row=0, column=1, sticky="ew", padx=6)
        ttk.Button(btns, text="Clear", command=self.clear_form).grid(row=0, column=2, sticky="ew", padx=(6, 0))

        for e in (self.name_e, self.qty_e, self.price_e, self.cost_e):
            e.bind("<Return>", lambda _e: self.on_save())

        right = ttk.LabelFrame(self.frame, text="Products")
        right.pack(side="right", fill="both", expand=True, pady=8)

        bar = ttk.Frame(right)
        bar.pack(fill="x", padx=8, pady=(8, 0))
        ttk.Label(bar, text="Search").pack(side="left")
        search = ttk.Entry(bar, textvariable=self.search_var, width=32)
        search.pack(side="left", padx=8)
        search.bind("<KeyRelease>", lambda _e: self.refresh())

        cols = ("id", "name", "qty", "price", "cost")
        heads = {"id": "ID", "name": "Name", "qty": "Quantity", "price": "Sale price", "cost": "Purchase cost"}
        widths = {"id": 50, "name": 300, "qty": 90, "price": 110, "cost": 110}
        self.tree = make_tree(right, cols, heads, widths, height=20)
        self.tree.tag_configure("low", background="#ffdddd")
        self.tree.bind("<<TreeviewSelect>>", self.on_select)

    def _selected_id(self) -> int | None:
        sel = self.tree.selection()
        if not sel:
            return None
        return int(self.tree.item(sel[0], "values")[0])

    def on_select(self, _evt=None):
        pid = self._selected_id()
        if pid is None:
            return
        p = self.app.dashboard.product(pid)
        self.clear_form()
        self.editing_id = p.id
        self.form_title.set(f"Editing #{p.id}")
        self.name_e.insert(0, p.name)
        self.qty_e.insert(0, str(p.quantity))
        self.price_e.insert(0, f"{p.sale_price:.2f}")
        self.cost_e.insert(0, f"{p.purchase_cost:.2f}")

    def on_save(self):
        try:
            name = self.name_e.get().strip()
            qty = parse_int(self.qty_e.get(), "Quantity")
            price = parse_float(self.price_e.get(), "Sale price")
            cost = parse_float(self.cost_e.get(), "Purchase cost")

            p = self.app.dashboard.save_product(name, qty, price, cost, self.editing_id)
            self.app.toast(f"Product saved: {p.name}.", kind="success")
            self.clear_form()
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Save product", e, "Failed to save product.")

    def on_delete(self):
        try:
            pid = self._selected_id()
            if pid is None:
                raise ValueError("Select a product.")
            deleted = self.app.dashboard.delete_product(
                pid, lambda msg: messagebox.askyesno("Confirm delete", msg, parent=self.frame)
            )
            if not deleted:
                return
            self.app.toast("Product deleted.", kind="success")
            self.clear_form()
            self.app.refresh_views()
        except Exception as e:
            self.app.handle_error("Delete product", e, "Failed to delete product.")

    def clear_form(self):
        clear_entries(self.name_e, self.qty_e, self.price_e, self.cost_e)
        self.editing_id = None
        self.form_title.set("New product")
        self.name_e.focus_set()

    def refresh(self):
        clear_tree(self.tree)
        snap = self.app.dashboard.snapshot
        threshold = self.app.dashboard.c.reporting.low_stock_threshold
        for p in search_products(snap.products, self.search_var.get()):
            self.tree.insert(
                "", "end",
                values=(p.id, p.name, p.quantity, format_money(p.sale_price), format_money(p.purchase_cost)),
                tags=("low",) if p.quantity <= threshold else (),
            )
