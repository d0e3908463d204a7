from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from datetime import date

from rdash.services.reporting_service import format_money


class CashCutView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Cash cut")

        self.kpis: dict[str, ttk.Label] = {}
        self._build()

    def _build(self):
        tab = self.frame

        head = ttk.Frame(tab)
        head.pack(fill="x", padx=10, pady=(10, 0))
        self.day_lbl = ttk.Label(head, text="-", style="Title.TLabel")
        self.day_lbl.pack(side="left")
        ttk.Button(head, text="Export to Excel", style="Big.TButton", command=self.export).pack(side="right")

        kpi = ttk.LabelFrame(tab, text="Summary")
        kpi.pack(fill="x", padx=10, pady=10)
        rows = [
            ("cash", "Cash in register"),
            ("sales_today", "Sales today"),
            ("expenses_today", "Expenses today"),
            ("reinvested_today", "Reinvested today"),
            ("gross", "Gross profit"),
            ("expenses", "Total expenses"),
            ("net", "Net profit"),
            ("reinvested", "Total reinvested"),
            ("drift", "Register vs ledgers"),
        ]
        for i, (key, label) in enumerate(rows):
            r, c = divmod(i, 3)
            ttk.Label(kpi, text=label, style="KPI.TLabel").grid(row=r, column=c * 2, sticky="w", padx=10, pady=4)
            value = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
            value.grid(row=r, column=c * 2 + 1, sticky="e", padx=10, pady=4)
            self.kpis[key] = value
        for c in range(6):
            kpi.columnconfigure(c, weight=1)

        body = ttk.Frame(tab)
        body.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        body.columnconfigure(0, weight=1)
        body.columnconfigure(1, weight=1)
        body.rowconfigure(0, weight=1)

        self.top_canvas = tk.Canvas(body, height=220, bg="#f8fafc", highlightthickness=1, highlightbackground="#cbd5e1")
        self.top_canvas.grid(row=0, column=0, sticky="nsew", padx=(0, 6))

        lowbox = ttk.LabelFrame(body, text="Low stock")
        lowbox.grid(row=0, column=1, sticky="nsew", padx=(6, 0))
        self.low_list = tk.Listbox(lowbox, height=10)
        self.low_list.pack(fill="both", expand=True, padx=10, pady=10)

    def refresh(self):
        dash = self.app.dashboard
        cut = dash.cash_cut()

        self.day_lbl.config(text=f"Cash cut {cut.day.isoformat()}")
        self.kpis["cash"].config(text=format_money(cut.cash_balance))
        self.kpis["sales_today"].config(text=f"{format_money(cut.sales_today.total)} ({cut.sales_today.count})")
        self.kpis["expenses_today"].config(text=f"{format_money(cut.expenses_today.total)} ({cut.expenses_today.count})")
        self.kpis["reinvested_today"].config(
            text=f"{format_money(cut.reinvestments_today.total)} ({cut.reinvestments_today.count})"
        )
        self.kpis["gross"].config(text=format_money(cut.gross_profit))
        self.kpis["expenses"].config(text=format_money(cut.total_expenses))
        self.kpis["net"].config(text=format_money(cut.net_profit))
        self.kpis["reinvested"].config(text=format_money(cut.total_reinvested))
        self.kpis["drift"].config(text=format_money(dash.c.reporting.cash_drift(dash.snapshot)))

        self._draw_bar_chart(self.top_canvas, "Top sellers (units)", cut.top_sellers)

        self.low_list.delete(0, tk.END)
        for p in cut.low_stock:
            self.low_list.insert(tk.END, f"{p.name} ({p.quantity})")

    def _draw_bar_chart(self, canvas: tk.Canvas, title: str, data: list[tuple[str, int]], color: str = "#2563eb"):
        canvas.delete("all")
        w, h = int(canvas.winfo_width() or 560), int(canvas.winfo_height() or 220)
        canvas.create_text(12, 16, text=title, anchor="w", font=("Segoe UI", 10, "bold"), fill="#0f172a")
        if not data:
            canvas.create_text(w // 2, h // 2, text="No sales yet", fill="#64748b")
            return
        maxv = max(v for _, v in data) or 1
        bw = max(24, (w - 40) // len(data))
        for i, (label, val) in enumerate(data):
            x0 = 24 + i * bw
            x1 = x0 + bw - 8
            y1 = h - 30
            y0 = y1 - int((val / maxv) * (h - 70))
            canvas.create_rectangle(x0, y0, x1, y1, fill=color, outline="")
            canvas.create_text((x0 + x1) // 2, y1 + 12, text=label[:12], font=("Segoe UI", 8), fill="#475569")
            canvas.create_text((x0 + x1) // 2, y0 - 8, text=str(val), font=("Segoe UI", 8), fill="#0f172a")

    def export(self):
        path = filedialog.asksaveasfilename(
            title="Save cash cut as",
            defaultextension=".xlsx",
            filetypes=[("Excel files", "*.xlsx")],
            initialfile=f"cash_cut_{date.today().isoformat()}.xlsx",
        )
        if not path:
            return
        try:
            self.app.dashboard.export_cash_cut(path)
            self.app.toast("Cash cut exported.", kind="success")
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")
