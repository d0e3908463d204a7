from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from rdash.domain.errors import AppError, AuthenticationError
from rdash.domain.models import View
from rdash.ui.views.cash_cut_view import CashCutView
from rdash.ui.views.expenses_view import ExpensesView
from rdash.ui.views.inventory_view import InventoryView
from rdash.ui.views.login_view import LoginView
from rdash.ui.views.reinvestment_view import ReinvestmentView
from rdash.ui.views.sales_view import SalesView

log = logging.getLogger(__name__)

SECTIONS = [
    (View.INVENTORY, "📦 Inventory"),
    (View.SALES, "🧾 Sales"),
    (View.EXPENSES, "💸 Expenses"),
    (View.REINVESTMENT, "🔁 Reinvestment"),
    (View.CASH_CUT, "📊 Cash cut"),
]


class App(tk.Tk):
    def __init__(self, dashboard, logs_dir: str):
        super().__init__()
        self.title("Retail Dashboard")
        self.geometry("1280x720")
        self.minsize(1120, 640)

        self.dashboard = dashboard
        self.logs_dir = logs_dir

        self.user_var = tk.StringVar(value="")
        self.status_var = tk.StringVar(value="")
        self._toast_after_id = None

        self.main = None
        self.views: dict[View, object] = {}

        self._build_styles()
        self._build_status_bar()

        self.login_view = LoginView(self, self)
        self.show_login()

    def _build_styles(self):
        style = ttk.Style(self)
        style.layout("Side.TNotebook.Tab", [])
        style.configure("Side.TNotebook", tabmargins=0)
        style.configure("Big.TButton", padding=(14, 10))
        style.configure("Title.TLabel", font=("Segoe UI", 12, "bold"))
        style.configure("KPI.TLabel", font=("Segoe UI", 10))
        style.configure("KPIValue.TLabel", font=("Segoe UI", 11, "bold"))

    def _build_status_bar(self):
        bar = ttk.Frame(self)
        bar.pack(side="bottom", fill="x", padx=12, pady=(0, 10))
        ttk.Label(bar, textvariable=self.status_var).pack(side="left")
        ttk.Label(bar, text=f"Logs: {self.logs_dir}").pack(side="right")

    def _build_main(self):
        self.main = ttk.Frame(self)

        top = ttk.Frame(self.main)
        top.pack(fill="x", padx=12, pady=10)
        ttk.Label(top, textvariable=self.user_var).pack(side="left")
        ttk.Button(top, text="Sign out", command=self.logout).pack(side="right")
        ttk.Label(top, text=f"Backend: {self.dashboard.c.settings.backend}").pack(side="right", padx=10)

        body = ttk.Frame(self.main)
        body.pack(fill="both", expand=True, padx=12, pady=(0, 8))

        sidebar = ttk.LabelFrame(body, text="Sections")
        sidebar.pack(side="left", fill="y", padx=(0, 10))

        content = ttk.Frame(body)
        content.pack(side="right", fill="both", expand=True)
        self.nb = ttk.Notebook(content, style="Side.TNotebook")
        self.nb.pack(fill="both", expand=True)

        # Views (tabs hidden)
        self.views = {
            View.INVENTORY: InventoryView(self.nb, self),
            View.SALES: SalesView(self.nb, self),
            View.EXPENSES: ExpensesView(self.nb, self),
            View.REINVESTMENT: ReinvestmentView(self.nb, self),
            View.CASH_CUT: CashCutView(self.nb, self),
        }

        for i, (view, label) in enumerate(SECTIONS):
            ttk.Button(sidebar, text=label, style="Big.TButton", command=lambda v=view: self.show_section(v))\
                .pack(fill="x", padx=10, pady=(10 if i == 0 else 6, 6))
        ttk.Button(sidebar, text="🔄 Reload", style="Big.TButton", command=self.reload)\
            .pack(fill="x", padx=10, pady=(6, 10))

    # ---------- session ----------
    def show_login(self):
        if self.main is not None:
            self.main.destroy()
            self.main = None
            self.views = {}
        self.login_view.frame.pack(fill="both", expand=True)
        self.login_view.email_e.focus_set()

    def on_logged_in(self):
        self.login_view.frame.pack_forget()
        self._build_main()
        self.main.pack(fill="both", expand=True)
        session = self.dashboard.session
        self.user_var.set(f"Signed in as {session.email}" if session else "")
        self.show_section(self.dashboard.view)
        self.refresh_views()
        self.toast("Ready.", kind="info", ms=1200)

    def logout(self):
        self.dashboard.logout()
        self.toast("Signed out.", kind="info")
        self.show_login()

    # ---------- navigation ----------
    def show_section(self, view: View):
        self.dashboard.show(view)
        self.nb.select(self.views[view].frame)

    def reload(self):
        try:
            self.dashboard.refresh()
        except Exception as e:
            self.handle_error("Reload", e, "Reload failed. Showing last loaded data.")
            return
        self.refresh_views()
        self.toast("Reloaded.", kind="info", ms=1200)

    def refresh_views(self):
        for view in self.views.values():
            try:
                view.refresh()
            except Exception as e:
                log.exception("View refresh failed: %s", e)

    # ---------- feedback ----------
    def toast(self, msg: str, kind: str = "info", ms: int = 2500):
        prefix = {"info": "ℹ ", "success": "✅ ", "warn": "⚠ ", "error": "❌ "}.get(kind, "")
        self.status_var.set(prefix + msg)
        if self._toast_after_id is not None:
            self.after_cancel(self._toast_after_id)
        self._toast_after_id = self.after(ms, lambda: self.status_var.set(""))

    def handle_error(self, title: str, err: Exception, toast_text: str):
        if isinstance(err, (AppError, ValueError)):
            log.warning("%s: %s", title, err)
        else:
            log.error("%s failed", title, exc_info=err)
        messagebox.showerror(title, str(err), parent=self)
        self.toast(toast_text, kind="error")
        if isinstance(err, AuthenticationError) and self.main is not None and not self.dashboard.c.auth.is_authenticated():
            self.show_login()
