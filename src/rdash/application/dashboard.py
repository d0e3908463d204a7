from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from rdash.application.container import AppContainer
from rdash.domain.errors import AppError, NotFoundError
from rdash.domain.models import Expense, Product, Reinvestment, Sale, Session, Snapshot, View
from rdash.services.reporting_service import CashCut

log = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class Dashboard:
    """Application state for one signed-in user.

    Owns the session, the section on screen and the last loaded snapshot.
    Every successful write is followed by a full reload.
    """

    def __init__(self, container: AppContainer):
        self.c = container
        self.snapshot: Snapshot = Snapshot.empty()
        self.view: View = View.INVENTORY

    @property
    def session(self) -> Optional[Session]:
        return self.c.auth.session

    # ---------- session ----------
    def login(self, email: str, password: str) -> Session:
        session = self.c.auth.login(email, password)
        self.refresh()
        return session

    def logout(self) -> None:
        self.c.auth.logout()
        self.snapshot = Snapshot.empty()
        self.view = View.INVENTORY

    def show(self, view: View | str) -> View:
        self.view = View(view)
        return self.view

    def refresh(self) -> Snapshot:
        self.c.auth.require_session()
        try:
            snapshot = self.c.loader.load()
        except AppError:
            log.exception("reload_failed keeping_snapshot_from=%s", self.snapshot.loaded_at)
            raise
        self.snapshot = snapshot
        return snapshot

    def product(self, product_id: int) -> Product:
        p = self.snapshot.product_by_id(int(product_id))
        if p is None:
            raise NotFoundError("Product not found. Reload and try again.")
        return p

    # ---------- inventory ----------
    def save_product(
        self,
        name: str,
        quantity: int,
        sale_price: float,
        purchase_cost: float,
        product_id: Optional[int] = None,
    ) -> Product:
        self.c.auth.require_session()
        product = self.c.inventory.upsert_product(name, quantity, sale_price, purchase_cost, product_id)
        self.refresh()
        return product

    def delete_product(self, product_id: int, confirm: Confirm) -> bool:
        self.c.auth.require_session()
        product = self.product(product_id)
        if not confirm(f"Delete product '{product.name}'?"):
            return False
        self.c.inventory.delete_product(product.id)
        self.refresh()
        return True

    # ---------- ledgers ----------
    def record_sale(self, product_id: int, quantity: int) -> Sale:
        self.c.auth.require_session()
        sale = self.c.sales.record_sale(self.product(product_id), quantity)
        self.refresh()
        return sale

    def record_expense(self, concept: str, amount: float) -> Expense:
        self.c.auth.require_session()
        expense = self.c.expenses.record_expense(concept, amount, self.snapshot.cash_balance)
        self.refresh()
        return expense

    def delete_expense(self, expense_id: int, confirm: Confirm) -> bool:
        self.c.auth.require_session()
        expense = next((e for e in self.snapshot.expenses if e.id == int(expense_id)), None)
        if expense is None:
            raise NotFoundError("Expense not found. Reload and try again.")
        if not confirm("Delete this expense? Its amount goes back to the register."):
            return False
        self.c.expenses.delete_expense(expense)
        self.refresh()
        return True

    def record_reinvestment(self, product_id: int, quantity: int) -> Reinvestment:
        self.c.auth.require_session()
        reinvestment = self.c.reinvestments.record_reinvestment(
            self.product(product_id), quantity, self.snapshot.cash_balance
        )
        self.refresh()
        return reinvestment

    # ---------- reports ----------
    def cash_cut(self, today: Optional[date] = None) -> CashCut:
        return self.c.reporting.cash_cut(self.snapshot, today)

    def export_cash_cut(self, path: str) -> None:
        self.c.auth.require_session()
        self.c.reporting.export_cash_cut_excel(path, self.snapshot)
        log.info("cash_cut_exported path=%s", path)
