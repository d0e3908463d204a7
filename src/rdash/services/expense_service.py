from __future__ import annotations

import logging
import math
from typing import Callable, Iterable

from rdash.domain.errors import InsufficientFundsError, ValidationError
from rdash.domain.models import Expense
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import EXPENSES, expense_from_row
from rdash.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("rdash.cash")


def search_expenses(expenses: Iterable[Expense], term: str) -> list[Expense]:
    term = (term or "").strip().lower()
    return [e for e in expenses if term in e.concept.lower()]


class ExpenseService:
    def __init__(self, store: DataStore, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.store = store
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(store))

    def record_expense(self, concept: str, amount: float, cash_balance: float) -> Expense:
        concept = (concept or "").strip()
        if not concept or amount is None:
            raise ValidationError("Please fill in all fields.")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
            raise ValidationError("Amount must be a number.")
        if amount <= 0:
            raise ValidationError("Amount must be > 0.")
        amount = round(float(amount), 2)
        if amount > float(cash_balance):
            raise InsufficientFundsError("Not enough cash in the register for this expense.")

        with self.uow_factory() as uow:
            balance = uow.adjust_cash(-amount)
            row = uow.insert(EXPENSES, {"concepto": concept, "monto": amount})

        expense = expense_from_row(row)
        log.info("expense_recorded expense_id=%s amount=%.2f cash_after=%.2f", expense.id, amount, balance)
        return expense

    def delete_expense(self, expense: Expense) -> None:
        """Remove an expense and put its amount back in the register."""
        with self.uow_factory() as uow:
            balance = uow.adjust_cash(float(expense.amount))
            uow.delete(EXPENSES, expense.id)
        log.info("expense_refunded expense_id=%s amount=%.2f cash_after=%.2f", expense.id, expense.amount, balance)
