from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, TypeVar

from rdash.domain.errors import StoreError
from rdash.domain.models import Snapshot
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import (
    CASH,
    CASH_ROW_ID,
    EXPENSES,
    PRODUCTS,
    REINVESTMENTS,
    SALES,
    expense_from_row,
    product_from_row,
    reinvestment_from_row,
    sale_from_row,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


class DataLoader:
    def __init__(self, store: DataStore):
        self.store = store

    def load(self) -> Snapshot:
        """Read every collection and the cash balance.

        Nothing is returned unless all five reads succeed.
        """
        products = self._rows(PRODUCTS, product_from_row, "nombre")
        sales = self._rows(SALES, sale_from_row, "created_at", descending=True)
        expenses = self._rows(EXPENSES, expense_from_row, "created_at", descending=True)
        reinvestments = self._rows(REINVESTMENTS, reinvestment_from_row, "created_at", descending=True)

        cash = self.store.get(CASH, CASH_ROW_ID)
        if not cash:
            raise StoreError("Cash balance record is missing.")
        try:
            balance = float(cash["monto"])
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unreadable cash balance: {e}") from e

        snapshot = Snapshot(
            products=products,
            sales=sales,
            expenses=expenses,
            reinvestments=reinvestments,
            cash_balance=balance,
            loaded_at=datetime.now().astimezone(),
        )
        log.info(
            "data_loaded products=%s sales=%s expenses=%s reinvestments=%s cash=%.2f",
            len(products), len(sales), len(expenses), len(reinvestments), snapshot.cash_balance,
        )
        return snapshot

    def _rows(self, table: str, mapper: Callable[[Mapping[str, Any]], T], order: str, descending: bool = False) -> tuple[T, ...]:
        rows = self.store.select_all(table, order, descending=descending)
        try:
            return tuple(mapper(r) for r in rows)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unreadable row in {table}: {e}") from e
