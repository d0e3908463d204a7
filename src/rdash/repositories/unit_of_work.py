from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Protocol

from rdash.domain.errors import (
    AppError,
    ConflictError,
    InsufficientFundsError,
    InsufficientStockError,
    NotFoundError,
    StoreError,
)
from rdash.domain.models import Product
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import CASH, CASH_ROW_ID, PRODUCTS, product_from_row

log = logging.getLogger("rdash.cash")


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def product(self, product_id: int) -> Product: ...
    def cash_balance(self) -> float: ...
    def adjust_stock(self, product_id: int, delta: int) -> Product: ...
    def adjust_cash(self, delta: float) -> float: ...
    def insert(self, table: str, values: Mapping[str, Any]) -> dict: ...
    def delete(self, table: str, row_id: int) -> None: ...


@dataclass
class RepositoryUnitOfWork:
    """Groups the writes of one business operation.

    The stores have no multi-statement transactions over HTTP, so every
    completed step registers its inverse. Leaving the `with` block on an
    exception replays the inverses newest first. Counters are updated with
    compare-and-swap and re-read on conflict.
    """

    store: DataStore
    attempts: int = 3
    backoff_base: float = 0.05
    _undo: list[tuple[str, Callable[[], Any]]] = field(default_factory=list, init=False, repr=False)

    def __enter__(self) -> "RepositoryUnitOfWork":
        self._undo = []
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback(reason=exc)
        self._undo = []
        return None

    # ---------- reads ----------
    def product(self, product_id: int) -> Product:
        row = self.store.get(PRODUCTS, int(product_id))
        if not row:
            raise NotFoundError("Product not found.")
        return product_from_row(row)

    def cash_balance(self) -> float:
        row = self.store.get(CASH, CASH_ROW_ID)
        if not row:
            raise StoreError("Cash balance record is missing.")
        return float(row["monto"])

    # ---------- writes ----------
    def adjust_stock(self, product_id: int, delta: int) -> Product:
        updated = self._apply_stock(int(product_id), int(delta))
        self._undo.append((f"stock product_id={product_id} delta={-delta}", lambda: self._apply_stock(int(product_id), -int(delta))))
        return updated

    def adjust_cash(self, delta: float) -> float:
        balance = self._apply_cash(float(delta))
        self._undo.append((f"cash delta={-delta:.2f}", lambda: self._apply_cash(-float(delta))))
        return balance

    def insert(self, table: str, values: Mapping[str, Any]) -> dict:
        row = self.store.insert(table, values)
        row_id = int(row["id"])
        self._undo.append((f"delete {table} id={row_id}", lambda: self.store.delete(table, row_id)))
        return row

    def delete(self, table: str, row_id: int) -> None:
        row = self.store.get(table, int(row_id))
        if not row or not self.store.delete(table, int(row_id)):
            raise NotFoundError(f"Record {row_id} not found in {table}.")
        restore = dict(row)
        self._undo.append((f"restore {table} id={row_id}", lambda: self.store.insert(table, restore)))

    def rollback(self, reason: BaseException | None = None) -> None:
        while self._undo:
            label, undo = self._undo.pop()
            try:
                undo()
                log.warning("compensation_applied step=%s reason=%s", label, reason)
            except AppError as e:
                log.critical("compensation_failed step=%s reason=%s error=%s", label, reason, e)

    # ---------- compare-and-swap ----------
    def _retry(self, op: Callable[[], Any | None], what: str):
        for attempt in range(self.attempts):
            result = op()
            if result is not None:
                return result
            log.info("cas_conflict target=%s attempt=%s", what, attempt + 1)
            if attempt < self.attempts - 1 and self.backoff_base > 0:
                time.sleep(self.backoff_base * (2 ** attempt))
        raise ConflictError(f"{what} changed concurrently too many times. Reload and try again.")

    def _apply_stock(self, product_id: int, delta: int) -> Product:
        def op():
            current = self.product(product_id)
            new_qty = current.quantity + delta
            if new_qty < 0:
                raise InsufficientStockError(f"Not enough stock for {current.name}. Available: {current.quantity}")
            ok = self.store.update(PRODUCTS, product_id, {"cantidad": new_qty}, expected={"cantidad": current.quantity})
            if not ok:
                return None
            return replace(current, quantity=new_qty)

        return self._retry(op, f"Stock of product {product_id}")

    def _apply_cash(self, delta: float) -> float:
        def op():
            current = self.cash_balance()
            new_balance = round(current + delta, 2)
            if new_balance < 0:
                raise InsufficientFundsError(f"Not enough cash. Available: {current:.2f}")
            ok = self.store.update(CASH, CASH_ROW_ID, {"monto": new_balance}, expected={"monto": current})
            return new_balance if ok else None

        return self._retry(op, "Cash balance")
