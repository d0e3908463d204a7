from __future__ import annotations

import logging
from typing import Callable

from rdash.domain.errors import InsufficientFundsError, ValidationError
from rdash.domain.models import Product, Reinvestment
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import REINVESTMENTS, reinvestment_from_row
from rdash.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork
from rdash.services.sales_service import require_quantity

log = logging.getLogger("rdash.cash")


class ReinvestmentService:
    def __init__(self, store: DataStore, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.store = store
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(store))

    def record_reinvestment(self, product: Product, quantity: int, cash_balance: float) -> Reinvestment:
        """
        Restock `quantity` units bought at the product's purchase cost:
          total_cost = purchase_cost * quantity
        Cash goes down by total_cost, stock goes up by quantity.
        """
        if product is None:
            raise ValidationError("Select a product and a quantity.")
        qty = require_quantity(quantity)
        total_cost = round(float(product.purchase_cost) * qty, 2)
        if total_cost > float(cash_balance):
            raise InsufficientFundsError("Not enough cash for this reinvestment.")

        with self.uow_factory() as uow:
            current = uow.product(product.id)
            unit_cost = float(current.purchase_cost)
            total_cost = round(unit_cost * qty, 2)
            balance = uow.adjust_cash(-total_cost)
            updated = uow.adjust_stock(current.id, qty)
            row = uow.insert(REINVESTMENTS, {
                "nombreProducto": current.name,
                "cantidadComprada": qty,
                "costoUnitario": unit_cost,
                "costoTotal": total_cost,
            })

        reinvestment = reinvestment_from_row(row)
        log.info(
            "reinvestment_recorded reinvestment_id=%s product_id=%s qty=%s total_cost=%.2f stock_after=%s cash_after=%.2f",
            reinvestment.id, current.id, qty, total_cost, updated.quantity, balance,
        )
        return reinvestment
