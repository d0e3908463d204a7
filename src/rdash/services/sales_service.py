from __future__ import annotations

from typing import Callable, Iterable

import logging
import math
from rdash.domain.errors import InsufficientStockError, ValidationError
from rdash.domain.models import Product, Sale
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import SALES, sale_from_row
from rdash.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("rdash.sales")


def recent_sales(sales: Iterable[Sale], limit: int = 20) -> list[Sale]:
    return list(sales)[: max(int(limit), 0)]


def require_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError("Quantity must be a whole number.")
    if not math.isfinite(quantity) or int(quantity) != quantity:
        raise ValidationError("Quantity must be a whole number.")
    if quantity <= 0:
        raise ValidationError("Qty must be >= 1.")
    return int(quantity)


class SalesService:
    def __init__(
        self,
        store: DataStore,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ):
        self.store = store
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(store))

    def record_sale(self, product: Product, quantity: int) -> Sale:
        """Sell `quantity` units of `product`.

        `product` is the row the caller is looking at. Stock is checked against
        it first and then against the stored value while decrementing. Name and
        price are copied onto the sale as they are at that moment.
        """
        if product is None:
            raise ValidationError("Select a product and a quantity.")
        qty = require_quantity(quantity)
        if qty > int(product.quantity):
            raise InsufficientStockError(f"Not enough stock for {product.name}. Available: {product.quantity}")

        with self.uow_factory() as uow:
            current = uow.adjust_stock(product.id, -qty)
            total = round(current.sale_price * qty, 2)
            balance = uow.adjust_cash(total)
            row = uow.insert(SALES, {
                "productoId": current.id,
                "nombreProducto": current.name,
                "cantidad": qty,
                "precioUnitario": current.sale_price,
                "total": total,
            })

        sale = sale_from_row(row)
        log.info(
            "sale_recorded sale_id=%s product_id=%s qty=%s total=%.2f stock_after=%s cash_after=%.2f",
            sale.id, current.id, qty, total, current.quantity, balance,
        )
        return sale
