from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from rdash.domain.errors import NotFoundError, ValidationError
from rdash.domain.models import Product
from rdash.repositories.contracts import DataStore
from rdash.repositories.schema import PRODUCTS, product_from_row, product_values

log = logging.getLogger(__name__)


def search_products(products: Iterable[Product], term: str) -> list[Product]:
    term = (term or "").strip().lower()
    return [p for p in products if term in p.name.lower()]


def sellable_products(products: Iterable[Product]) -> list[Product]:
    return [p for p in products if p.quantity > 0]


class InventoryService:
    def __init__(self, store: DataStore):
        self.store = store

    def upsert_product(
        self,
        name: str,
        quantity: int,
        sale_price: float,
        purchase_cost: float,
        product_id: Optional[int] = None,
    ) -> Product:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        if quantity is None or sale_price is None or purchase_cost is None:
            raise ValidationError("Please fill in all fields.")
        for value, label in ((quantity, "Quantity"), (sale_price, "Sale price"), (purchase_cost, "Purchase cost")):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(f"{label} must be a number.")
        if int(quantity) != quantity:
            raise ValidationError("Quantity must be a whole number.")
        if quantity < 0:
            raise ValidationError("Quantity must be >= 0.")
        if sale_price < 0:
            raise ValidationError("Sale price must be >= 0.")
        if purchase_cost < 0:
            raise ValidationError("Purchase cost must be >= 0.")

        values = product_values(name, int(quantity), float(sale_price), float(purchase_cost))
        if product_id is None:
            row = self.store.insert(PRODUCTS, values)
            product = product_from_row(row)
            log.info("product_created product_id=%s name=%s", product.id, product.name)
            return product

        if not self.store.update(PRODUCTS, int(product_id), values):
            raise NotFoundError("Product not found.")
        log.info("product_updated product_id=%s name=%s", product_id, name)
        return Product(id=int(product_id), name=name, quantity=int(quantity),
                       sale_price=float(sale_price), purchase_cost=float(purchase_cost))

    def delete_product(self, product_id: int) -> None:
        # Sales and reinvestments keep their copied name and price.
        if not self.store.delete(PRODUCTS, int(product_id)):
            raise NotFoundError("Product not found.")
        log.info("product_deleted product_id=%s", product_id)
