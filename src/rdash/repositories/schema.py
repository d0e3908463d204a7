from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Mapping

from rdash.domain.errors import StoreError
from rdash.domain.models import Expense, Product, Reinvestment, Sale

PRODUCTS = "productos"
SALES = "ventas"
EXPENSES = "gastos"
REINVESTMENTS = "reinversiones"
CASH = "dinero"

CASH_ROW_ID = 1

# Writable columns per table. "id" and "created_at" are assigned by the store.
COLUMNS: dict[str, tuple[str, ...]] = {
    PRODUCTS: ("nombre", "cantidad", "precioVenta", "precioCompra"),
    SALES: ("productoId", "nombreProducto", "cantidad", "precioUnitario", "total"),
    EXPENSES: ("concepto", "monto"),
    REINVESTMENTS: ("nombreProducto", "cantidadComprada", "costoUnitario", "costoTotal"),
    CASH: ("monto",),
}

TIMESTAMPED = {SALES, EXPENSES, REINVESTMENTS}

_FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d\d:?\d\d$|$)")


def check_columns(table: str, names) -> None:
    allowed = COLUMNS.get(table)
    if allowed is None:
        raise StoreError(f"Unknown table: {table}")
    extra = [n for n in names if n not in allowed and n not in ("id", "created_at")]
    if extra:
        raise StoreError(f"Unknown column(s) for {table}: {', '.join(extra)}")


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    # fromisoformat only learned the "Z" suffix in 3.11
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Postgres trims trailing zeros; 3.10 wants exactly 3 or 6 digits
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def product_from_row(r: Mapping[str, Any]) -> Product:
    return Product(
        id=int(r["id"]),
        name=str(r["nombre"]),
        quantity=int(r["cantidad"]),
        sale_price=float(r["precioVenta"]),
        purchase_cost=float(r["precioCompra"]),
    )


def sale_from_row(r: Mapping[str, Any]) -> Sale:
    return Sale(
        id=int(r["id"]),
        product_id=int(r["productoId"]) if r.get("productoId") is not None else None,
        product_name=str(r["nombreProducto"]),
        quantity=int(r["cantidad"]),
        unit_price=float(r["precioUnitario"]),
        total=float(r["total"]),
        created_at=parse_timestamp(r["created_at"]),
    )


def expense_from_row(r: Mapping[str, Any]) -> Expense:
    return Expense(
        id=int(r["id"]),
        concept=str(r["concepto"]),
        amount=float(r["monto"]),
        created_at=parse_timestamp(r["created_at"]),
    )


def reinvestment_from_row(r: Mapping[str, Any]) -> Reinvestment:
    return Reinvestment(
        id=int(r["id"]),
        product_name=str(r["nombreProducto"]),
        quantity_purchased=int(r["cantidadComprada"]),
        unit_cost=float(r["costoUnitario"]),
        total_cost=float(r["costoTotal"]),
        created_at=parse_timestamp(r["created_at"]),
    )


def product_values(name: str, quantity: int, sale_price: float, purchase_cost: float) -> dict:
    return {
        "nombre": name,
        "cantidad": int(quantity),
        "precioVenta": float(sale_price),
        "precioCompra": float(purchase_cost),
    }
