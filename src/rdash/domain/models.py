from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    quantity: int
    sale_price: float
    purchase_cost: float


@dataclass(frozen=True)
class Sale:
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: float
    total: float
    created_at: datetime


@dataclass(frozen=True)
class Expense:
    id: int
    concept: str
    amount: float
    created_at: datetime


@dataclass(frozen=True)
class Reinvestment:
    id: int
    product_name: str
    quantity_purchased: int
    unit_cost: float
    total_cost: float
    created_at: datetime


@dataclass(frozen=True)
class Snapshot:
    """Everything the dashboard shows, as loaded in one pass."""

    products: tuple[Product, ...]
    sales: tuple[Sale, ...]
    expenses: tuple[Expense, ...]
    reinvestments: tuple[Reinvestment, ...]
    cash_balance: float
    loaded_at: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(products=(), sales=(), expenses=(), reinvestments=(), cash_balance=0.0)

    def product_by_id(self, product_id: int) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str
    email: str
    expires_at: datetime
    refresh_token: Optional[str] = None

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


class View(str, Enum):
    INVENTORY = "inventory"
    SALES = "sales"
    EXPENSES = "expenses"
    REINVESTMENT = "reinvestment"
    CASH_CUT = "cash_cut"
