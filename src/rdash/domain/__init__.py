from .models import Product, Sale, Expense, Reinvestment, Snapshot, Session, View
from .errors import (
    AppError,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    InsufficientFundsError,
    StoreError,
    RemoteError,
    ConflictError,
    AuthenticationError,
)

__all__ = [
    "Product",
    "Sale",
    "Expense",
    "Reinvestment",
    "Snapshot",
    "Session",
    "View",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "InsufficientStockError",
    "InsufficientFundsError",
    "StoreError",
    "RemoteError",
    "ConflictError",
    "AuthenticationError",
]
