from .auth_service import AuthService, LocalAuthGateway, LoginPolicy
from .loader_service import DataLoader
from .inventory_service import InventoryService
from .sales_service import SalesService
from .expense_service import ExpenseService
from .reinvestment_service import ReinvestmentService
from .reporting_service import ReportingService

__all__ = [
    "AuthService",
    "LocalAuthGateway",
    "LoginPolicy",
    "DataLoader",
    "InventoryService",
    "SalesService",
    "ExpenseService",
    "ReinvestmentService",
    "ReportingService",
]
