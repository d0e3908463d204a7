from .login_view import LoginView
from .inventory_view import InventoryView
from .sales_view import SalesView
from .expenses_view import ExpensesView
from .reinvestment_view import ReinvestmentView
from .cash_cut_view import CashCutView

__all__ = ["LoginView", "InventoryView", "SalesView", "ExpensesView", "ReinvestmentView", "CashCutView"]
