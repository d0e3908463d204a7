import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

USER_EMAIL = "owner@shop.test"
USER_PASSWORD = "Caja#2024"


def make_store(tmp_path: Path, opening_balance: float = 100.0, name: str = "t.db", cls=None):
    from rdash.repositories.sqlite_repo import SqliteStore

    cls = cls or SqliteStore
    store = cls(tmp_path / name, opening_balance=opening_balance)
    store.init_db()
    return store


def add_product(store, name: str, quantity: int, sale_price: float, purchase_cost: float):
    from rdash.services.inventory_service import InventoryService

    return InventoryService(store).upsert_product(name, quantity, sale_price, purchase_cost)


def cash(store) -> float:
    return float(store.get("dinero", 1)["monto"])


def make_dashboard(tmp_path: Path, opening_balance: float = 100.0, login: bool = True):
    from rdash.application.container import build_container
    from rdash.application.dashboard import Dashboard
    from rdash.config import Settings

    container = build_container(Settings(opening_balance=opening_balance), db_path=tmp_path / "dash.db")
    container.store.create_user(USER_EMAIL, USER_PASSWORD)
    dash = Dashboard(container)
    if login:
        dash.login(USER_EMAIL, USER_PASSWORD)
    return dash
