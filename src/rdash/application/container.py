from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rdash.config import Settings
from rdash.repositories.contracts import AuthGateway, DataStore
from rdash.repositories.rest_client import SupabaseClient
from rdash.repositories.rest_repo import RestAuthGateway, RestStore
from rdash.repositories.sqlite_repo import SqliteStore
from rdash.repositories.unit_of_work import RepositoryUnitOfWork
from rdash.services.auth_service import AuthService, LocalAuthGateway
from rdash.services.expense_service import ExpenseService
from rdash.services.inventory_service import InventoryService
from rdash.services.loader_service import DataLoader
from rdash.services.reinvestment_service import ReinvestmentService
from rdash.services.reporting_service import ReportingService
from rdash.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    settings: Settings
    store: DataStore
    auth: AuthService
    loader: DataLoader
    inventory: InventoryService
    sales: SalesService
    expenses: ExpenseService
    reinvestments: ReinvestmentService
    reporting: ReportingService


def _build_store(settings: Settings, db_path: Path | str | None) -> tuple[DataStore, AuthGateway]:
    if settings.backend == "supabase":
        client = SupabaseClient(settings.supabase_url, settings.supabase_key, timeout=settings.http_timeout)
        return RestStore(client), RestAuthGateway(client)

    if db_path is None:
        raise ValueError("db_path is required for the sqlite backend")
    repo = SqliteStore(db_path, opening_balance=settings.opening_balance)
    repo.init_db()
    return repo, LocalAuthGateway(repo)


def build_container(settings: Settings, db_path: Path | str | None = None) -> AppContainer:
    store, gateway = _build_store(settings, db_path)

    def uow_factory():
        return RepositoryUnitOfWork(store, attempts=settings.cas_attempts)

    return AppContainer(
        settings=settings,
        store=store,
        auth=AuthService(gateway),
        loader=DataLoader(store),
        inventory=InventoryService(store),
        sales=SalesService(store, uow_factory),
        expenses=ExpenseService(store, uow_factory),
        reinvestments=ReinvestmentService(store, uow_factory),
        reporting=ReportingService(
            low_stock_threshold=settings.low_stock_threshold,
            top_sellers_limit=settings.top_sellers_limit,
            opening_balance=settings.opening_balance,
        ),
    )
