from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from conftest import add_product, make_store

from rdash.domain.errors import NotFoundError, StoreError, ValidationError
from rdash.repositories.schema import parse_timestamp
from rdash.services.inventory_service import InventoryService, search_products, sellable_products
from rdash.services.loader_service import DataLoader
from rdash.services.sales_service import SalesService


def test_upsert_then_edit_reflects_only_new_values_after_reload(tmp_path: Path):
    store = make_store(tmp_path)
    inv = InventoryService(store)

    p = inv.upsert_product("Cafe", 10, 15.0, 10.0)
    inv.upsert_product("Cafe molido", 4, 18.5, 11.25, product_id=p.id)

    snap = DataLoader(store).load()
    assert len(snap.products) == 1
    reloaded = snap.products[0]
    assert reloaded.id == p.id
    assert reloaded.name == "Cafe molido"
    assert reloaded.quantity == 4
    assert reloaded.sale_price == 18.5
    assert reloaded.purchase_cost == 11.25


@pytest.mark.parametrize(
    "args, message",
    [
        (("", 1, 1.0, 1.0), "Name is required"),
        (("Agua", None, 1.0, 1.0), "fill in all fields"),
        (("Agua", -1, 1.0, 1.0), "Quantity must be >= 0"),
        (("Agua", 1.5, 1.0, 1.0), "whole number"),
        (("Agua", 1, -1.0, 1.0), "Sale price"),
        (("Agua", 1, 1.0, -0.5), "Purchase cost"),
        (("Agua", 1, float("inf"), 1.0), "Sale price must be a number"),
        (("Agua", 1, float("-inf"), 1.0), "Sale price must be a number"),
        (("Agua", 1, 1.0, float("nan")), "Purchase cost must be a number"),
        (("Agua", float("inf"), 1.0, 1.0), "Quantity must be a number"),
        (("Agua", float("nan"), 1.0, 1.0), "Quantity must be a number"),
    ],
)
def test_upsert_rejects_invalid_fields_without_writing(tmp_path: Path, args, message):
    store = make_store(tmp_path)
    inv = InventoryService(store)

    with pytest.raises(ValidationError, match=message):
        inv.upsert_product(*args)

    assert store.select_all("productos", "nombre") == []


def test_update_of_missing_product_is_reported(tmp_path: Path):
    store = make_store(tmp_path)
    with pytest.raises(NotFoundError):
        InventoryService(store).upsert_product("Agua", 1, 1.0, 1.0, product_id=999)


def test_delete_product_keeps_its_sales(tmp_path: Path):
    store = make_store(tmp_path)
    p = add_product(store, "Agua", 10, 2.0, 1.0)
    SalesService(store).record_sale(p, 3)

    InventoryService(store).delete_product(p.id)

    snap = DataLoader(store).load()
    assert snap.products == ()
    assert len(snap.sales) == 1
    assert snap.sales[0].product_id == p.id
    assert snap.sales[0].product_name == "Agua"

    with pytest.raises(NotFoundError):
        InventoryService(store).delete_product(p.id)


def test_loader_orders_collections(tmp_path: Path):
    store = make_store(tmp_path, opening_balance=50.0)
    for name in ("Cafe", "Agua", "Bolsa"):
        add_product(store, name, 10, 2.0, 1.0)
    snap = DataLoader(store).load()
    first = snap.products[0]

    sales = SalesService(store)
    s1 = sales.record_sale(first, 1)
    s2 = sales.record_sale(first, 2)

    snap = DataLoader(store).load()
    assert [p.name for p in snap.products] == ["Agua", "Bolsa", "Cafe"]
    # newest first
    assert [s.id for s in snap.sales] == [s2.id, s1.id]
    assert snap.cash_balance == 56.0
    assert snap.loaded_at is not None


def test_loader_fails_without_cash_row(tmp_path: Path):
    store = make_store(tmp_path)
    conn = store._conn()
    conn.execute("DELETE FROM dinero")
    conn.commit()
    conn.close()

    with pytest.raises(StoreError, match="Cash balance"):
        DataLoader(store).load()


def test_timestamps_with_trimmed_fractions_parse():
    ts = parse_timestamp("2024-05-01T12:34:56.12345+00:00")
    assert ts == datetime(2024, 5, 1, 12, 34, 56, 123450, tzinfo=timezone.utc)

    assert parse_timestamp("2024-05-01T12:34:56.5Z").microsecond == 500000
    assert parse_timestamp("2024-05-01 12:34:56.1234567-03:00").utcoffset() == timedelta(hours=-3)
    assert parse_timestamp("2024-05-01T12:34:56+00:00").microsecond == 0


def test_loader_reports_unreadable_rows_as_store_errors(tmp_path: Path):
    store = make_store(tmp_path)
    conn = store._conn()
    conn.execute(
        "INSERT INTO ventas (\"nombreProducto\", cantidad, \"precioUnitario\", total, created_at) "
        "VALUES ('Cafe', 1, 2.0, 2.0, 'yesterday')"
    )
    conn.commit()
    conn.close()

    with pytest.raises(StoreError, match="ventas"):
        DataLoader(store).load()


def test_search_and_sellable_filters(tmp_path: Path):
    store = make_store(tmp_path)
    add_product(store, "Cafe", 0, 2.0, 1.0)
    add_product(store, "Cafe descafeinado", 3, 2.0, 1.0)
    add_product(store, "Agua", 5, 1.0, 0.5)
    products = DataLoader(store).load().products

    assert [p.name for p in search_products(products, "  CAFE ")] == ["Cafe", "Cafe descafeinado"]
    assert len(search_products(products, "")) == 3
    assert [p.name for p in sellable_products(products)] == ["Agua", "Cafe descafeinado"]
