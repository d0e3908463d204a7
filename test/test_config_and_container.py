import json
import logging
from pathlib import Path

import pytest

from rdash.application.container import build_container
from rdash.config import Settings, load_settings
from rdash.domain.errors import ValidationError
from rdash.logging_config import setup_logging, split_event
from rdash.repositories.rest_repo import RestAuthGateway, RestStore
from rdash.repositories.sqlite_repo import SqliteStore


def test_defaults_without_environment():
    s = load_settings({})
    assert s == Settings()
    assert s.backend == "sqlite"
    assert s.http_timeout == 10.0
    assert s.low_stock_threshold == 5


def test_numbers_are_parsed_and_checked():
    s = load_settings({"RDASH_OPENING_BALANCE": "250.5", "RDASH_LOW_STOCK_THRESHOLD": "3", "RDASH_CAS_ATTEMPTS": "5"})
    assert (s.opening_balance, s.low_stock_threshold, s.cas_attempts) == (250.5, 3, 5)

    with pytest.raises(ValidationError, match="RDASH_HTTP_TIMEOUT must be a number"):
        load_settings({"RDASH_HTTP_TIMEOUT": "soon"})
    with pytest.raises(ValidationError, match="RDASH_OPENING_BALANCE must be >= 0"):
        load_settings({"RDASH_OPENING_BALANCE": "-1"})
    with pytest.raises(ValidationError, match="RDASH_CAS_ATTEMPTS"):
        load_settings({"RDASH_CAS_ATTEMPTS": "0"})


def test_backend_selection_is_validated():
    with pytest.raises(ValidationError, match="RDASH_BACKEND"):
        load_settings({"RDASH_BACKEND": "mysql"})
    with pytest.raises(ValidationError, match="RDASH_SUPABASE_URL"):
        load_settings({"RDASH_BACKEND": "supabase", "RDASH_SUPABASE_URL": "https://x.supabase.co"})

    s = load_settings({
        "RDASH_BACKEND": " Supabase ",
        "RDASH_SUPABASE_URL": "https://x.supabase.co/",
        "RDASH_SUPABASE_KEY": "anon",
    })
    assert (s.backend, s.supabase_url, s.supabase_key) == ("supabase", "https://x.supabase.co", "anon")


def test_container_wires_sqlite_backend(tmp_path: Path):
    c = build_container(Settings(opening_balance=42.0, cas_attempts=4), db_path=tmp_path / "c.db")

    assert isinstance(c.store, SqliteStore)
    assert c.store.get("dinero", 1)["monto"] == 42.0
    assert c.reporting.opening_balance == 42.0
    assert c.sales.uow_factory().attempts == 4

    with pytest.raises(ValueError):
        build_container(Settings())


def test_container_wires_supabase_backend():
    c = build_container(Settings(backend="supabase", supabase_url="https://x.supabase.co", supabase_key="anon"))

    assert isinstance(c.store, RestStore)
    assert isinstance(c.auth.gateway, RestAuthGateway)
    # one client: the signed-in token authorizes data requests
    assert c.auth.gateway.client is c.store.client


def test_json_logs_are_split_by_channel(tmp_path: Path, monkeypatch):
    loggers = [logging.getLogger(name) for name in ("", "rdash.sales", "rdash.cash")]
    for lg in loggers:
        monkeypatch.setattr(lg, "handlers", [])
        monkeypatch.setattr(lg, "level", lg.level)

    setup_logging(tmp_path, level=logging.INFO)
    try:
        logging.getLogger("rdash.sales").info("sale_recorded sale_id=%s", 1)
        logging.getLogger("rdash.cash").warning("compensation_applied step=%s", "cash")
        logging.getLogger("rdash.services.loader_service").error("reload_failed")
    finally:
        for lg in loggers:
            for h in lg.handlers:
                h.close()

    sales = [json.loads(line) for line in (tmp_path / "sales.log").read_text(encoding="utf-8").splitlines()]
    assert sales[-1]["message"] == "sale_recorded sale_id=1"
    assert sales[-1]["logger"] == "rdash.sales"
    assert sales[-1]["level"] == "INFO"
    assert sales[-1]["event"] == "sale_recorded"
    assert sales[-1]["fields"] == {"sale_id": "1"}

    cash_lines = (tmp_path / "cash.log").read_text(encoding="utf-8")
    assert "compensation_applied" in cash_lines
    assert "sale_recorded" not in cash_lines

    app_lines = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "sale_recorded" in app_lines

    errors = (tmp_path / "errors.log").read_text(encoding="utf-8")
    assert "reload_failed" in errors
    assert "compensation_applied" not in errors


def test_split_event_parses_key_value_messages():
    assert split_event("sale_recorded sale_id=3 qty=2 total=45.00") == (
        "sale_recorded",
        {"sale_id": "3", "qty": "2", "total": "45.00"},
    )
    assert split_event("reload_failed") == ("reload_failed", {})
    assert split_event("Save product: Name is required.") == (None, {})
