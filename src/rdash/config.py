from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys

from rdash.domain.errors import ValidationError


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class Settings:
    backend: str = "sqlite"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    http_timeout: float = 10.0
    opening_balance: float = 0.0
    low_stock_threshold: int = 5
    top_sellers_limit: int = 5
    cas_attempts: int = 3


BACKENDS = {"sqlite", "supabase"}


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "RetailDashboard") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "dashboard.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def _number(env: Mapping[str, str], key: str, default, cast, min_value):
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValidationError(f"{key} must be a number. Received: {raw!r}")
    if value < min_value:
        raise ValidationError(f"{key} must be >= {min_value}.")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env

    backend = (env.get("RDASH_BACKEND") or "sqlite").strip().lower()
    if backend not in BACKENDS:
        raise ValidationError(f"RDASH_BACKEND must be one of {sorted(BACKENDS)}. Received: {backend!r}")

    url = (env.get("RDASH_SUPABASE_URL") or "").strip().rstrip("/") or None
    key = (env.get("RDASH_SUPABASE_KEY") or "").strip() or None
    if backend == "supabase" and (not url or not key):
        raise ValidationError("RDASH_SUPABASE_URL and RDASH_SUPABASE_KEY are required for the supabase backend.")

    return Settings(
        backend=backend,
        supabase_url=url,
        supabase_key=key,
        http_timeout=_number(env, "RDASH_HTTP_TIMEOUT", 10.0, float, 0.1),
        opening_balance=_number(env, "RDASH_OPENING_BALANCE", 0.0, float, 0.0),
        low_stock_threshold=_number(env, "RDASH_LOW_STOCK_THRESHOLD", 5, int, 0),
        top_sellers_limit=_number(env, "RDASH_TOP_SELLERS", 5, int, 1),
        cas_attempts=_number(env, "RDASH_CAS_ATTEMPTS", 3, int, 1),
    )
