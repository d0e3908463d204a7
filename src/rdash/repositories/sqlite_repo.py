from __future__ import annotations

import sqlite3
import hashlib
import hmac
import logging
import os
import secrets
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from rdash.domain.errors import StoreError
from rdash.repositories.schema import CASH, CASH_ROW_ID, TIMESTAMPED, check_columns

log = logging.getLogger(__name__)


class SqliteStore:
    """Local store with the same tables as the remote one, plus local users."""

    def __init__(self, db_path: Path | str, opening_balance: float = 0.0):
        self.db_path = str(db_path)
        self.opening_balance = float(opening_balance)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        conn = self._conn()
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"SQLite operation failed: {exc}") from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        self.run_migrations()
        self._ensure_bootstrap_user()

    def run_migrations(self) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_users),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            raise StoreError("Database migration failed. No changes were applied.") from exc
        finally:
            conn.close()

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS productos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            nombre TEXT NOT NULL,
            cantidad INTEGER NOT NULL CHECK(cantidad >= 0),
            "precioVenta" REAL NOT NULL CHECK("precioVenta" >= 0),
            "precioCompra" REAL NOT NULL CHECK("precioCompra" >= 0)
        )
        """
        )

        # productoId is a soft reference: deleting a product keeps its sales.
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS ventas (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            "productoId" INTEGER,
            "nombreProducto" TEXT NOT NULL,
            cantidad INTEGER NOT NULL CHECK(cantidad > 0),
            "precioUnitario" REAL NOT NULL CHECK("precioUnitario" >= 0),
            total REAL NOT NULL CHECK(total >= 0),
            created_at TEXT NOT NULL
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS gastos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            concepto TEXT NOT NULL,
            monto REAL NOT NULL CHECK(monto > 0),
            created_at TEXT NOT NULL
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS reinversiones (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            "nombreProducto" TEXT NOT NULL,
            "cantidadComprada" INTEGER NOT NULL CHECK("cantidadComprada" > 0),
            "costoUnitario" REAL NOT NULL CHECK("costoUnitario" >= 0),
            "costoTotal" REAL NOT NULL CHECK("costoTotal" >= 0),
            created_at TEXT NOT NULL
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS dinero (
            id INTEGER PRIMARY KEY CHECK(id = 1),
            monto REAL NOT NULL CHECK(monto >= 0)
        )
        """
        )
        cur.execute(
            "INSERT OR IGNORE INTO dinero (id, monto) VALUES (?, ?)",
            (CASH_ROW_ID, round(self.opening_balance, 2)),
        )

    def _migration_v2_users(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                password TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1 CHECK(active IN (0,1)),
                failed_attempts INTEGER NOT NULL DEFAULT 0,
                locked_until TEXT,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )

    def _ensure_bootstrap_user(self) -> None:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM users WHERE active=1")
            if int(cur.fetchone()[0]) > 0:
                return

            email = os.environ.get("RDASH_BOOTSTRAP_EMAIL", "").strip() or "admin@localhost"
            password = os.environ.get("RDASH_BOOTSTRAP_PASSWORD", "").strip() or secrets.token_urlsafe(12)
            cur.execute(
                """
                INSERT INTO users (email, password, active) VALUES (?, ?, 1)
                ON CONFLICT(email) DO UPDATE SET password=excluded.password, active=1,
                    failed_attempts=0, locked_until=NULL
                """,
                (email, self._hash_password(password)),
            )

        # One-time onboarding channel: the generated password lands in a file only the owner can read.
        secret_file = Path(self.db_path).parent / ".admin_bootstrap_password"
        secret_file.write_text(password + "\n", encoding="utf-8")
        try:
            secret_file.chmod(0o600)
        except OSError:
            log.warning("bootstrap_password_chmod_failed path=%s", secret_file)
        log.warning("bootstrap_user_created email=%s secret_file=%s", email, secret_file)

    # ---------- Tables ----------
    def select_all(self, table: str, order_by: str, descending: bool = False) -> list[dict]:
        check_columns(table, [order_by])
        direction = "DESC" if descending else "ASC"
        with self._cursor() as cur:
            cur.execute(f'SELECT * FROM {table} ORDER BY "{order_by}" {direction}, id {direction}')
            return [dict(r) for r in cur.fetchall()]

    def get(self, table: str, row_id: int) -> Optional[dict]:
        check_columns(table, [])
        with self._cursor() as cur:
            cur.execute(f"SELECT * FROM {table} WHERE id = ?", (int(row_id),))
            r = cur.fetchone()
        return dict(r) if r else None

    def insert(self, table: str, values: Mapping[str, Any]) -> dict:
        row = dict(values)
        check_columns(table, row)
        if table in TIMESTAMPED and "created_at" not in row:
            row["created_at"] = datetime.now().astimezone().isoformat(timespec="seconds")

        cols = ", ".join(f'"{c}"' for c in row)
        marks = ", ".join("?" for _ in row)
        with self._cursor() as cur:
            cur.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(row.values()))
            cur.execute(f"SELECT * FROM {table} WHERE id = ?", (int(cur.lastrowid),))
            return dict(cur.fetchone())

    def update(
        self,
        table: str,
        row_id: int,
        values: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        expected = dict(expected or {})
        check_columns(table, list(values) + list(expected))
        if not values:
            raise StoreError("Nothing to update.")

        assignments = ", ".join(f'"{c}" = ?' for c in values)
        conditions = "".join(f' AND "{c}" = ?' for c in expected)
        params = (*values.values(), int(row_id), *expected.values())
        with self._cursor() as cur:
            cur.execute(f"UPDATE {table} SET {assignments} WHERE id = ?{conditions}", params)
            return cur.rowcount > 0

    def delete(self, table: str, row_id: int) -> bool:
        check_columns(table, [])
        if table == CASH:
            raise StoreError("The cash balance row can not be deleted.")
        with self._cursor() as cur:
            cur.execute(f"DELETE FROM {table} WHERE id = ?", (int(row_id),))
            return cur.rowcount > 0

    # ---------- Users ----------
    def _get_user_row(self, cur: sqlite3.Cursor, email: str):
        cur.execute(
            """
            SELECT id, email, password, failed_attempts, locked_until
            FROM users
            WHERE active=1 AND email=?
            """,
            (email,),
        )
        return cur.fetchone()

    def get_user_security_state(self, email: str) -> tuple[int, Optional[str]] | None:
        with self._cursor() as cur:
            row = self._get_user_row(cur, email)
        if not row:
            return None
        return int(row["failed_attempts"]), row["locked_until"]

    def record_login_failure(self, email: str, max_attempts: int, lockout_seconds: int) -> tuple[int, Optional[str]]:
        with self._cursor() as cur:
            row = self._get_user_row(cur, email)
            if not row:
                return 0, None

            attempts = int(row["failed_attempts"]) + 1
            locked_until = None
            if attempts >= int(max_attempts):
                attempts = 0
                locked_until = (datetime.now(timezone.utc) + timedelta(seconds=int(lockout_seconds))).isoformat(timespec="seconds")
            cur.execute(
                "UPDATE users SET failed_attempts=?, locked_until=? WHERE id=?",
                (attempts, locked_until, int(row["id"])),
            )
        return attempts, locked_until

    def authenticate_user(self, email: str, password: str) -> Optional[dict]:
        with self._cursor() as cur:
            row = self._get_user_row(cur, email)
            if not row or not self._verify_password(str(row["password"]), password):
                return None
            cur.execute("UPDATE users SET failed_attempts=0, locked_until=NULL WHERE id=?", (int(row["id"]),))
        return {"id": int(row["id"]), "email": str(row["email"])}

    def create_user(self, email: str, password: str) -> int:
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO users (email, password, active) VALUES (?, ?, 1)",
                (email, self._hash_password(password)),
            )
            return int(cur.lastrowid)

    @staticmethod
    def _hash_password(password: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
        salt = salt or secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
        return f"pbkdf2_sha256${rounds}${salt}${digest}"

    @staticmethod
    def _verify_password(stored: str, provided: str) -> bool:
        if not stored.startswith("pbkdf2_sha256$"):
            return False
        try:
            _algo, rounds_s, salt, digest = stored.split("$", 3)
            candidate = hashlib.pbkdf2_hmac(
                "sha256",
                provided.encode("utf-8"),
                bytes.fromhex(salt),
                int(rounds_s),
            ).hex()
        except ValueError:
            return False
        return hmac.compare_digest(candidate, digest)
