from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from rdash.domain.errors import AuthenticationError, RemoteError, StoreError
from rdash.domain.models import Session
from rdash.repositories.rest_client import SupabaseClient
from rdash.repositories.schema import CASH, check_columns

log = logging.getLogger(__name__)

RETURN_ROWS = {"Prefer": "return=representation"}


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestStore:
    """Tables served by PostgREST under /rest/v1."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def _path(self, table: str) -> str:
        return f"/rest/v1/{table}"

    def select_all(self, table: str, order_by: str, descending: bool = False) -> list[dict]:
        check_columns(table, [order_by])
        direction = "desc" if descending else "asc"
        rows = self.client.request(
            "GET",
            self._path(table),
            params={"select": "*", "order": f"{order_by}.{direction},id.{direction}"},
        )
        return list(rows or [])

    def get(self, table: str, row_id: int) -> Optional[dict]:
        check_columns(table, [])
        rows = self.client.request("GET", self._path(table), params={"select": "*", "id": _eq(int(row_id))})
        return dict(rows[0]) if rows else None

    def insert(self, table: str, values: Mapping[str, Any]) -> dict:
        check_columns(table, values)
        rows = self.client.request("POST", self._path(table), json=dict(values), headers=RETURN_ROWS)
        if not rows:
            raise StoreError(f"Insert into {table} returned no row.")
        return dict(rows[0])

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

        params = {"id": _eq(int(row_id))}
        for column, value in expected.items():
            params[column] = _eq(value)
        rows = self.client.request("PATCH", self._path(table), params=params, json=dict(values), headers=RETURN_ROWS)
        return bool(rows)

    def delete(self, table: str, row_id: int) -> bool:
        check_columns(table, [])
        if table == CASH:
            raise StoreError("The cash balance row can not be deleted.")
        rows = self.client.request("DELETE", self._path(table), params={"id": _eq(int(row_id))}, headers=RETURN_ROWS)
        return bool(rows)


class RestAuthGateway:
    """Email/password sessions served by GoTrue under /auth/v1."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def _session(self, data: Mapping[str, Any]) -> Session:
        try:
            user = data.get("user") or {}
            expires_in = int(data.get("expires_in") or 3600)
            session = Session(
                access_token=str(data["access_token"]),
                refresh_token=data.get("refresh_token"),
                user_id=str(user.get("id", "")),
                email=str(user.get("email", "")),
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AuthenticationError(f"Unexpected auth response: {e}") from e
        self.client.set_access_token(session.access_token)
        return session

    def _token(self, grant_type: str, payload: dict) -> Session:
        try:
            data = self.client.request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": grant_type},
                json=payload,
            )
        except RemoteError as e:
            if e.status is not None and 400 <= e.status < 500:
                raise AuthenticationError(str(e)) from e
            raise
        return self._session(data or {})

    def sign_in(self, email: str, password: str) -> Session:
        return self._token("password", {"email": email, "password": password})

    def refresh(self, session: Session) -> Session:
        if not session.refresh_token:
            raise AuthenticationError("Session expired. Please sign in again.")
        return self._token("refresh_token", {"refresh_token": session.refresh_token})

    def sign_out(self, session: Session) -> None:
        try:
            self.client.request("POST", "/auth/v1/logout", bearer=session.access_token)
        finally:
            self.client.set_access_token(None)
