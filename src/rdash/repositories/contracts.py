from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from rdash.domain.models import Session


class DataStore(Protocol):
    """Table-level access shared by the SQLite and the remote store.

    Rows are plain dicts keyed by the store's column names.
    """

    def select_all(self, table: str, order_by: str, descending: bool = False) -> list[dict]: ...

    def get(self, table: str, row_id: int) -> Optional[dict]: ...

    def insert(self, table: str, values: Mapping[str, Any]) -> dict: ...

    def update(
        self,
        table: str,
        row_id: int,
        values: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        """Apply `values` to row `row_id`.

        With `expected`, the write only happens while every listed column still
        holds the given value. Returns False when no row matched.
        """
        ...

    def delete(self, table: str, row_id: int) -> bool: ...


class AuthGateway(Protocol):
    def sign_in(self, email: str, password: str) -> Session: ...

    def refresh(self, session: Session) -> Session: ...

    def sign_out(self, session: Session) -> None: ...
