from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from rdash.domain.errors import RemoteError

log = logging.getLogger(__name__)


class SupabaseClient:
    """Thin HTTP client for a Supabase project (PostgREST + GoTrue).

    Data requests are authorized with the signed-in user's access token when
    one is set, and with the project key otherwise.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = http or requests.Session()
        self.access_token: Optional[str] = None

    def set_access_token(self, token: Optional[str]) -> None:
        self.access_token = token

    def _headers(self, extra: Mapping[str, str] | None = None, bearer: Optional[str] = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def _error_message(r) -> str:
        try:
            data = r.json()
        except ValueError:
            return (r.text or "").strip() or f"HTTP {r.status_code}"
        if isinstance(data, dict):
            for key in ("message", "error_description", "msg", "error"):
                if data.get(key):
                    return str(data[key])
        return str(data)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        bearer: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(
                method,
                url,
                params=dict(params or {}),
                json=json,
                headers=self._headers(headers, bearer),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("remote_request_failed method=%s path=%s error=%s", method, path, e)
            raise RemoteError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            message = self._error_message(r)
            log.warning("remote_request_rejected method=%s path=%s status=%s message=%s", method, path, r.status_code, message)
            raise RemoteError(message, status=r.status_code)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise RemoteError(f"{method} {path} returned invalid JSON.", status=r.status_code) from e
