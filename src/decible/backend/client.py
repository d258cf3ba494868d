"""
REST client for the backend-as-a-service.

The backend exposes two HTTP surfaces used here:

    Tables (PostgREST):
        GET  {url}/rest/v1/{table}?select=*&col=eq.value&order=col.desc&limit=N
        POST {url}/rest/v1/{table}        Prefer: return=representation
        PATCH {url}/rest/v1/{table}?col=eq.value   Prefer: return=representation

    Object storage:
        POST {url}/storage/v1/object/{bucket}/{path}
        public URL: {url}/storage/v1/object/public/{bucket}/{path}

Requests authenticate with the service key (``apikey`` header plus bearer
token), so this client must only run server-side.

Failures raise BackendError carrying the HTTP status (0 for transport
errors); the service layer turns those into StorageError or
PersistenceError.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from decible.core.config import BackendConfig, Defaults
from decible.core.logging import debug, get_logger
from decible.services.errors import ConfigurationError

_LOG = get_logger("decible.backend")

_ERROR_BODY_PREVIEW = 300


class BackendError(Exception):
    """A backend call failed. ``status`` is 0 when no response was received."""

    def __init__(self, message: str, status: int = 0, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body[:_ERROR_BODY_PREVIEW]


class BackendClient:
    """
    Synchronous backend client.

    Args:
        url: Project root URL (no trailing slash needed).
        service_key: Service-role key.
        timeout_s: Total timeout per request.
        transport: Optional httpx transport (tests pass MockTransport).
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout_s: float = Defaults.BACKEND_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.url,
            timeout=timeout_s,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: BackendConfig, transport: Optional[httpx.BaseTransport] = None) -> "BackendClient":
        """
        Build a client from configuration.

        Raises:
            ConfigurationError: URL or service key missing.
        """
        missing = [name for name, value in (("backend.url", config.url), ("backend.service_key", config.service_key))
                   if not value]
        if missing:
            raise ConfigurationError(details={"missing": missing})
        return cls(config.url, config.service_key, timeout_s=config.timeout_s, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {type(exc).__name__}") from exc
        debug(_LOG, "backend_call", method=method, path=path, status=response.status_code)
        if response.status_code >= 300:
            raise BackendError(
                f"{method} {path} returned {response.status_code}",
                status=response.status_code,
                body=response.text,
            )
        return response

    # ── tables ──────────────────────────────────────────────────────────────

    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Select rows where every ``filters`` column equals its value."""
        params: Dict[str, str] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)

        response = self._send("GET", f"/rest/v1/{table}", params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise BackendError(f"GET /rest/v1/{table} returned invalid JSON", status=response.status_code) from exc
        if not isinstance(rows, list):
            raise BackendError(f"GET /rest/v1/{table} returned a non-list body", status=response.status_code)
        return rows

    def select_page(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: int = 20,
        offset: int = 0,
        columns: str = "*",
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Select one page of rows plus the total number of matching rows.

        The total comes from the ``Content-Range`` header (``0-19/57``);
        when the backend omits it, the page length is used.
        """
        params: Dict[str, str] = {"select": columns, "limit": str(limit), "offset": str(offset)}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"

        response = self._send("GET", f"/rest/v1/{table}", params=params, headers={"Prefer": "count=exact"})
        try:
            rows = response.json()
        except ValueError as exc:
            raise BackendError(f"GET /rest/v1/{table} returned invalid JSON", status=response.status_code) from exc
        if not isinstance(rows, list):
            raise BackendError(f"GET /rest/v1/{table} returned a non-list body", status=response.status_code)
        return rows, _content_range_total(response.headers.get("content-range"), len(rows))

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Update rows matching ``filters``; returns the updated rows."""
        params = {column: f"eq.{value}" for column, value in filters.items()}
        response = self._send(
            "PATCH",
            f"/rest/v1/{table}",
            params=params,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        try:
            body = response.json()
        except ValueError:
            return []
        return body if isinstance(body, list) else [body]

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        response = self._send(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        try:
            body = response.json()
        except ValueError:
            return dict(row)
        if isinstance(body, list) and body:
            return body[0]
        if isinstance(body, dict):
            return body
        return dict(row)

    # ── storage ─────────────────────────────────────────────────────────────

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Upload ``data`` to ``bucket/path``; returns the stored object path."""
        self._send(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=data,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
        )
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"


def _content_range_total(header: Optional[str], fallback: int) -> int:
    """Parse the total out of ``0-19/57`` or ``*/0``; ``*`` totals fall back."""
    if not header or "/" not in header:
        return fallback
    total = header.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else fallback
