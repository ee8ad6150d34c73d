"""Persistence collaborators for project and documentation records.

The web app only talks to the :class:`Store` protocol:

* ``list(kind)`` -- every row of a table;
* ``list_by_field(kind, field, value)`` -- rows where ``field == value``;
* ``insert(kind, record)`` -- insert and return the stored rows;
* ``update_by_field(kind, field, value, patch)`` -- patch matching rows and
  return them.

Two implementations are provided:

* :class:`SupabaseStore` -- Supabase's PostgREST endpoint
  (``<url>/rest/v1/<table>``) over :class:`httpx.AsyncClient`.
* :class:`MemoryStore` -- a dict of lists, used by tests and when no
  store URL is configured.

Record kinds are the table names ``users``, ``projects`` and
``apidocumentation``.
"""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, Optional, Protocol

import httpx

from specshift.exceptions import StoreError

logger = logging.getLogger(__name__)

USERS = "users"
PROJECTS = "projects"
DOCUMENTATION = "apidocumentation"

Row = dict[str, Any]


class Store(Protocol):
    """Minimal table-oriented persistence interface."""

    async def list(self, kind: str) -> list[Row]: ...

    async def list_by_field(self, kind: str, field: str, value: Any) -> list[Row]: ...

    async def insert(self, kind: str, record: Row) -> list[Row]: ...

    async def update_by_field(self, kind: str, field: str, value: Any, patch: Row) -> list[Row]: ...

    async def aclose(self) -> None: ...


class SupabaseStore:
    """:class:`Store` backed by a Supabase project's PostgREST API.

    Args:
        url: Project URL, e.g. ``https://xyz.supabase.co``.
        key: The project API key; sent as ``apikey`` and as a bearer token.
        timeout: Request timeout in seconds.
        client: Optional pre-built client (tests pass one with
            :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._base = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def list(self, kind: str) -> list[Row]:
        return await self._request("GET", kind, params={"select": "*"})

    async def list_by_field(self, kind: str, field: str, value: Any) -> list[Row]:
        return await self._request("GET", kind, params={"select": "*", field: f"eq.{value}"})

    async def insert(self, kind: str, record: Row) -> list[Row]:
        return await self._request(
            "POST",
            kind,
            json_body=[record],
            headers={"Prefer": "return=representation"},
        )

    async def update_by_field(self, kind: str, field: str, value: Any, patch: Row) -> list[Row]:
        return await self._request(
            "PATCH",
            kind,
            params={field: f"eq.{value}"},
            json_body=patch,
            headers={"Prefer": "return=representation"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> list[Row]:
        url = f"{self._base}/{table}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.RequestError as exc:
            logger.error("Store request %s %s failed: %s", method, table, exc)
            raise StoreError(f"Store request failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.error("Store error %s on %s %s: %s", response.status_code, method, table, message)
            raise StoreError(message)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]


def _error_message(response: httpx.Response) -> str:
    """Pull PostgREST's ``message`` out of an error response when present."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


class MemoryStore:
    """In-process :class:`Store`; rows get an auto-incrementing ``id``.

    Args:
        seed: Optional initial rows per kind.
        key_fields: Extra per-kind key columns filled from the same counter
            as ``id`` when absent (``apidocumentation`` rows get ``api_id``).
    """

    def __init__(
        self,
        seed: Optional[dict[str, list[Row]]] = None,
        key_fields: Optional[dict[str, str]] = None,
    ) -> None:
        self._tables: dict[str, list[Row]] = {k: [dict(r) for r in v] for k, v in (seed or {}).items()}
        self._key_fields = key_fields if key_fields is not None else {DOCUMENTATION: "api_id"}
        start = 1 + max((r.get("id", 0) for rows in self._tables.values() for r in rows), default=0)
        self._ids = itertools.count(start)

    async def list(self, kind: str) -> list[Row]:
        return copy.deepcopy(self._tables.get(kind, []))

    async def list_by_field(self, kind: str, field: str, value: Any) -> list[Row]:
        return [copy.deepcopy(r) for r in self._tables.get(kind, []) if _matches(r.get(field), value)]

    async def insert(self, kind: str, record: Row) -> list[Row]:
        row = copy.deepcopy(record)
        row_id = next(self._ids)
        row.setdefault("id", row_id)
        key_field = self._key_fields.get(kind)
        if key_field:
            row.setdefault(key_field, row_id)
        self._tables.setdefault(kind, []).append(row)
        return [copy.deepcopy(row)]

    async def update_by_field(self, kind: str, field: str, value: Any, patch: Row) -> list[Row]:
        updated: list[Row] = []
        for row in self._tables.get(kind, []):
            if _matches(row.get(field), value):
                row.update(copy.deepcopy(patch))
                updated.append(copy.deepcopy(row))
        return updated

    async def aclose(self) -> None:
        return None


def _matches(stored: Any, value: Any) -> bool:
    # Path parameters arrive as strings; PostgREST compares textually too.
    return stored == value or str(stored) == str(value)
