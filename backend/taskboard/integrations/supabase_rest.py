"""Relational store client: PostgREST over HTTP.

Every call carries the platform API key plus the viewer's access token, so
row-level security on the remote side scopes rows to their owner. Callers
also pass explicit owner filters.

Filters are equality-only (`column=eq.value`), which is all the task
collections need.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from taskboard.integrations.errors import BackendError, error_from_response, safe_json

logger = logging.getLogger(__name__)


def _eq_params(filters: dict[str, Any] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[column] = f"eq.{value}"
    return params


class RestClient:
    """Async client for `/rest/v1/<table>` endpoints."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    def _url(self, table: str) -> str:
        return f"{self._base_url}/rest/v1/{table}"

    def _headers(self, access_token: str, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _send(
        self,
        method: str,
        table: str,
        *,
        access_token: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.request(
                    method,
                    self._url(table),
                    params=params,
                    json=json,
                    headers=self._headers(access_token, prefer),
                )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, table, e)
            raise BackendError(f"Could not reach the data store: {e}") from e

        if resp.status_code >= 400:
            error = error_from_response(resp)
            logger.info("%s %s rejected (HTTP %d): %s", method, table, resp.status_code, error.message)
            raise error
        return resp

    @staticmethod
    def _rows(resp: httpx.Response) -> list[dict]:
        data = safe_json(resp)
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and data:
            return [data]
        return []

    async def select(
        self,
        table: str,
        *,
        access_token: str,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        columns: str = "*",
    ) -> list[dict]:
        """Fetch all rows matching the filters. `order` is e.g. 'created_at.desc'."""
        params = {"select": columns, **_eq_params(filters)}
        if order:
            params["order"] = order
        resp = await self._send("GET", table, access_token=access_token, params=params)
        return self._rows(resp)

    async def insert(self, table: str, rows: dict | list[dict], *, access_token: str) -> list[dict]:
        """Insert one or more rows, returning them as stored."""
        payload = rows if isinstance(rows, list) else [rows]
        resp = await self._send(
            "POST", table,
            access_token=access_token,
            json=payload,
            prefer="return=representation",
        )
        return self._rows(resp)

    async def update(
        self,
        table: str,
        values: dict,
        *,
        access_token: str,
        filters: dict[str, Any],
    ) -> list[dict]:
        """Patch matching rows, returning the updated rows."""
        if not filters:
            raise ValueError("update requires at least one filter")
        resp = await self._send(
            "PATCH", table,
            access_token=access_token,
            params=_eq_params(filters),
            json=values,
            prefer="return=representation",
        )
        return self._rows(resp)

    async def delete(self, table: str, *, access_token: str, filters: dict[str, Any]) -> None:
        """Delete matching rows."""
        if not filters:
            raise ValueError("delete requires at least one filter")
        await self._send("DELETE", table, access_token=access_token, params=_eq_params(filters))

    async def upsert(
        self,
        table: str,
        rows: dict | list[dict],
        *,
        access_token: str,
        on_conflict: str,
        ignore_duplicates: bool = True,
    ) -> list[dict]:
        """Insert rows, resolving key conflicts on the server in one statement.

        With ignore_duplicates=True existing rows are left untouched and are
        not returned; with False they are merged with the new values.
        """
        payload = rows if isinstance(rows, list) else [rows]
        resolution = "ignore-duplicates" if ignore_duplicates else "merge-duplicates"
        resp = await self._send(
            "POST", table,
            access_token=access_token,
            params={"on_conflict": on_conflict},
            json=payload,
            prefer=f"resolution={resolution},return=representation",
        )
        return self._rows(resp)
