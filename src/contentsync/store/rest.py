"""PostgREST-style remote store over aiohttp.

Speaks the REST dialect exposed by Supabase/PostgREST:

    GET    /rest/v1/<table>?select=*&<col>=eq.<value>&order=<col>.asc
    POST   /rest/v1/<table>?on_conflict=<key>   (Prefer: resolution=merge-duplicates)
    DELETE /rest/v1/<table>?<key>=eq.<value>

Request timeouts are the only timeouts in the system; callers impose none.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from contentsync.errors import RemoteStoreError
from contentsync.store.base import key_column

if TYPE_CHECKING:
    from contentsync.config import RemoteConfig

logger = logging.getLogger(__name__)


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _eq(value: Any) -> str:
    if value is None:
        return "is.null"
    return f"eq.{_encode_value(value)}"


def _order_param(order: str) -> str:
    if order.startswith("-"):
        return f"{order[1:]}.desc"
    return f"{order}.asc"


class RestRemoteStore:
    """Remote store backed by a PostgREST endpoint."""

    def __init__(self, config: RemoteConfig, session: aiohttp.ClientSession | None = None) -> None:
        self._config = config
        self._base = config.url.rstrip("/") + "/" + config.schema_path.strip("/")
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return "rest"

    # ── Session lifecycle ─────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
                headers=self._headers(),
            )
            self._owns_session = True
        return self._session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def close(self) -> None:
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()

    # ── HTTP plumbing ─────────────────────────────────────────

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str],
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if not self._config.url:
            raise RemoteStoreError(
                table, "remote store URL is not configured (CONTENTSYNC_REMOTE_URL)"
            )
        url = f"{self._base}/{table}"
        headers = {} if self._owns_session else self._headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with self._get_session().request(
                method, url, params=params, json=payload, headers=headers
            ) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    raise RemoteStoreError(table, text[:200] or resp.reason or "error", resp.status)
                if not text:
                    return None
                return json.loads(text)
        except RemoteStoreError:
            raise
        except json.JSONDecodeError as e:
            raise RemoteStoreError(table, f"invalid JSON response: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteStoreError(table, f"timeout after {self._config.timeout}s") from e
        except aiohttp.ClientError as e:
            raise RemoteStoreError(table, f"{type(e).__name__}: {e}") from e

    # ── RemoteStore protocol ──────────────────────────────────

    async def get(self, table: str, key: Any) -> dict | None:
        params = {"select": "*", key_column(table): _eq(key), "limit": "1"}
        rows = await self._request("GET", table, params)
        if not rows:
            return None
        return rows[0]

    async def get_all(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
    ) -> list[dict]:
        key_column(table)
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = _eq(value)
        if order:
            params["order"] = _order_param(order)
        rows = await self._request("GET", table, params)
        return rows or []

    async def upsert(self, table: str, row: dict) -> None:
        column = key_column(table)
        if row.get(column) is None:
            raise ValueError(f"Row for {table} is missing key column '{column}'")
        await self._request(
            "POST",
            table,
            {"on_conflict": column},
            payload=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )
        logger.debug("Upserted %s[%s=%s]", table, column, row[column])

    async def delete(self, table: str, key: Any) -> None:
        await self._request("DELETE", table, {key_column(table): _eq(key)})
        logger.debug("Deleted %s[%s]", table, key)
