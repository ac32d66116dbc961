"""Tests for the PostgREST store against an in-process aiohttp server."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field

import pytest
from aiohttp import test_utils, web

from contentsync.config import RemoteConfig
from contentsync.errors import RemoteStoreError
from contentsync.store import RemoteStore
from contentsync.store.rest import RestRemoteStore

_RESERVED = {"select", "order", "limit", "on_conflict"}


def _text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class FakePostgrest:
    tables: dict[str, dict[str, dict]] = field(default_factory=dict)
    requests: list[dict] = field(default_factory=list)
    status: int = 200
    body: str | None = None

    async def handle(self, request: web.Request) -> web.StreamResponse:
        table = request.match_info["table"]
        payload = await request.json() if request.can_read_body else None
        self.requests.append(
            {
                "method": request.method,
                "table": table,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "json": payload,
            }
        )
        if self.status >= 400:
            return web.Response(status=self.status, text='{"message":"relation is locked"}')
        if self.body is not None:
            return web.Response(text=self.body, content_type="application/json")

        rows = self.tables.setdefault(table, {})
        if request.method == "POST":
            key = _text(payload[request.query["on_conflict"]])
            rows.setdefault(key, {}).update(payload)
            return web.Response(status=201)

        matches = list(rows.values())
        for column, expr in request.query.items():
            if column in _RESERVED:
                continue
            if expr == "is.null":
                matches = [r for r in matches if r.get(column) is None]
            else:
                matches = [r for r in matches if _text(r.get(column)) == expr[len("eq."):]]

        if request.method == "DELETE":
            self.tables[table] = {k: v for k, v in rows.items() if v not in matches}
            return web.Response(status=204)

        if "order" in request.query:
            column, _, direction = request.query["order"].partition(".")
            matches.sort(key=lambda r: _text(r.get(column)), reverse=direction == "desc")
        if "limit" in request.query:
            matches = matches[: int(request.query["limit"])]
        return web.json_response(matches)


@contextlib.asynccontextmanager
async def serve(fake: FakePostgrest, api_key: str = "anon-key"):
    app = web.Application()
    app.router.add_route("*", "/rest/v1/{table}", fake.handle)
    async with test_utils.TestServer(app) as server:
        config = RemoteConfig(url=str(server.make_url("/")), api_key=api_key)
        store = RestRemoteStore(config)
        try:
            yield store
        finally:
            await store.close()


class TestRestRemoteStore:
    def test_satisfies_protocol(self):
        assert isinstance(RestRemoteStore(RemoteConfig(url="http://x")), RemoteStore)

    @pytest.mark.asyncio
    async def test_upsert_then_get(self):
        fake = FakePostgrest()
        async with serve(fake) as store:
            await store.upsert("page_content", {"page_key": "home", "title": "Hi"})
            row = await store.get("page_content", "home")

        assert row == {"page_key": "home", "title": "Hi"}
        post, get = fake.requests
        assert post["method"] == "POST"
        assert post["query"] == {"on_conflict": "page_key"}
        assert "resolution=merge-duplicates" in post["headers"]["Prefer"]
        assert get["query"] == {"select": "*", "page_key": "eq.home", "limit": "1"}

    @pytest.mark.asyncio
    async def test_auth_headers(self):
        fake = FakePostgrest()
        async with serve(fake, api_key="secret") as store:
            await store.get("blog_posts", "1")

        headers = fake.requests[0]["headers"]
        assert headers["apikey"] == "secret"
        assert headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        async with serve(FakePostgrest()) as store:
            assert await store.get("blog_posts", "nope") is None

    @pytest.mark.asyncio
    async def test_get_all_filters_and_order(self):
        fake = FakePostgrest(
            tables={
                "app_motivators": {
                    "a": {"id": "a", "is_active": True, "sort_order": 2},
                    "b": {"id": "b", "is_active": True, "sort_order": 1},
                    "c": {"id": "c", "is_active": False, "sort_order": 0},
                }
            }
        )
        async with serve(fake) as store:
            rows = await store.get_all(
                "app_motivators", filters={"is_active": True}, order="sort_order"
            )
            newest = await store.get_all("app_motivators", order="-sort_order")

        assert [r["id"] for r in rows] == ["b", "a"]
        assert fake.requests[0]["query"]["is_active"] == "eq.true"
        assert fake.requests[1]["query"]["order"] == "sort_order.desc"
        assert [r["id"] for r in newest] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_delete(self):
        fake = FakePostgrest(tables={"blog_posts": {"1": {"id": "1"}, "2": {"id": "2"}}})
        async with serve(fake) as store:
            await store.delete("blog_posts", "1")

        assert list(fake.tables["blog_posts"]) == ["2"]
        assert fake.requests[0]["query"] == {"id": "eq.1"}

    @pytest.mark.asyncio
    async def test_upsert_requires_key_column(self):
        async with serve(FakePostgrest()) as store:
            with pytest.raises(ValueError):
                await store.upsert("blog_posts", {"title": "no id"})

    @pytest.mark.asyncio
    async def test_unknown_table(self):
        async with serve(FakePostgrest()) as store:
            with pytest.raises(ValueError):
                await store.get("users", "1")

    @pytest.mark.asyncio
    async def test_http_error(self):
        async with serve(FakePostgrest(status=503)) as store:
            with pytest.raises(RemoteStoreError) as exc_info:
                await store.get("page_content", "home")

        assert exc_info.value.status == 503
        assert exc_info.value.table == "page_content"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with serve(FakePostgrest(body="<html>")) as store:
            with pytest.raises(RemoteStoreError, match="invalid JSON"):
                await store.get_all("blog_posts")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        store = RestRemoteStore(RemoteConfig(url="http://127.0.0.1:1", timeout=2))
        try:
            with pytest.raises(RemoteStoreError):
                await store.get("page_content", "home")
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_timeout(self):
        release = asyncio.Event()

        async def slow(request):
            await release.wait()
            return web.json_response([])

        app = web.Application()
        app.router.add_get("/rest/v1/{table}", slow)
        async with test_utils.TestServer(app) as server:
            store = RestRemoteStore(RemoteConfig(url=str(server.make_url("/")), timeout=1))
            try:
                with pytest.raises(RemoteStoreError, match="timeout"):
                    await store.get("page_content", "home")
            finally:
                release.set()
                await store.close()

    @pytest.mark.asyncio
    async def test_unconfigured_url(self):
        store = RestRemoteStore(RemoteConfig())
        with pytest.raises(RemoteStoreError, match="not configured"):
            await store.get("page_content", "home")
