"""Shared fixtures: an in-memory remote store, a temp local cache and a fixed clock."""

from __future__ import annotations

import copy
from collections import defaultdict
from pathlib import Path

import pytest

from contentsync.app import ContentApp
from contentsync.cache import LocalCache
from contentsync.config import CacheConfig, ContentSyncConfig
from contentsync.errors import RemoteStoreError
from contentsync.store.base import key_column

FIXED_NOW = "2026-01-01T00:00:00+00:00"


class FakeRemoteStore:
    """In-memory RemoteStore with merge-on-upsert and switchable failures."""

    def __init__(self) -> None:
        self.tables: dict[str, dict] = defaultdict(dict)
        self.fail_tables: set[str] = set()
        self.fail_all = False
        self.upserts: list[tuple[str, dict]] = []

    def _check(self, table: str) -> None:
        key_column(table)
        if self.fail_all or table in self.fail_tables:
            raise RemoteStoreError(table, "service unavailable", 503)

    async def get(self, table, key):
        self._check(table)
        row = self.tables[table].get(key)
        return copy.deepcopy(row) if row is not None else None

    async def get_all(self, table, filters=None, order=None):
        self._check(table)
        rows = [
            copy.deepcopy(r)
            for r in self.tables[table].values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order:
            column = order.lstrip("-")
            rows.sort(key=lambda r: str(r.get(column) or ""), reverse=order.startswith("-"))
        return rows

    async def upsert(self, table, row):
        self._check(table)
        key = row[key_column(table)]
        self.tables[table].setdefault(key, {}).update(copy.deepcopy(row))
        self.upserts.append((table, copy.deepcopy(row)))

    async def delete(self, table, key):
        self._check(table)
        self.tables[table].pop(key, None)

    def snapshot(self) -> dict:
        return copy.deepcopy({t: rows for t, rows in self.tables.items() if rows})


def fixed_clock() -> str:
    return FIXED_NOW


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    return LocalCache(tmp_path / "cache" / "local_cache.json")


@pytest.fixture
def config(tmp_path: Path) -> ContentSyncConfig:
    return ContentSyncConfig(cache=CacheConfig(path=tmp_path / "cache" / "local_cache.json"))


@pytest.fixture
def app(config: ContentSyncConfig, remote: FakeRemoteStore, cache: LocalCache) -> ContentApp:
    return ContentApp(config, remote, cache, clock=fixed_clock)


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def now() -> str:
    return FIXED_NOW
