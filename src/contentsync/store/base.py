"""Remote store protocol and table registry."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# table name → unique key column used for get / upsert / delete
TABLES: dict[str, str] = {
    "page_content": "page_key",
    "general_settings": "setting_key",
    "site_settings": "setting_key",
    "homepage_settings": "setting_key",
    "blog_posts": "id",
    "fasting_timeline_posts": "id",
    "app_motivators": "id",
    "fasting_hours": "hour",
}


def key_column(table: str) -> str:
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table '{table}'. Known: {sorted(TABLES)}") from None


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol that every remote store backend must implement.

    Rows are plain dicts. Writes are keyed upserts with last-write-wins
    semantics; there are no transactions across keys. Every method raises
    ``RemoteStoreError`` on failure.
    """

    async def get(self, table: str, key: Any) -> dict | None:
        """Fetch the row whose key column equals ``key``, or None."""
        ...

    async def get_all(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
    ) -> list[dict]:
        """Fetch rows matching all equality ``filters``, optionally ordered by a column.

        ``order`` is a column name, prefixed with ``-`` for descending.
        """
        ...

    async def upsert(self, table: str, row: dict) -> None:
        """Insert ``row`` or merge it into the row with the same key."""
        ...

    async def delete(self, table: str, key: Any) -> None:
        """Delete the row with the given key. Deleting a missing row is not an error."""
        ...
