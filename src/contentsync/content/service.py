"""Domain services over the remote store.

Every write is a keyed upsert. Services do not swallow ``RemoteStoreError``;
the resolver and the migration engine decide how to degrade.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from contentsync.content.records import (
    ContentRecord,
    FastingHour,
    Motivator,
    Post,
    Setting,
    TimelinePost,
)
from contentsync.errors import DuplicateSlugError

if TYPE_CHECKING:
    from contentsync.store.base import RemoteStore

logger = logging.getLogger(__name__)

Clock = Callable[[], str]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def slugify(text: str) -> str:
    """Lowercase ASCII slug: drop punctuation, spaces to hyphens, no edge hyphens."""
    slug = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class PageContentService:
    """Read/write access to page_content (one record per page_key)."""

    TABLE = "page_content"

    def __init__(self, remote: RemoteStore, clock: Clock = utcnow_iso) -> None:
        self._remote = remote
        self._clock = clock

    async def get_page_content(
        self, page_key: str, published_only: bool = True
    ) -> ContentRecord | None:
        row = await self._remote.get(self.TABLE, page_key)
        if row is None:
            return None
        record = ContentRecord.from_row(row)
        if published_only and not record.is_published:
            return None
        return record

    async def get_all_page_content(self, published_only: bool = True) -> list[ContentRecord]:
        filters = {"is_published": True} if published_only else None
        rows = await self._remote.get_all(self.TABLE, filters=filters, order="page_key")
        return [ContentRecord.from_row(r) for r in rows]

    async def save_page_content(self, record: ContentRecord) -> ContentRecord:
        """Upsert by page_key. created_at is kept from the first save."""
        existing = await self._remote.get(self.TABLE, record.page_key)
        now = self._clock()
        if existing and existing.get("created_at"):
            record.created_at = existing["created_at"]
        elif not record.created_at:
            record.created_at = now
        record.updated_at = now
        await self._remote.upsert(self.TABLE, record.to_row())
        logger.info("Saved page content: %s", record.page_key)
        return record

    async def delete_page_content(self, page_key: str) -> None:
        await self._remote.delete(self.TABLE, page_key)
        logger.info("Deleted page content: %s", page_key)


class SettingsService:
    """Key/value settings in one settings table."""

    def __init__(
        self,
        remote: RemoteStore,
        table: str = "general_settings",
        clock: Clock = utcnow_iso,
    ) -> None:
        self._remote = remote
        self.table = table
        self._clock = clock

    async def get_setting(self, key: str) -> Setting | None:
        row = await self._remote.get(self.table, key)
        return Setting.from_row(row) if row else None

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.get_setting(key)
        if setting is None or setting.value is None:
            return default
        return setting.value

    async def get_all_settings(self) -> dict[str, Any]:
        rows = await self._remote.get_all(self.table, order="setting_key")
        return {r["setting_key"]: r.get("setting_value") for r in rows}

    async def save_setting(self, key: str, value: Any) -> Setting:
        existing = await self._remote.get(self.table, key)
        now = self._clock()
        setting = Setting(
            key=key,
            value=value,
            created_at=(existing or {}).get("created_at") or now,
            updated_at=now,
        )
        await self._remote.upsert(self.table, setting.to_row())
        logger.info("Saved setting %s.%s", self.table, key)
        return setting

    async def delete_setting(self, key: str) -> None:
        await self._remote.delete(self.table, key)
        logger.info("Deleted setting %s.%s", self.table, key)


class PostService:
    """Blog-style posts keyed by id, with a slug unique per table."""

    TABLE = "blog_posts"
    RECORD: type[Post] = Post
    PUBLIC_ORDER = "-published_at"
    ADMIN_ORDER = "-updated_at"

    def __init__(self, remote: RemoteStore, clock: Clock = utcnow_iso) -> None:
        self._remote = remote
        self._clock = clock

    async def get_all_posts(self) -> list[Post]:
        rows = await self._remote.get_all(
            self.TABLE, filters={"status": "published"}, order=self.PUBLIC_ORDER
        )
        return [self.RECORD.from_row(r) for r in rows]

    async def get_all_posts_for_admin(self) -> list[Post]:
        rows = await self._remote.get_all(self.TABLE, order=self.ADMIN_ORDER)
        return [self.RECORD.from_row(r) for r in rows]

    async def get_post_by_id(self, post_id: str) -> Post | None:
        row = await self._remote.get(self.TABLE, post_id)
        return self.RECORD.from_row(row) if row else None

    async def get_post_by_slug(self, slug: str, published_only: bool = True) -> Post | None:
        filters: dict[str, Any] = {"slug": slug}
        if published_only:
            filters["status"] = "published"
        rows = await self._remote.get_all(self.TABLE, filters=filters)
        return self.RECORD.from_row(rows[0]) if rows else None

    def generate_slug(self, post: Post) -> str:
        return slugify(post.title) or "untitled"

    def generate_id(self) -> str:
        return f"post_{uuid.uuid4().hex[:12]}"

    async def save_post(self, post: Post) -> Post:
        """Upsert by id.

        published_at is stamped only when the post moves into ``published``;
        a post that was already published keeps its timestamp, a draft has none.
        """
        if not post.slug:
            post.slug = self.generate_slug(post)
        if not post.id:
            post.id = self.generate_id()

        for row in await self._remote.get_all(self.TABLE, filters={"slug": post.slug}):
            if str(row.get("id")) != post.id:
                raise DuplicateSlugError(self.TABLE, post.slug, str(row.get("id")))

        existing = await self._remote.get(self.TABLE, post.id)
        now = self._clock()

        if post.status == "published":
            if existing and existing.get("status") == "published" and existing.get("published_at"):
                post.published_at = existing["published_at"]
            else:
                post.published_at = post.published_at or now
        else:
            post.published_at = None

        if existing and existing.get("created_at"):
            post.created_at = existing["created_at"]
        elif not post.created_at:
            post.created_at = now
        post.updated_at = now

        await self._remote.upsert(self.TABLE, post.to_row())
        logger.info("Saved %s post %s (%s)", self.TABLE, post.id, post.status)
        return post

    async def delete_post(self, post_id: str) -> None:
        await self._remote.delete(self.TABLE, post_id)
        logger.info("Deleted %s post %s", self.TABLE, post_id)


class BlogPostService(PostService):
    pass


class TimelinePostService(PostService):
    TABLE = "fasting_timeline_posts"
    RECORD = TimelinePost
    PUBLIC_ORDER = "hour"
    ADMIN_ORDER = "hour"

    def generate_slug(self, post: Post) -> str:
        hour = getattr(post, "hour", 0)
        return f"hour-{hour}-{slugify(post.title)}".rstrip("-")

    async def get_post_by_hour(self, hour: int) -> TimelinePost | None:
        rows = await self._remote.get_all(
            self.TABLE, filters={"hour": hour, "status": "published"}
        )
        return TimelinePost.from_row(rows[0]) if rows else None


class AppContentService:
    """Motivators and fasting-hour content for the companion app."""

    MOTIVATORS = "app_motivators"
    FASTING_HOURS = "fasting_hours"

    def __init__(self, remote: RemoteStore, clock: Clock = utcnow_iso) -> None:
        self._remote = remote
        self._clock = clock

    async def get_all_motivators(self) -> list[Motivator]:
        rows = await self._remote.get_all(
            self.MOTIVATORS, filters={"is_active": True}, order="sort_order"
        )
        return [Motivator.from_row(r) for r in rows]

    async def get_all_fasting_hours(self) -> list[FastingHour]:
        rows = await self._remote.get_all(self.FASTING_HOURS, order="hour")
        return [FastingHour.from_row(r) for r in rows]

    async def save_motivator(self, motivator: Motivator) -> None:
        row = motivator.to_row()
        row["updated_at"] = self._clock()
        await self._remote.upsert(self.MOTIVATORS, row)

    async def save_fasting_hour(self, fasting_hour: FastingHour) -> None:
        row = fasting_hour.to_row()
        row["updated_at"] = self._clock()
        await self._remote.upsert(self.FASTING_HOURS, row)
