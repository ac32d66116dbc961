"""Domain migrators — one per content domain.

Each migrator reads the legacy cache keys of its domain (every historical
naming variant), coerces them into record shape and upserts them through a
content service. Writes are keyed, so running a migrator twice leaves the
remote store as running it once.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from contentsync.content.records import (
    ContentRecord,
    FastingHour,
    Motivator,
    Post,
    TimelinePost,
)
from contentsync.errors import DuplicateSlugError, LegacyValueError
from contentsync.migration.coerce import LegacyField, coerce_json

if TYPE_CHECKING:
    from contentsync.cache import LocalCache
    from contentsync.content.service import (
        AppContentService,
        PageContentService,
        PostService,
        SettingsService,
    )

logger = logging.getLogger(__name__)


@runtime_checkable
class DomainMigrator(Protocol):
    """Protocol that every domain migrator implements."""

    @property
    def name(self) -> str: ...

    @property
    def legacy_keys(self) -> tuple[str, ...]:
        """Every legacy cache key this migrator may read."""
        ...

    async def migrate(self) -> int:
        """Copy legacy entries to the remote store. Returns records written."""
        ...


def _keys_of(fields: dict[str, LegacyField]) -> tuple[str, ...]:
    seen: list[str] = []
    for f in fields.values():
        for key in f.keys:
            if key not in seen:
                seen.append(key)
    return tuple(seen)


def read_legacy_list(cache: LocalCache, keys: tuple[str, ...]) -> list[dict]:
    """Concatenate the list stored under each key, in key order.

    A key whose value is not a list is skipped; so is any entry that is not
    an object (entries may themselves be JSON strings).
    """
    entries: list[dict] = []
    for key in keys:
        raw = cache.get_raw(key)
        if raw is None or raw == "":
            continue
        try:
            items = coerce_json(raw, list)
        except LegacyValueError as e:
            logger.warning("Skipping unparseable legacy list %s: %s", key, e)
            continue
        for index, item in enumerate(items):
            try:
                entries.append(coerce_json(item, dict))
            except LegacyValueError as e:
                logger.warning("Skipping entry %d of %s: %s", index, key, e)
    return entries


# ── Page content ──────────────────────────────────────────────


@dataclass(frozen=True)
class PageSpec:
    """Legacy fields for one page_key; the record is written only if a trigger exists."""

    page_key: str
    fields: dict[str, LegacyField]
    triggers: tuple[str, ...]


_HOME_SUBTITLE_KEYS = ("fastingApp_homepageHeroSubtitle", "homepage_subtitle")

PAGE_SPECS: tuple[PageSpec, ...] = (
    PageSpec(
        page_key="home",
        fields={
            "title": LegacyField(
                ("fastingApp_homepageHeroTitle", "homepage_title"),
                "My Protocol for Fat Loss",
            ),
            "subtitle": LegacyField(
                _HOME_SUBTITLE_KEYS,
                "Transform your body with our scientifically-backed fasting approach",
            ),
            "content": LegacyField(
                ("fastingApp_homepageHeroDescription", "homepage_description"),
                "Discover the power of intermittent fasting with our comprehensive "
                "timeline and personalized guidance.",
            ),
            "button_text": LegacyField(
                ("fastingApp_homepageCtaText", "homepage_button_text"), "Launch App"
            ),
            "button_url": LegacyField(
                ("fastingApp_homepageCtaUrl", "homepage_button_url"), "https://go.fastnow.app"
            ),
            "meta_title": LegacyField((), "FastNow - My Protocol for Fat Loss"),
            # the hero subtitle doubled as the meta description
            "meta_description": LegacyField(
                _HOME_SUBTITLE_KEYS,
                "Transform your body with scientifically-backed intermittent fasting "
                "protocols and personalized guidance.",
            ),
        },
        triggers=("title", "subtitle", "content"),
    ),
    PageSpec(
        page_key="faq",
        fields={
            "title": LegacyField(("faq_title",), "Frequently Asked Questions"),
            "content": LegacyField(
                ("faq_description",),
                "Find answers to common questions about our fasting protocol.",
            ),
            "meta_title": LegacyField((), "FAQ - FastNow"),
            "meta_description": LegacyField(
                (),
                "Frequently asked questions about FastNow fasting protocols and app features.",
            ),
        },
        triggers=("title", "content"),
    ),
)

SITE_IDENTITY_FIELDS: dict[str, LegacyField] = {
    "siteName": LegacyField(("site_name", "fastingApp_siteName"), "FastNow"),
    "tagline": LegacyField(
        ("site_tagline", "fastingApp_siteTagline"),
        "Transform Your Body with Intermittent Fasting",
    ),
    "description": LegacyField(
        ("site_description", "fastingApp_siteDescription"),
        "Scientifically-backed fasting protocols for sustainable weight loss",
    ),
    "logoUrl": LegacyField(("site_logo_url", "fastingApp_logoUrl"), ""),
    "faviconUrl": LegacyField(("site_favicon_url", "fastingApp_faviconUrl"), ""),
}
_SITE_IDENTITY_TRIGGERS = ("siteName", "tagline", "logoUrl")


def site_identity_from(cache: LocalCache) -> dict[str, Any] | None:
    """The site_identity value held by the legacy keys, or None if they hold none."""
    if not any(SITE_IDENTITY_FIELDS[t].exists(cache) for t in _SITE_IDENTITY_TRIGGERS):
        return None
    return {name: f.read(cache) for name, f in SITE_IDENTITY_FIELDS.items()}


def page_legacy_fields(page_key: str) -> dict[str, LegacyField]:
    for spec in PAGE_SPECS:
        if spec.page_key == page_key:
            return spec.fields
    return {}


class PageContentMigrator:
    """Homepage hero, FAQ page and site identity."""

    def __init__(
        self, cache: LocalCache, pages: PageContentService, settings: SettingsService
    ) -> None:
        self._cache = cache
        self._pages = pages
        self._settings = settings

    @property
    def name(self) -> str:
        return "page_content"

    @property
    def legacy_keys(self) -> tuple[str, ...]:
        keys: list[str] = []
        for spec in PAGE_SPECS:
            keys.extend(k for k in _keys_of(spec.fields) if k not in keys)
        keys.extend(k for k in _keys_of(SITE_IDENTITY_FIELDS) if k not in keys)
        return tuple(keys)

    async def migrate(self) -> int:
        written = 0
        for spec in PAGE_SPECS:
            if not any(spec.fields[t].exists(self._cache) for t in spec.triggers):
                continue
            values = {name: f.read(self._cache) for name, f in spec.fields.items()}
            record = ContentRecord(page_key=spec.page_key, is_published=True, **values)
            await self._pages.save_page_content(record)
            written += 1

        identity = site_identity_from(self._cache)
        if identity is not None:
            await self._settings.save_setting("site_identity", identity)
            written += 1

        logger.info("Page content: %d record(s) migrated", written)
        return written


# ── Posts ─────────────────────────────────────────────────────


class PostMigrator:
    """Legacy post lists → one upsert per post, keyed by id."""

    NAME = "blog_posts"
    KEYS: tuple[str, ...] = ("blog_posts", "fastingApp_blogPosts")
    RECORD: type[Post] = Post

    def __init__(self, cache: LocalCache, posts: PostService) -> None:
        self._cache = cache
        self._posts = posts

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def legacy_keys(self) -> tuple[str, ...]:
        return self.KEYS

    def _stable_id(self, slug: str) -> str:
        """Id for a legacy post that never had one; the same slug always maps to the same id."""
        return "post_" + uuid.uuid5(uuid.NAMESPACE_URL, f"{self.NAME}/{slug}").hex[:12]

    def collect(self) -> list[Post]:
        """Parse and de-duplicate legacy posts. The first occurrence of an id wins."""
        posts: dict[str, Post] = {}
        for entry in read_legacy_list(self._cache, self.KEYS):
            try:
                post = self.RECORD.from_legacy(entry)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed legacy %s entry: %s", self.NAME, e)
                continue
            if not post.title and not post.slug:
                logger.warning("Skipping legacy %s entry without title or slug", self.NAME)
                continue
            if not post.slug:
                post.slug = self._posts.generate_slug(post)
            if not post.id:
                post.id = self._stable_id(post.slug)
            posts.setdefault(post.id, post)
        return list(posts.values())

    async def migrate(self) -> int:
        posts = self.collect()
        logger.info("Found %d legacy %s to migrate", len(posts), self.NAME)
        written = 0
        for post in posts:
            try:
                await self._posts.save_post(post)
            except DuplicateSlugError as e:
                logger.warning("Skipping %s: %s", post.id, e)
                continue
            written += 1
        return written


class BlogPostMigrator(PostMigrator):
    pass


class TimelinePostMigrator(PostMigrator):
    NAME = "timeline_posts"
    KEYS = ("timeline_posts", "fastingApp_fastingTimelinePosts")
    RECORD = TimelinePost


# ── App content ───────────────────────────────────────────────


class AppContentMigrator:
    """Motivators and fasting hours, from their own keys and the combined API blob."""

    MOTIVATOR_KEYS = ("motivators", "fastingApp_motivators")
    FASTING_HOUR_KEYS = ("fasting_hours",)
    BLOB_KEYS = ("app_content_data", "fastingApp_appContentApi")

    def __init__(self, cache: LocalCache, app_content: AppContentService) -> None:
        self._cache = cache
        self._app_content = app_content

    @property
    def name(self) -> str:
        return "app_content"

    @property
    def legacy_keys(self) -> tuple[str, ...]:
        return self.MOTIVATOR_KEYS + self.FASTING_HOUR_KEYS + self.BLOB_KEYS

    def _blob_lists(self) -> tuple[list[Any], list[Any]]:
        motivators: list[Any] = []
        hours: list[Any] = []
        for key in self.BLOB_KEYS:
            raw = self._cache.get_raw(key)
            if raw is None or raw == "":
                continue
            try:
                blob = coerce_json(raw, dict)
            except LegacyValueError as e:
                logger.warning("Skipping unparseable legacy blob %s: %s", key, e)
                continue
            motivators.extend(blob.get("motivators") or [])
            hours.extend(blob.get("fastingHours") or [])
        return motivators, hours

    @staticmethod
    def _objects(items: list[Any], label: str) -> list[dict]:
        result = []
        for item in items:
            try:
                result.append(coerce_json(item, dict))
            except LegacyValueError as e:
                logger.warning("Skipping legacy %s entry: %s", label, e)
        return result

    def collect(self) -> tuple[list[Motivator], list[FastingHour]]:
        blob_motivators, blob_hours = self._blob_lists()

        motivators: dict[str, Motivator] = {}
        entries = read_legacy_list(self._cache, self.MOTIVATOR_KEYS)
        for entry in entries + self._objects(blob_motivators, "motivator"):
            try:
                motivator = Motivator.from_legacy(entry)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed legacy motivator: %s", e)
                continue
            motivators.setdefault(motivator.id, motivator)

        hours: dict[int, FastingHour] = {}
        entries = read_legacy_list(self._cache, self.FASTING_HOUR_KEYS)
        for entry in entries + self._objects(blob_hours, "fasting hour"):
            try:
                hour = FastingHour.from_legacy(entry)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed legacy fasting hour: %s", e)
                continue
            hours.setdefault(hour.hour, hour)

        return list(motivators.values()), sorted(hours.values(), key=lambda h: h.hour)

    async def migrate(self) -> int:
        motivators, hours = self.collect()
        logger.info(
            "Found %d motivator(s) and %d fasting hour(s) to migrate", len(motivators), len(hours)
        )
        for motivator in motivators:
            await self._app_content.save_motivator(motivator)
        for hour in hours:
            await self._app_content.save_fasting_hour(hour)
        return len(motivators) + len(hours)


# ── Design settings ───────────────────────────────────────────

DESIGN_FIELDS: dict[str, LegacyField] = {
    "customColors": LegacyField(("fastingApp_customColors",), kind="json"),
    "customElements": LegacyField(("fastingApp_customElements",), kind="json"),
    "showDefaultDesign": LegacyField(("fastingApp_showDefaultDesign",), kind="bool"),
    "googlePlayLink": LegacyField(("fastingApp_googlePlayLink",), "https://play.google.com"),
    "appleStoreLink": LegacyField(
        ("fastingApp_appleStoreLink", "fastingApp_appStoreLink"), "https://apps.apple.com"
    ),
}


def design_settings_from(cache: LocalCache) -> dict[str, Any]:
    """The design_settings value held by the legacy keys; empty if they hold none."""
    design: dict[str, Any] = {}
    for name in ("customColors", "customElements", "showDefaultDesign"):
        value = DESIGN_FIELDS[name].read(cache)
        if value is not None:
            design[name] = value

    play, apple = DESIGN_FIELDS["googlePlayLink"], DESIGN_FIELDS["appleStoreLink"]
    if play.exists(cache) or apple.exists(cache):
        design["appStoreSettings"] = {
            "googlePlayLink": play.read(cache),
            "appleStoreLink": apple.read(cache),
        }
    return design


class DesignSettingsMigrator:
    """Colours, custom elements and app-store links → one design_settings value."""

    def __init__(self, cache: LocalCache, settings: SettingsService) -> None:
        self._cache = cache
        self._settings = settings

    @property
    def name(self) -> str:
        return "design_settings"

    @property
    def legacy_keys(self) -> tuple[str, ...]:
        return _keys_of(DESIGN_FIELDS)

    def collect(self) -> dict[str, Any]:
        return design_settings_from(self._cache)

    async def migrate(self) -> int:
        design = self.collect()
        if not design:
            return 0
        await self._settings.save_setting("design_settings", design)
        return 1
