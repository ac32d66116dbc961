"""Content resolver — the three-tier read cascade used by every page.

    1. remote store (published record, non-empty field)
    2. local cache (legacy keys for that field, in priority order)
    3. the caller's hard-coded default

Nothing is cached and nothing is written: each call re-reads the tiers, so a
finished migration or an admin edit shows up on the next call. The resolver
never raises; a failing tier counts as absent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from contentsync.content.records import CONTENT_FIELDS
from contentsync.errors import LegacyValueError
from contentsync.migration.coerce import LegacyField, coerce_json, coerce_text
from contentsync.migration.migrators import (
    design_settings_from,
    page_legacy_fields,
    site_identity_from,
)

if TYPE_CHECKING:
    from contentsync.cache import LocalCache
    from contentsync.content.records import ContentRecord
    from contentsync.content.service import PageContentService, SettingsService

logger = logging.getLogger(__name__)

# settings whose value used to be spread over several legacy keys, rebuilt in
# the shape the migrators write
LEGACY_SETTING_BUILDERS: dict[str, Callable[[LocalCache], Any]] = {
    "site_identity": site_identity_from,
    "design_settings": design_settings_from,
}

_MISSING = object()


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def legacy_keys_for(page_key: str, field: str) -> tuple[str, ...]:
    """Legacy cache keys for one page field: known variants first, then the conventions."""
    known = page_legacy_fields(page_key).get(field)
    keys = list(known.keys) if known else []
    for key in (f"{page_key}_{field}", f"fastingApp_{page_key}_{field}"):
        if key not in keys:
            keys.append(key)
    return tuple(keys)


class ContentResolver:
    """Resolve content fields and settings across remote store, local cache and defaults."""

    def __init__(
        self,
        pages: PageContentService,
        settings: SettingsService,
        cache: LocalCache,
    ) -> None:
        self._pages = pages
        self._settings = settings
        self._cache = cache

    # ── Tier 1 ────────────────────────────────────────────────

    async def _remote_record(self, page_key: str) -> ContentRecord | None:
        try:
            return await self._pages.get_page_content(page_key)
        except Exception as e:
            logger.warning("Remote lookup for page %s failed, falling back: %s", page_key, e)
            return None

    async def _remote_setting(self, key: str) -> Any:
        try:
            setting = await self._settings.get_setting(key)
        except Exception as e:
            logger.warning("Remote lookup for setting %s failed, falling back: %s", key, e)
            return _MISSING
        if setting is None or _is_empty(setting.value):
            return _MISSING
        return setting.value

    # ── Tier 2 ────────────────────────────────────────────────

    def _legacy_field(self, page_key: str, field: str) -> Any:
        try:
            value = LegacyField(legacy_keys_for(page_key, field)).read(self._cache)
        except Exception as e:
            logger.warning("Local cache lookup for %s.%s failed: %s", page_key, field, e)
            return _MISSING
        return _MISSING if _is_empty(value) else value

    def _legacy_setting(self, key: str) -> Any:
        try:
            build = LEGACY_SETTING_BUILDERS.get(key)
            if build is None:
                found = LegacyField((key, f"fastingApp_{key}")).raw(self._cache)
                if found is None:
                    return _MISSING
                try:
                    value = coerce_json(found[1])
                except LegacyValueError:
                    value = coerce_text(found[1])
                return _MISSING if _is_empty(value) else value
            value = build(self._cache)
            return value if value else _MISSING
        except Exception as e:
            logger.warning("Local cache lookup for setting %s failed: %s", key, e)
            return _MISSING

    # ── Public API ────────────────────────────────────────────

    def _field_from(self, record: ContentRecord | None, page_key: str, field: str) -> Any:
        if record is not None and field in CONTENT_FIELDS:
            value = record.field_value(field)
            if not _is_empty(value):
                return value
        return self._legacy_field(page_key, field)

    async def page_field(self, page_key: str, field: str, default: Any = None) -> Any:
        record = await self._remote_record(page_key)
        value = self._field_from(record, page_key, field)
        if value is _MISSING:
            logger.debug("No stored value for %s.%s, using default", page_key, field)
            return default
        return value

    async def page(self, page_key: str, defaults: dict[str, Any]) -> dict[str, Any]:
        """Resolve every field named in ``defaults`` from a single remote fetch."""
        record = await self._remote_record(page_key)
        resolved: dict[str, Any] = {}
        for field, default in defaults.items():
            value = self._field_from(record, page_key, field)
            resolved[field] = default if value is _MISSING else value
        return resolved

    async def setting(self, key: str, default: Any = None) -> Any:
        value = await self._remote_setting(key)
        if value is _MISSING:
            value = self._legacy_setting(key)
        if value is _MISSING:
            logger.debug("No stored value for setting %s, using default", key)
            return default
        return value

    async def resolve(self, content_key: str, default: Any = None) -> Any:
        """Resolve ``"<page_key>.<field>"``; a key without a dot names a setting."""
        page_key, sep, field = content_key.partition(".")
        if not sep:
            return await self.setting(content_key, default)
        return await self.page_field(page_key, field, default)
