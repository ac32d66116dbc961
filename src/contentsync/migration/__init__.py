"""One-time migration of legacy local cache entries into the remote store.

Steps run in this fixed order:

    page_content → blog_posts → timeline_posts → app_content → design_settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from contentsync.migration.migrators import (
    AppContentMigrator,
    BlogPostMigrator,
    DesignSettingsMigrator,
    DomainMigrator,
    PageContentMigrator,
    TimelinePostMigrator,
)

if TYPE_CHECKING:
    from contentsync.cache import LocalCache
    from contentsync.content.service import (
        AppContentService,
        BlogPostService,
        PageContentService,
        SettingsService,
        TimelinePostService,
    )


def default_migrators(
    cache: LocalCache,
    pages: PageContentService,
    settings: SettingsService,
    blog: BlogPostService,
    timeline: TimelinePostService,
    app_content: AppContentService,
) -> list[DomainMigrator]:
    return [
        PageContentMigrator(cache, pages, settings),
        BlogPostMigrator(cache, blog),
        TimelinePostMigrator(cache, timeline),
        AppContentMigrator(cache, app_content),
        DesignSettingsMigrator(cache, settings),
    ]
