"""Application wiring — builds stores, services, the resolver and the migration engine.

Usage:
    app = ContentApp.from_config(load_config())
    await app.initialize()          # runs the one-time migration if needed
    title = await app.resolver.resolve("home.title", "My Protocol for Fat Loss")
    await app.close()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from contentsync.cache import LocalCache
from contentsync.content.service import (
    AppContentService,
    BlogPostService,
    PageContentService,
    SettingsService,
    TimelinePostService,
    utcnow_iso,
)
from contentsync.migration import default_migrators
from contentsync.migration.engine import MigrationEngine, MigrationReport
from contentsync.resolver import ContentResolver
from contentsync.store.rest import RestRemoteStore

if TYPE_CHECKING:
    from contentsync.config import ContentSyncConfig
    from contentsync.content.service import Clock
    from contentsync.store.base import RemoteStore

logger = logging.getLogger(__name__)


class ContentApp:
    """Holds one remote store, one local cache and everything built on top of them."""

    def __init__(
        self,
        config: ContentSyncConfig,
        remote: RemoteStore,
        cache: LocalCache,
        clock: Clock = utcnow_iso,
    ) -> None:
        self.config = config
        self.remote = remote
        self.cache = cache
        self._initialized = False

        self.pages = PageContentService(remote, clock)
        self.settings = SettingsService(remote, "general_settings", clock)
        self.blog = BlogPostService(remote, clock)
        self.timeline = TimelinePostService(remote, clock)
        self.app_content = AppContentService(remote, clock)

        self.resolver = ContentResolver(self.pages, self.settings, cache)
        self.migration = MigrationEngine(
            cache,
            default_migrators(
                cache, self.pages, self.settings, self.blog, self.timeline, self.app_content
            ),
            config.migration,
        )

    @classmethod
    def from_config(cls, config: ContentSyncConfig) -> ContentApp:
        return cls(config, RestRemoteStore(config.remote), LocalCache(config.cache.path))

    async def initialize(self) -> MigrationReport | None:
        """Run the one-time migration if it is still needed. Never raises."""
        if self._initialized:
            return None
        report = None
        try:
            if self.migration.is_migration_needed():
                logger.info("Running local cache → remote store migration...")
                report = await self.migration.run_complete_migration()
            self._initialized = True
            logger.info("Content initialization completed")
        except Exception as e:
            logger.error("Error during content initialization: %s", e, exc_info=True)
        return report

    async def close(self) -> None:
        close = getattr(self.remote, "close", None)
        if close and callable(close):
            await close()
