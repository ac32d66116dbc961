"""Migration engine — one-time consolidation of legacy cache state.

State machine, persisted in the local cache:

    NOT_MIGRATED ──run──▶ MIGRATING ──end of step sequence──▶ MIGRATED
         ▲                    │
         └──── crash / stale lock (older than lock_timeout) ─┘

Steps run sequentially in a fixed order. A failing step is logged and
recorded in the report; the run continues. Once the step sequence ends, the
fixed cleanup list is removed and the completion flag is set regardless of
which steps failed.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contentsync.errors import LegacyValueError
from contentsync.migration.coerce import coerce_bool

if TYPE_CHECKING:
    from contentsync.cache import LocalCache
    from contentsync.config import MigrationConfig
    from contentsync.migration.migrators import DomainMigrator

logger = logging.getLogger(__name__)

# keys no migrator reads but older builds left behind
EXTRA_CLEANUP_KEYS = ("content_migration_completed",)


class MigrationState(enum.Enum):
    NOT_MIGRATED = "not_migrated"
    MIGRATING = "migrating"
    MIGRATED = "migrated"


@dataclass
class StepResult:
    domain: str
    ok: bool
    written: int = 0
    error: str | None = None


@dataclass
class MigrationReport:
    """Outcome of one run_complete_migration() call."""

    steps: list[StepResult] = field(default_factory=list)
    cleaned_keys: list[str] = field(default_factory=list)
    skipped: str | None = None  # "already_migrated" | "in_progress"

    @property
    def failed_domains(self) -> list[str]:
        return [s.domain for s in self.steps if not s.ok]

    @property
    def succeeded(self) -> bool:
        return self.skipped is None and not self.failed_domains

    @property
    def written(self) -> int:
        return sum(s.written for s in self.steps)


class MigrationEngine:
    """Runs every domain migrator once, then cleans up and sets the flag."""

    def __init__(
        self,
        cache: LocalCache,
        migrators: list[DomainMigrator],
        config: MigrationConfig,
    ) -> None:
        self._cache = cache
        self._migrators = list(migrators)
        self._config = config

    # ── Flag & lock ───────────────────────────────────────────

    def _flag_set(self) -> bool:
        try:
            return bool(coerce_bool(self._cache.get_item(self._config.flag_key)))
        except LegacyValueError:
            # any other non-empty marker written by older builds counts as done
            return True

    def _lock_age(self) -> float | None:
        raw = self._cache.get_item(self._config.lock_key)
        if raw is None:
            return None
        try:
            return time.time() - float(raw)
        except ValueError:
            return None

    def _lock_held(self) -> bool:
        age = self._lock_age()
        return age is not None and age < self._config.lock_timeout

    def is_migration_needed(self) -> bool:
        """Absent or false flag means the migration still has to run."""
        return not self._flag_set()

    @property
    def state(self) -> MigrationState:
        if self._flag_set():
            return MigrationState.MIGRATED
        if self._lock_held():
            return MigrationState.MIGRATING
        return MigrationState.NOT_MIGRATED

    @property
    def domains(self) -> list[str]:
        return [m.name for m in self._migrators]

    @property
    def cleanup_keys(self) -> list[str]:
        keys: list[str] = []
        for migrator in self._migrators:
            keys.extend(k for k in migrator.legacy_keys if k not in keys)
        keys.extend(k for k in EXTRA_CLEANUP_KEYS if k not in keys)
        return keys

    # ── Run ───────────────────────────────────────────────────

    async def run_complete_migration(self) -> MigrationReport:
        if self._flag_set():
            logger.info("Migration already completed")
            return MigrationReport(skipped="already_migrated")

        age = self._lock_age()
        if age is not None and age < self._config.lock_timeout:
            logger.info("Migration already in progress (started %.0fs ago), skipping", age)
            return MigrationReport(skipped="in_progress")
        if age is not None:
            logger.warning("Replacing stale migration lock (%.0fs old)", age)

        self._cache.set_item(self._config.lock_key, str(time.time()))
        logger.info(
            "Starting local cache → remote store migration (%d steps)", len(self._migrators)
        )
        try:
            report = MigrationReport()
            for migrator in self._migrators:
                report.steps.append(await self._run_step(migrator))

            report.cleaned_keys = self._cache.remove_items(self.cleanup_keys)
            self._cache.set_item(self._config.flag_key, "true")
        finally:
            self._cache.remove_item(self._config.lock_key)

        if report.failed_domains:
            logger.warning(
                "Migration finished with failed domains: %s", ", ".join(report.failed_domains)
            )
        else:
            logger.info("Migration finished: %d record(s) written", report.written)
        return report

    async def _run_step(self, migrator: DomainMigrator) -> StepResult:
        logger.info("Migrating %s...", migrator.name)
        try:
            written = await migrator.migrate()
        except Exception as e:
            logger.error("Error migrating %s: %s", migrator.name, e, exc_info=True)
            return StepResult(domain=migrator.name, ok=False, error=f"{type(e).__name__}: {e}")
        logger.info("%s migration completed (%d written)", migrator.name, written)
        return StepResult(domain=migrator.name, ok=True, written=written)

    async def force_migration(self) -> MigrationReport:
        """Clear the completion flag and run again (developer override)."""
        self._cache.remove_item(self._config.flag_key)
        return await self.run_complete_migration()
