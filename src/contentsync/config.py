"""Configuration loading from environment variables and contentsync.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".contentsync"
_CONFIG_FILENAME = "contentsync.toml"


@dataclass
class RemoteConfig:
    """Remote store (PostgREST-style API) configuration."""

    url: str = ""
    api_key: str = ""
    schema_path: str = "/rest/v1"
    timeout: int = 10


@dataclass
class CacheConfig:
    """Local cache configuration."""

    path: Path = _DEFAULT_HOME / "local_cache.json"


@dataclass
class MigrationConfig:
    """One-time migration flag and lock configuration."""

    flag_key: str = "full_migration_completed_v1"
    lock_key: str = "full_migration_in_progress_v1"
    lock_timeout: int = 300


@dataclass
class ContentSyncConfig:
    """Top-level contentsync configuration."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    migration: MigrationConfig = field(default_factory=MigrationConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> ContentSyncConfig:
    """Load configuration from environment variables and optional contentsync.toml.

    Priority: environment variables > contentsync.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    remote_data = file_data.get("remote", {})
    cache_data = file_data.get("cache", {})
    migration_data = file_data.get("migration", {})

    defaults = MigrationConfig()
    config = ContentSyncConfig(
        remote=RemoteConfig(
            url=os.getenv("CONTENTSYNC_REMOTE_URL", remote_data.get("url", "")),
            api_key=os.getenv("CONTENTSYNC_API_KEY", remote_data.get("api_key", "")),
            schema_path=remote_data.get("schema_path", "/rest/v1"),
            timeout=int(os.getenv("CONTENTSYNC_TIMEOUT", remote_data.get("timeout", 10))),
        ),
        cache=CacheConfig(
            path=Path(
                os.getenv(
                    "CONTENTSYNC_CACHE_PATH",
                    cache_data.get("path", str(_DEFAULT_HOME / "local_cache.json")),
                )
            ).expanduser(),
        ),
        migration=MigrationConfig(
            flag_key=migration_data.get("flag_key", defaults.flag_key),
            lock_key=migration_data.get("lock_key", defaults.lock_key),
            lock_timeout=int(
                os.getenv(
                    "CONTENTSYNC_LOCK_TIMEOUT",
                    migration_data.get("lock_timeout", defaults.lock_timeout),
                )
            ),
        ),
        log_level=os.getenv("CONTENTSYNC_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
