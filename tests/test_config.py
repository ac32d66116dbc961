"""Tests for configuration loading."""

import pytest
from pathlib import Path

from contentsync import config as config_module
from contentsync.config import load_config

_ENV_KEYS = [
    "CONTENTSYNC_REMOTE_URL",
    "CONTENTSYNC_API_KEY",
    "CONTENTSYNC_TIMEOUT",
    "CONTENTSYNC_CACHE_PATH",
    "CONTENTSYNC_LOCK_TIMEOUT",
    "CONTENTSYNC_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_DEFAULT_HOME", tmp_path / "home")
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.remote.url == ""
        assert config.remote.timeout == 10
        assert config.remote.schema_path == "/rest/v1"
        assert config.cache.path.name == "local_cache.json"
        assert config.migration.flag_key == "full_migration_completed_v1"
        assert config.migration.lock_timeout == 300
        assert config.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CONTENTSYNC_REMOTE_URL", "https://db.example.com")
        monkeypatch.setenv("CONTENTSYNC_TIMEOUT", "3")
        monkeypatch.setenv("CONTENTSYNC_LOCK_TIMEOUT", "60")

        config = load_config()
        assert config.remote.url == "https://db.example.com"
        assert config.remote.timeout == 3
        assert config.migration.lock_timeout == 60

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "custom.toml"
        toml_path.write_text("""
log_level = "DEBUG"

[remote]
url = "https://db.example.com"
api_key = "anon-key"
timeout = 5

[cache]
path = "/var/lib/contentsync/cache.json"

[migration]
flag_key = "migrated_v2"
""")
        config = load_config(toml_path)
        assert config.remote.url == "https://db.example.com"
        assert config.remote.api_key == "anon-key"
        assert config.remote.timeout == 5
        assert config.cache.path == Path("/var/lib/contentsync/cache.json")
        assert config.migration.flag_key == "migrated_v2"
        assert config.migration.lock_key == "full_migration_in_progress_v1"
        assert config.log_level == "DEBUG"

    def test_toml_in_cwd_is_found(self, tmp_path: Path):
        (tmp_path / "contentsync.toml").write_text('[remote]\nurl = "https://cwd.example.com"\n')
        assert load_config().remote.url == "https://cwd.example.com"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CONTENTSYNC_API_KEY", "from-env")

        toml_path = tmp_path / "custom.toml"
        toml_path.write_text("""
[remote]
api_key = "from-file"
""")
        config = load_config(toml_path)
        assert config.remote.api_key == "from-env"  # env wins

    def test_cache_path_expands_user(self, monkeypatch):
        monkeypatch.setenv("CONTENTSYNC_CACHE_PATH", "~/cache.json")
        config = load_config()
        assert config.cache.path == Path.home() / "cache.json"
