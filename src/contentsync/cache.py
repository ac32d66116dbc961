"""Local cache — a synchronous, persistent key/value store backed by one JSON file.

Values written through ``set_item`` are always strings; structured data is
JSON-encoded by the caller. Older admin builds wrote structured values
straight into the file, so ``get_raw`` hands back whatever is stored and
``get_item`` re-encodes non-string values.

The file is re-read on every access so that a second process (another tab,
a CLI run) sees the same flag and lock keys.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class LocalCache:
    """Read/write access to the local JSON cache file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    # ── File I/O ──────────────────────────────────────────────

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Local cache %s is corrupt, treating as empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local cache %s is not an object, treating as empty", self.path)
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    # ── Storage API ───────────────────────────────────────────

    def get_item(self, key: str) -> str | None:
        value = self._load().get(key)
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    def get_raw(self, key: str) -> Any:
        """Return the stored value as-is (string or legacy structured value)."""
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"LocalCache values must be strings, got {type(value).__name__}")
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def remove_items(self, keys: list[str]) -> list[str]:
        """Remove several keys with one write. Returns the keys that were present."""
        data = self._load()
        removed = [k for k in keys if k in data]
        for k in removed:
            del data[k]
        if removed:
            self._save(data)
        return removed

    def keys(self) -> list[str]:
        return list(self._load())

    def clear(self) -> None:
        self._save({})

    def __contains__(self, key: str) -> bool:
        return key in self._load()
