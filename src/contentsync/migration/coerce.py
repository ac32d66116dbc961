"""Coercion of legacy cache values.

Different admin builds stored the same logical value three ways: as a raw
string (``Hello``), as a JSON-encoded string (``"Hello"``), or as an already
parsed value. Everything here accepts all three.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contentsync.errors import LegacyValueError

if TYPE_CHECKING:
    from contentsync.cache import LocalCache

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


def _loads(value: str) -> Any:
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        return value


def coerce_text(value: Any) -> str | None:
    """Legacy value → plain string. None stays None."""
    if value is None:
        return None
    if isinstance(value, str):
        parsed = _loads(value)
        return parsed if isinstance(parsed, str) else value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise LegacyValueError(f"expected text, got {type(value).__name__}")


def coerce_json(value: Any, expected: type | tuple[type, ...] = (dict, list)) -> Any:
    """Legacy value → parsed structure of the expected type.

    Also unwraps nested string encoding (a JSON document that was itself
    stored as a JSON string).
    """
    if value is None:
        return None
    parsed = value
    for _ in range(3):
        if not isinstance(parsed, str):
            break
        try:
            parsed = json.loads(parsed)
        except (json.JSONDecodeError, ValueError) as e:
            raise LegacyValueError(f"invalid JSON: {e}") from e
    if not isinstance(parsed, expected):
        raise LegacyValueError(f"expected {expected}, got {type(parsed).__name__}")
    return parsed


def coerce_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = _loads(value)
        if isinstance(parsed, bool):
            return parsed
        text = parsed if isinstance(parsed, str) else value
        if text.strip().lower() in _TRUE:
            return True
        if text.strip().lower() in _FALSE:
            return False
    raise LegacyValueError(f"expected boolean, got {value!r}")


_COERCERS = {
    "text": coerce_text,
    "json": coerce_json,
    "bool": coerce_bool,
}


@dataclass(frozen=True)
class LegacyField:
    """One logical value and the legacy cache keys that ever held it.

    ``keys`` are tried in priority order; the first key that is present wins.
    """

    keys: tuple[str, ...]
    default: Any = None
    kind: str = "text"

    def raw(self, cache: LocalCache) -> tuple[str, Any] | None:
        """First present (key, raw value) pair, or None."""
        for key in self.keys:
            value = cache.get_raw(key)
            if value is not None and value != "":
                return key, value
        return None

    def exists(self, cache: LocalCache) -> bool:
        return self.raw(cache) is not None

    def read(self, cache: LocalCache) -> Any:
        """Coerced value, or the default if absent or unparseable."""
        found = self.raw(cache)
        if found is None:
            return self.default
        key, value = found
        try:
            coerced = _COERCERS[self.kind](value)
        except LegacyValueError as e:
            logger.warning("Skipping unparseable legacy value %s: %s", key, e)
            return self.default
        if coerced is None or coerced == "":
            return self.default
        return coerced
