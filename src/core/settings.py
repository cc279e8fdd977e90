"""
User settings store.

Flat JSON key-value settings shared by the engine and its asset sources.
Reads and writes are guarded by a lock so background tasks can consult
settings while the front end changes them.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from .logging import get_logger

LOGGER = get_logger("core.settings")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "refresh_before_extract": False,
    "sql_database": None,
    "cache_directory": None,
    "asset_aliases": {},
}


class UserSettings:
    """Thread-safe key-value settings persisted as JSON."""

    def __init__(self, path: Optional[Path] = None, values: Optional[Dict[str, Any]] = None):
        self.path = path
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = json.loads(json.dumps(DEFAULT_SETTINGS))
        if values:
            self._values.update(values)

    @classmethod
    def load(cls, path: Path) -> "UserSettings":
        if not path.exists():
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not read settings %s, using defaults: %s", path, exc)
            return cls(path)
        if not isinstance(data, dict):
            LOGGER.warning("Settings file %s is not a JSON object, using defaults", path)
            return cls(path)
        return cls(path, data)

    def save(self, path: Optional[Path] = None) -> None:
        target = path or self.path
        if target is None:
            return
        with self._lock:
            payload = json.dumps(self._values, indent=2, sort_keys=True)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value) if value is not None else default

    def get_string(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is None or value == "":
            return None
        return str(value)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def get_asset_alias(self, name: str) -> Optional[str]:
        with self._lock:
            aliases = self._values.get("asset_aliases") or {}
            alias = aliases.get(name)
        return alias or None

    def set_asset_alias(self, name: str, alias: Optional[str]) -> None:
        with self._lock:
            aliases = dict(self._values.get("asset_aliases") or {})
            if alias:
                aliases[name] = alias
            else:
                aliases.pop(name, None)
            self._values["asset_aliases"] = aliases

