"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULTS: dict[str, Any] = {
    "library": {
        "root": "",
        "fetch_limit": 100,
        "extensions": [".jpg", ".jpeg", ".png", ".heic", ".heif", ".webp", ".gif", ".bmp"],
        "screenshot_patterns": ["screenshot", "screen shot", "bildschirmfoto", "截圖"],
    },
    "logging": {"dir": "", "level": "INFO"},
    "delete": {"log_dir": ""},
    "preview": {"max_side": 1600, "cache_size": 64},
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return `base` updated recursively with `override`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access.

    Values missing from the file fall back to `DEFAULTS`. A missing file is
    allowed when `required` is False.
    """

    def __init__(self, settings_path: str | Path | None = None, required: bool = False) -> None:
        self._path = Path(settings_path) if settings_path else None
        data: dict[str, Any] = {}
        if self._path is not None and self._path.exists():
            with self._path.open("r", encoding="utf-8") as f:
                loaded = json.load(f)
            if not isinstance(loaded, dict):
                raise ValueError(f"settings root must be an object: {self._path}")
            data = loaded
        elif required:
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        else:
            logger.info("No settings file at {}, using defaults", self._path)
        self._data = _merge(DEFAULTS, data)

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_int(self, key: str, default: int) -> int:
        """Return `key` as int, or `default` if missing or not numeric."""
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            logger.warning("Setting {} is not an integer, using {}", key, default)
            return default
