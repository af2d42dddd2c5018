"""JSON configuration for MarkMaster (`settings.json`)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class JsonSettings:
    """Read-only JSON settings with dotted-key access, e.g. `export.pacing_delay_ms`."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)
        if not isinstance(self._data, dict):
            raise ValueError(f"settings root must be an object: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_float(self, key: str, default: float) -> float:
        """Numeric value for `key`; `default` when missing or not a number."""
        value = self.get(key, default)
        if isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key, default)
        return value if isinstance(value, bool) else default

    def get_str(self, key: str, default: str) -> str:
        value = self.get(key, default)
        return value if isinstance(value, str) and value else default
