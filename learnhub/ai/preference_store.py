"""
Preference persistence for model settings.

Preferences are stored as a flat JSON object in ~/.learnhub/preferences.json.
A store created without a path keeps values in memory only.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional

from loguru import logger


class PreferenceStore:
    """Flat key/value store backed by a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._lock = threading.Lock()
        self._values: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value
            self._save()

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._values.pop(key, None) is None:
                return False
            self._save()
            return True

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)
