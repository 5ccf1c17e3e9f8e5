"""User settings: extra and excluded targets, audit log location, upload URL."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from tempsweep.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "tempsweep"
_SETTINGS_FILE = "settings.json"

PATH_LIST_KEYS = ("targets.extra", "targets.exclude")
STRING_KEYS = ("log.file", "upload.sas_url")


class SettingsError(Exception):
    """Raised when a setting is unknown or cannot be saved."""


class Settings:
    """Settings stored as nested JSON under the XDG config directory.

    Keys use dot notation (``targets.exclude`` lives at
    ``data["targets"]["exclude"]``). Only the keys in :data:`PATH_LIST_KEYS`
    and :data:`STRING_KEYS` can be written; reads tolerate anything so a
    hand-edited file never stops a cleanup run.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def as_dict(self) -> dict[str, Any]:
        return json.loads(json.dumps(self._data))

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def paths(self, key: str) -> list[str]:
        """Return the path list stored under *key*, or [] if it is malformed."""
        value = self.get(key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            log.warning("Setting '%s' must be a list of paths, ignoring it", key)
            return []
        return list(value)

    def set(self, key: str, value: str) -> None:
        """Store a string setting and save the file."""
        if key not in STRING_KEYS:
            raise SettingsError(f"Unknown setting '{key}' (expected one of: {', '.join(STRING_KEYS)})")
        self._put(key, value)
        self._save()

    def add_path(self, key: str, path: str) -> bool:
        """Append *path* to a path list. Returns False if it was already there."""
        current = self._path_list(key)
        if path in current:
            return False
        self._put(key, current + [path])
        self._save()
        return True

    def remove_path(self, key: str, path: str) -> bool:
        """Drop *path* from a path list. Returns False if it was not there."""
        current = self._path_list(key)
        if path not in current:
            return False
        self._put(key, [p for p in current if p != path])
        self._save()
        return True

    def _path_list(self, key: str) -> list[str]:
        if key not in PATH_LIST_KEYS:
            raise SettingsError(f"Unknown path list '{key}' (expected one of: {', '.join(PATH_LIST_KEYS)})")
        return self.paths(key)

    def _put(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings in %s: top level is not an object", self._path)
            return
        self._data = data

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise SettingsError(f"Could not save settings to {self._path}: {e}") from e
        log.info("Saved settings to %s", self._path)
