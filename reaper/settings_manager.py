from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

_DIR_KEYS = ("last_open_dir",)


def default_settings_path() -> str:
    """Settings file location: REAPER_SETTINGS_PATH or settings.json beside the package."""
    env = (os.getenv("REAPER_SETTINGS_PATH") or "").strip()
    if env:
        return env
    return (Path(__file__).resolve().parent / "settings.json").as_posix()


def _normalize_dir(value: Any) -> str | None:
    if not isinstance(value, str) or not value:
        return None
    p = Path(value).expanduser()
    if p.is_file():
        p = p.parent
    if not p.is_dir():
        return None
    return str(p.resolve())


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "theme": "dark",
        "crop_debounce_ms": 100,
        "frame_interval_ms": 16,
        "default_convert_format": "png",
        "toast_duration_ms": 3000,
        "last_open_dir": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def get_int(self, key: str) -> int:
        """Integer setting; falls back to the default when the stored value is unusable."""
        try:
            return int(self.get(key))
        except (TypeError, ValueError):
            _logger.warning("setting %s is not an integer: %r", key, self._settings.get(key))
            return int(self.DEFAULTS[key])

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        if key in _DIR_KEYS:
            value = _normalize_dir(value)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def last_open_dir(self) -> str | None:
        val = self.get("last_open_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None
