from __future__ import annotations

import json
from pathlib import Path

from reaper.settings_manager import SettingsManager, default_settings_path


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    assert sm.get("theme") == "dark"
    assert sm.get_int("crop_debounce_ms") == 100
    assert sm.get_int("frame_interval_ms") == 16
    assert sm.get("default_convert_format") == "png"
    assert sm.get_int("toast_duration_ms") == 3000
    assert sm.last_open_dir is None
    assert sm.has("theme") is False


def test_set_persists_immediately(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    sm = SettingsManager(str(path))
    sm.set("theme", "light")

    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "light"}
    assert SettingsManager(str(path)).get("theme") == "light"


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    sm = SettingsManager(str(path))
    assert sm.data == {}
    assert sm.get("theme") == "dark"


def test_get_int_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"crop_debounce_ms": "soon"}), encoding="utf-8")
    sm = SettingsManager(str(path))
    assert sm.get_int("crop_debounce_ms") == 100


def test_last_open_dir_is_normalized_and_directory(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    folder = tmp_path / "some_folder"
    folder.mkdir()

    sm.set("last_open_dir", str(folder))

    assert sm.last_open_dir is not None
    assert Path(sm.last_open_dir) == folder.resolve()


def test_setting_last_open_dir_to_file_coerces_to_parent_dir(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    folder = tmp_path / "some_folder"
    folder.mkdir()
    file_path = folder / "x.png"
    file_path.write_bytes(b"x")

    sm.set("last_open_dir", str(file_path))

    assert sm.last_open_dir == str(folder.resolve())


def test_missing_last_open_dir_is_dropped(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    sm.set("last_open_dir", str(tmp_path / "gone"))
    assert sm.get("last_open_dir") is None


def test_settings_path_env_override(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "custom.json"
    monkeypatch.setenv("REAPER_SETTINGS_PATH", str(target))
    assert default_settings_path() == str(target)

    monkeypatch.delenv("REAPER_SETTINGS_PATH")
    assert default_settings_path().endswith("settings.json")
