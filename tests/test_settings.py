"""Tests for settings persistence and overrides."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from redcode.services.settings import Settings, SettingsStore


def _write(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.load() == Settings()


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "nested" / "settings.json")
    settings = Settings(
        theme="dark",
        font_size=16,
        recent_files=["/tmp/a.py"],
        open_tabs=[{"locator": "/tmp/a.py", "language": "python"}],
        active_tab_index=0,
        next_untitled_index=4,
    )

    path = store.save(settings)

    assert path == store.path
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    assert not path.with_suffix(".tmp").exists()
    assert store.load() == settings


def test_invalid_json_falls_back_to_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="redcode.services.settings"):
        settings = SettingsStore(path).load()

    assert settings == Settings()
    assert "not valid JSON" in caplog.text


def test_non_object_payload_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    _write(path, ["theme", "dark"])

    assert SettingsStore(path).load() == Settings()


def test_unknown_keys_are_dropped(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    _write(path, {"font_size": 11, "api_key": "secret", "version": 99})

    settings = SettingsStore(path).load()

    assert settings.font_size == 11
    assert not hasattr(settings, "api_key")


def test_out_of_range_values_are_normalized(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    _write(
        path,
        {
            "theme": "Solarized",
            "recent_files": "oops",
            "max_recent_files": -3,
            "next_untitled_index": 0,
        },
    )

    settings = SettingsStore(path).load()

    assert settings.theme == "system"
    assert settings.recent_files == []
    assert settings.max_recent_files == 0
    assert settings.next_untitled_index == 1


def test_theme_is_case_insensitive(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    _write(path, {"theme": " Dark "})

    assert SettingsStore(path).load().theme == "dark"


def test_cli_overrides_apply_known_non_null_fields(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    settings = store.load(overrides={"font_size": 20, "theme": None, "bogus": True})

    assert settings.font_size == 20
    assert settings.theme == "system"


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDCODE_THEME", "light")
    monkeypatch.setenv("REDCODE_FONT_SIZE", "18")
    monkeypatch.setenv("REDCODE_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("REDCODE_RESTORE_SESSION", "0")
    store = SettingsStore(tmp_path / "settings.json")

    settings = store.load(overrides={"font_size": 12})

    assert settings.theme == "light"
    assert settings.font_size == 18
    assert settings.debug_logging is True
    assert settings.restore_session is False


def test_invalid_integer_environment_override_is_ignored(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("REDCODE_FONT_SIZE", "huge")

    with caplog.at_level(logging.WARNING, logger="redcode.services.settings"):
        settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings.font_size == 13
    assert "REDCODE_FONT_SIZE=huge" in caplog.text
