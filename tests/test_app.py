"""Tests for the application bootstrap helpers."""

from __future__ import annotations

import asyncio
import io
import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from redcode import app
from redcode.services.file_storage import LocalFileStorage
from redcode.services.settings import Settings, SettingsStore
from redcode.services.storage import MemoryStorage
from redcode.services.workspace_state import WorkspaceStateService
from redcode.ui.controller import WindowController
from redcode.ui.status_bar import StatusBar


def test_parse_cli_args_collects_files_and_overrides() -> None:
    args, passthrough = app._parse_cli_args(
        ["a.py", "b.txt", "--set", "theme=dark", "--set", "font_size=14", "-style=fusion"]
    )

    assert args.files == ["a.py", "b.txt"]
    assert args.overrides == ["theme=dark", "font_size=14"]
    assert args.dump_settings is False
    assert passthrough == ["-style=fusion"]


def test_coerce_cli_overrides_uses_field_types() -> None:
    overrides = app._coerce_cli_overrides(
        [
            "font_size=16",
            "word_wrap=yes",
            "theme= dark ",
            'recent_files=["/tmp/a.py"]',
            "active_tab_index=null",
            "last_open_file=/tmp/a.py",
            "open_tabs=none",
        ]
    )

    assert overrides == {
        "font_size": 16,
        "word_wrap": True,
        "theme": "dark",
        "recent_files": ["/tmp/a.py"],
        "active_tab_index": None,
        "last_open_file": "/tmp/a.py",
        "open_tabs": None,
    }


@pytest.mark.parametrize(
    "entry",
    [
        "theme",
        "=dark",
        "colour=blue",
        "font_size=big",
        "word_wrap=maybe",
        "recent_files=[oops",
        'recent_files={"a": 1}',
        "open_tabs=3",
    ],
)
def test_coerce_cli_overrides_rejects_bad_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        app._coerce_cli_overrides([entry])


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("On", True), ("debug", True), ("0", False), ("disabled", False)],
)
def test_parse_bool(raw: str, expected: bool) -> None:
    assert app._parse_bool(raw) is expected


def test_load_settings_falls_back_on_store_errors(tmp_path: Path) -> None:
    class _BrokenStore(SettingsStore):
        def load(self, *, overrides=None):  # type: ignore[no-untyped-def]
            raise OSError("disk on fire")

    settings = app.load_settings(store=_BrokenStore(tmp_path / "settings.json"))

    assert settings == Settings()


def test_build_session_respects_settings() -> None:
    restoring = app.build_session(Settings(), storage=MemoryStorage())
    fresh = app.build_session(
        Settings(restore_session=False, untitled_prefix="Scratch"),
        storage=MemoryStorage(),
    )

    assert restoring.count == 0
    assert fresh.count == 1
    assert fresh.active_document is not None
    assert fresh.active_document.locator == "Scratch-1"


def test_dump_settings_reports_effective_payload(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    stream = io.StringIO()

    app._dump_settings(Settings(theme="light"), store, overrides={"theme": "light"}, stream=stream)

    payload = json.loads(stream.getvalue())
    assert payload["settings"]["theme"] == "light"
    assert payload["meta"]["path"] == str(store.path)
    assert payload["meta"]["cli_overrides"] == ["theme"]


def test_main_dump_settings(
    isolated_logging: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(sys, "argv", ["redcode"])
    settings_path = tmp_path / "settings.json"
    SettingsStore(settings_path).save(Settings(font_size=15))

    app.main(["--dump-settings", "--settings-path", str(settings_path), "--set", "theme=dark"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["settings"]["theme"] == "dark"
    assert payload["settings"]["font_size"] == 15
    assert payload["meta"]["log_path"] == str(isolated_logging / "redcode.log")
    assert "REDCODE_LOG_DIR" in payload["meta"]["environment_variables"]


def test_main_rejects_malformed_override(isolated_logging: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["redcode"])

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--set", "not-an-override"])

    assert excinfo.value.code == 2


@pytest.mark.asyncio
async def test_open_initial_documents_restores_then_opens_files(tmp_path: Path) -> None:
    restored_file = tmp_path / "restored.py"
    restored_file.write_text("import os\n", encoding="utf-8")
    cli_file = tmp_path / "cli.css"
    cli_file.write_text("body { margin: 0; }\n", encoding="utf-8")
    settings = Settings(open_tabs=[{"locator": str(restored_file)}], active_tab_index=0)
    session = app.build_session(settings, storage=LocalFileStorage())
    workspace = WorkspaceStateService(session, settings)
    window = SimpleNamespace(controller=WindowController(session, StatusBar()))

    await app._open_initial_documents(window, workspace, [str(cli_file)], restore=True)

    assert [document.display_name for document in session] == ["restored.py", "cli.css"]
    assert session.active_document is not None
    assert session.active_document.display_name == "cli.css"
    assert workspace.recent_files == [str(cli_file)]


@pytest.mark.asyncio
async def test_open_initial_documents_without_anything_to_open(tmp_path: Path) -> None:
    settings = Settings(restore_session=False)
    session = app.build_session(settings, storage=LocalFileStorage())
    workspace = WorkspaceStateService(session, settings)
    window = SimpleNamespace(controller=WindowController(session, StatusBar()))

    await app._open_initial_documents(window, workspace, [], restore=False)

    assert session.count == 1


def test_drain_event_loop_cancels_pending_tasks() -> None:
    loop = asyncio.new_event_loop()
    try:
        task = loop.create_task(asyncio.sleep(3600))

        app._drain_event_loop(loop)

        assert task.cancelled()
    finally:
        loop.close()
