"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import pytest

from redcode.editor.session import SessionManager
from redcode.events import EventBus
from redcode.services.storage import MemoryStorage
from redcode.utils import logging as logging_utils
from tests.helpers import GatedStorage


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's REDCODE_* variables out of the tests."""

    for name in list(os.environ):
        if name.startswith("REDCODE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage(
        {
            "mem://docs/notes.txt": b"hello\r\nworld\n",
            "mem://docs/app.py": b"import os\n\ndef main():\n    pass\n",
            "mem://docs/README": b"Plain words only",
        }
    )


@pytest.fixture
def session(storage: MemoryStorage, bus: EventBus) -> SessionManager:
    return SessionManager(storage, event_bus=bus)


@pytest.fixture
def gated_storage() -> GatedStorage:
    return GatedStorage({"mem://docs/slow.txt": b"original"})


@pytest.fixture
def isolated_logging(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Let a test configure logging, then put the root logger back."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(logging_utils, "_CONFIGURED", False)
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)
    monkeypatch.setenv("REDCODE_LOG_DIR", str(log_dir))
    yield log_dir
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)
