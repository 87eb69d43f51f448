"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from redcode.utils import logging as logging_utils


def test_setup_logging_writes_to_log_dir(isolated_logging: Path) -> None:
    path = logging_utils.setup_logging(logging.DEBUG, console=False)

    logging.getLogger("redcode.tests").debug("hello from the tests")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert path == isolated_logging / "redcode.log"
    assert logging_utils.get_log_path() == path
    assert "hello from the tests" in path.read_text(encoding="utf-8")


def test_repeated_setup_is_a_no_op_unless_forced(isolated_logging: Path, tmp_path: Path) -> None:
    first = logging_utils.setup_logging(console=False)
    handlers = list(logging.getLogger().handlers)

    again = logging_utils.setup_logging(console=False, log_dir=tmp_path / "elsewhere")

    assert again == first
    assert logging.getLogger().handlers == handlers

    forced = logging_utils.setup_logging(console=False, log_dir=tmp_path / "elsewhere", force=True)

    assert forced == tmp_path / "elsewhere" / "redcode.log"
    assert logging_utils.get_log_path() == forced


def test_noisy_loggers_are_quieted(isolated_logging: Path) -> None:
    logging_utils.setup_logging(logging.DEBUG, console=False)

    assert logging.getLogger("asyncio").level == logging.WARNING
    assert logging.getLogger("qasync").level == logging.WARNING
