"""Headless tests for the status bar."""

from __future__ import annotations

from redcode.editor.document_model import Document
from redcode.editor.languages import Language
from redcode.ui.status_bar import StatusBar


def test_defaults_without_qt_application() -> None:
    bar = StatusBar()

    assert bar.widget() is None
    assert bar.cursor_text == "Line 1, Col 1"
    assert bar.language_text == "Plain Text"
    assert bar.message == ""


def test_cursor_is_displayed_one_based() -> None:
    bar = StatusBar()

    bar.update_cursor(4, 0)

    assert bar.cursor_position == (5, 1)
    assert bar.cursor_text == "Line 5, Col 1"


def test_language_accepts_enum_or_label() -> None:
    bar = StatusBar()

    bar.set_language(Language.TYPESCRIPT)
    assert bar.language_text == "TypeScript"

    bar.set_language("  ")
    assert bar.language_text == "Plain Text"


def test_show_document_and_reset() -> None:
    bar = StatusBar()
    document = Document(locator="/tmp/site.css", language=Language.CSS)
    document.move_cursor(2, 7)

    bar.show_document(document)

    assert (bar.cursor_text, bar.language_text) == ("Line 3, Col 8", "CSS")

    bar.show_document(None)

    assert (bar.cursor_text, bar.language_text) == ("Line 1, Col 1", "Plain Text")


def test_messages() -> None:
    bar = StatusBar()

    bar.set_message("Saved", timeout_ms=1000)
    assert bar.message == "Saved"

    bar.clear_message()
    assert bar.message == ""
