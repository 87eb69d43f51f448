"""Qt coverage for the editing widget's line-number gutter."""

from __future__ import annotations

import os
from typing import Any, Iterator

import pytest

from redcode.services.settings import Settings


def _ensure_qapp() -> Any:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    qt_widgets = pytest.importorskip("PySide6.QtWidgets")
    app = qt_widgets.QApplication.instance()
    if app is None:  # pragma: no cover - depends on PySide6 availability
        app = qt_widgets.QApplication([])
    return app


@pytest.fixture
def view() -> Iterator[Any]:
    _ensure_qapp()
    from redcode.ui.editor_view import EditorView

    widget = EditorView()
    yield widget
    widget.deleteLater()


def test_line_numbers_are_shown_by_default(view: Any) -> None:
    view.apply_settings(Settings())

    assert view.show_line_numbers is True
    assert view.line_number_area_width() > 0
    assert view.viewportMargins().left() == view.line_number_area_width()


def test_setting_hides_the_gutter(view: Any) -> None:
    view.apply_settings(Settings(show_line_numbers=False))

    assert view.show_line_numbers is False
    assert view.line_number_area_width() == 0
    assert view.viewportMargins().left() == 0

    view.apply_settings(Settings(show_line_numbers=True))

    assert view.viewportMargins().left() > 0


def test_gutter_widens_with_line_count(view: Any) -> None:
    view.apply_settings(Settings())
    narrow = view.line_number_area_width()

    view.setPlainText("\n" * 1200)

    assert view.line_number_area_width() > narrow
    assert view.viewportMargins().left() == view.line_number_area_width()
