"""Status bar showing the caret position and the active document's language."""

from __future__ import annotations

from typing import Any, Optional

from ..editor.document_model import Document
from ..editor.languages import Language

try:  # pragma: no cover - Qt imports are optional during tests
    from PySide6.QtWidgets import QApplication, QLabel, QStatusBar
except Exception:  # pragma: no cover - PySide6 not available
    QApplication = None  # type: ignore[assignment]
    QLabel = None  # type: ignore[assignment]
    QStatusBar = None  # type: ignore[assignment]


class StatusBar:
    """Status bar that keeps its texts headless when no Qt widget exists."""

    def __init__(self, parent: Any | None = None) -> None:
        self._message: str = ""
        self._message_timeout: Optional[int] = None
        self._cursor: tuple[int, int] = (1, 1)
        self._language: str = Language.PLAIN_TEXT.display_name

        self._qt_bar = self._build_qt_status_bar(parent)
        self._cursor_label: Any = None
        self._language_label: Any = None

        if self._qt_bar is not None:
            self._init_widgets()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def set_message(self, message: str, *, timeout_ms: Optional[int] = None) -> None:
        """Show a transient status message, honoring optional timeouts."""

        self._message = message
        self._message_timeout = timeout_ms
        if self._qt_bar is not None:
            self._qt_bar.showMessage(message, timeout_ms or 0)

    def clear_message(self) -> None:
        self._message = ""
        self._message_timeout = None
        if self._qt_bar is not None:
            self._qt_bar.clearMessage()

    def update_cursor(self, line: int, column: int) -> None:
        """Update the caret indicator from a zero-based position."""

        self._cursor = (max(0, line) + 1, max(0, column) + 1)
        self._update_label(self._cursor_label, self.cursor_text)

    def set_language(self, language: Language | str) -> None:
        if isinstance(language, Language):
            label = language.display_name
        else:
            label = str(language).strip() or Language.PLAIN_TEXT.display_name
        self._language = label
        self._update_label(self._language_label, self._language)

    def show_document(self, document: Document | None) -> None:
        """Reflect ``document``'s caret and language, or reset when ``None``."""

        if document is None:
            self.update_cursor(0, 0)
            self.set_language(Language.PLAIN_TEXT)
            return
        self.update_cursor(document.cursor.line, document.cursor.column)
        self.set_language(document.language)

    def widget(self) -> Any | None:
        """Return the underlying :class:`QStatusBar` when available."""

        return self._qt_bar

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    @property
    def message(self) -> str:
        return self._message

    @property
    def cursor_position(self) -> tuple[int, int]:
        """One-based ``(line, column)`` as displayed."""

        return self._cursor

    @property
    def cursor_text(self) -> str:
        line, column = self._cursor
        return f"Line {line}, Col {column}"

    @property
    def language_text(self) -> str:
        return self._language

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _init_widgets(self) -> None:
        if self._qt_bar is None or QLabel is None:
            return

        self._cursor_label = QLabel(self.cursor_text)
        self._cursor_label.setObjectName("rc-status-cursor")
        self._language_label = QLabel(self._language)
        self._language_label.setObjectName("rc-status-language")
        for label in (self._cursor_label, self._language_label):
            label.setContentsMargins(8, 0, 8, 0)
            self._qt_bar.addPermanentWidget(label)

    def _update_label(self, label: Any, text: str) -> None:
        if label is None:
            return
        label.setText(text)

    def _handle_qt_message_changed(self, text: str) -> None:
        self._message = text
        if not text:
            self._message_timeout = None

    def _build_qt_status_bar(self, parent: Any | None) -> Any | None:
        if QStatusBar is None or QApplication is None:
            return None
        if QApplication.instance() is None:
            return None

        bar = QStatusBar(parent)
        bar.setObjectName("rc-status-bar")
        bar.messageChanged.connect(self._handle_qt_message_changed)
        return bar


__all__ = ["StatusBar"]
