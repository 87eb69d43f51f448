"""Single plain-text editing widget reused for every tab."""

from __future__ import annotations

import logging

from PySide6.QtCore import QRect, QSize, Qt
from PySide6.QtGui import QFont, QPainter, QPaintEvent, QPalette, QResizeEvent, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit, QWidget

from ..editor.document_model import CursorPosition
from ..editor.languages import Language
from ..editor.widget_link import ContentListener, CursorListener
from ..services.settings import Settings

__all__ = ["EditorView"]

LOGGER = logging.getLogger(__name__)

_GUTTER_PADDING = 8


class _LineNumberArea(QWidget):
    """Gutter painted by its editor; it only forwards size and paint requests."""

    def __init__(self, editor: EditorView) -> None:
        super().__init__(editor)
        self.setObjectName("rc-line-numbers")
        self._editor = editor

    def sizeHint(self) -> QSize:
        return QSize(self._editor.line_number_area_width(), 0)

    def paintEvent(self, event: QPaintEvent) -> None:
        self._editor.paint_line_numbers(event)


class EditorView(QPlainTextEdit):
    """``QPlainTextEdit`` exposing the content and caret streams the session consumes."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("rc-editor")
        self._content_listeners: list[ContentListener] = []
        self._cursor_listeners: list[CursorListener] = []
        self._language = Language.PLAIN_TEXT
        self._show_line_numbers = True
        self._line_number_area = _LineNumberArea(self)
        self.textChanged.connect(self._emit_content)
        self.cursorPositionChanged.connect(self._emit_cursor)
        self.blockCountChanged.connect(self._update_gutter_width)
        self.updateRequest.connect(self._update_gutter)
        self._update_gutter_width()

    @property
    def language(self) -> Language:
        return self._language

    @property
    def show_line_numbers(self) -> bool:
        return self._show_line_numbers

    def add_content_listener(self, listener: ContentListener) -> None:
        self._content_listeners.append(listener)

    def add_cursor_listener(self, listener: CursorListener) -> None:
        self._cursor_listeners.append(listener)

    def load(self, content: str, language: Language, cursor: CursorPosition) -> None:
        self._language = language
        self.setPlainText(content)
        self.move_caret(cursor.line, cursor.column)

    def move_caret(self, line: int, column: int) -> None:
        document = self.document()
        block = document.findBlockByNumber(min(line, max(document.blockCount() - 1, 0)))
        column = min(column, max(block.length() - 1, 0))
        text_cursor = QTextCursor(block)
        text_cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.MoveAnchor, column)
        self.setTextCursor(text_cursor)

    def apply_settings(self, settings: Settings) -> None:
        font = QFont(settings.font_family)
        font.setStyleHint(QFont.StyleHint.Monospace)
        font.setPointSize(max(settings.font_size, 1))
        self.setFont(font)
        mode = QPlainTextEdit.LineWrapMode.WidgetWidth if settings.word_wrap else QPlainTextEdit.LineWrapMode.NoWrap
        self.setLineWrapMode(mode)
        self.set_line_numbers_visible(settings.show_line_numbers)

    # ------------------------------------------------------------------
    # Line-number gutter
    # ------------------------------------------------------------------
    def set_line_numbers_visible(self, visible: bool) -> None:
        self._show_line_numbers = bool(visible)
        self._line_number_area.setVisible(self._show_line_numbers)
        self._update_gutter_width()

    def line_number_area_width(self) -> int:
        """Pixel width of the gutter; zero while line numbers are hidden."""

        if not self._show_line_numbers:
            return 0
        digits = len(str(max(1, self.blockCount())))
        return _GUTTER_PADDING + self.fontMetrics().horizontalAdvance("9") * digits

    def paint_line_numbers(self, event: QPaintEvent) -> None:
        area = self._line_number_area
        painter = QPainter(area)
        try:
            painter.fillRect(event.rect(), self.palette().color(QPalette.ColorRole.AlternateBase))
            painter.setPen(self.palette().color(QPalette.ColorRole.PlaceholderText))
            line_height = self.fontMetrics().height()
            block = self.firstVisibleBlock()
            number = block.blockNumber()
            top = round(self.blockBoundingGeometry(block).translated(self.contentOffset()).top())
            bottom = top + round(self.blockBoundingRect(block).height())
            while block.isValid() and top <= event.rect().bottom():
                if block.isVisible() and bottom >= event.rect().top():
                    painter.drawText(
                        0,
                        top,
                        area.width() - _GUTTER_PADDING // 2,
                        line_height,
                        Qt.AlignmentFlag.AlignRight,
                        str(number + 1),
                    )
                block = block.next()
                top = bottom
                bottom = top + round(self.blockBoundingRect(block).height())
                number += 1
        finally:
            painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self._place_gutter()

    def _update_gutter_width(self, _block_count: int = 0) -> None:
        self.setViewportMargins(self.line_number_area_width(), 0, 0, 0)
        self._place_gutter()

    def _update_gutter(self, rect: QRect, dy: int) -> None:
        if dy:
            self._line_number_area.scroll(0, dy)
        else:
            self._line_number_area.update(0, rect.y(), self._line_number_area.width(), rect.height())
        if rect.contains(self.viewport().rect()):
            self._update_gutter_width()

    def _place_gutter(self) -> None:
        contents = self.contentsRect()
        self._line_number_area.setGeometry(
            QRect(contents.left(), contents.top(), self.line_number_area_width(), contents.height())
        )

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------
    def _emit_content(self) -> None:
        text = self.toPlainText()
        for listener in list(self._content_listeners):
            listener(text)

    def _emit_cursor(self) -> None:
        cursor = self.textCursor()
        line = cursor.blockNumber()
        column = cursor.positionInBlock()
        for listener in list(self._cursor_listeners):
            listener(line, column)
