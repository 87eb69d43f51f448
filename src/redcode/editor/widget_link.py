"""Glue between the session manager and an external editing widget."""

from __future__ import annotations

import logging
from typing import Protocol

from ..events import ActiveDocumentChanged
from .document_model import CursorPosition
from .languages import Language
from .session import SessionManager

__all__ = ["ContentListener", "CursorListener", "EditorLink", "EditorWidget"]

LOGGER = logging.getLogger(__name__)


class ContentListener(Protocol):
    """Callback invoked with the full widget text after a committed edit."""

    def __call__(self, text: str) -> None:
        ...


class CursorListener(Protocol):
    """Callback invoked with the zero-based primary caret position."""

    def __call__(self, line: int, column: int) -> None:
        ...


class EditorWidget(Protocol):
    """Capabilities the session needs from the text editing widget."""

    def load(self, content: str, language: Language, cursor: CursorPosition) -> None:
        ...

    def add_content_listener(self, listener: ContentListener) -> None:
        ...

    def add_cursor_listener(self, listener: CursorListener) -> None:
        ...


class EditorLink:
    """Keeps one editing widget showing the session's active document.

    On activation the document's content, language and caret are pushed into
    the widget; the widget's content and cursor streams flow back into
    :meth:`SessionManager.mark_dirty` and :meth:`SessionManager.update_cursor`.
    """

    def __init__(self, session: SessionManager, widget: EditorWidget) -> None:
        self._session = session
        self._widget = widget
        self._document_id: str | None = None
        self._loading = False

        widget.add_content_listener(self._on_widget_content)
        widget.add_cursor_listener(self._on_widget_cursor)
        session.event_bus.subscribe(ActiveDocumentChanged, self._on_active_changed)
        self.refresh()

    @property
    def document_id(self) -> str | None:
        """Id of the document currently shown in the widget."""

        return self._document_id

    def refresh(self) -> None:
        """Push the active document into the widget."""

        document = self._session.active_document
        if document is None:
            self._document_id = None
            return
        self._document_id = document.document_id
        self._loading = True
        try:
            self._widget.load(document.content, document.language, document.cursor)
        finally:
            self._loading = False
        LOGGER.debug("Widget now shows %s (%s)", document.locator, document.language.tag)

    def detach(self) -> None:
        self._session.event_bus.unsubscribe(ActiveDocumentChanged, self._on_active_changed)
        self._document_id = None

    def _on_active_changed(self, event: ActiveDocumentChanged) -> None:
        if event.document_id != self._document_id:
            self.refresh()

    def _on_widget_content(self, text: str) -> None:
        if self._loading or self._document_id is None:
            return
        self._session.mark_dirty(self._document_id, text)

    def _on_widget_cursor(self, line: int, column: int) -> None:
        if self._loading or self._document_id is None:
            return
        self._session.update_cursor(self._document_id, line, column)
