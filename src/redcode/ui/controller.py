"""Window-level commands driving the session, independent of Qt widgets."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ..editor.closing import CloseRequest
from ..editor.document_model import Document, TabSummary
from ..editor.session import OpenResult, SaveResult, SaveTargetPicker, SessionManager
from ..errors import SaveCancelledError
from ..events import (
    ActiveDocumentChanged,
    CursorMoved,
    DocumentClosed,
    DocumentCreated,
    DocumentModified,
    DocumentOpened,
    DocumentSaved,
    DocumentSaveFailed,
)
from ..services.settings import THEME_CHOICES, Settings
from ..services.workspace_state import WorkspaceStateService
from .status_bar import StatusBar

__all__ = ["CloseDecision", "CloseDecisionPrompt", "OpenPathPicker", "WindowController"]

LOGGER = logging.getLogger(__name__)


class CloseDecision(Enum):
    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


CloseDecisionPrompt = Callable[[Document], Awaitable[CloseDecision]]
OpenPathPicker = Callable[[], Awaitable[Optional[str]]]
TabsListener = Callable[[List[TabSummary]], None]
ThemeListener = Callable[[str], None]


class WindowController:
    """Translates menu commands into session calls and mirrors state to the chrome.

    Every user prompt is an injected coroutine so the Qt window can supply
    dialogs while tests supply canned answers.
    """

    def __init__(
        self,
        session: SessionManager,
        status_bar: StatusBar,
        *,
        settings: Settings | None = None,
        workspace: WorkspaceStateService | None = None,
        close_prompt: CloseDecisionPrompt | None = None,
        open_picker: OpenPathPicker | None = None,
        save_as_picker: SaveTargetPicker | None = None,
    ) -> None:
        self._session = session
        self._status_bar = status_bar
        self._settings = settings
        self._workspace = workspace
        self._close_prompt = close_prompt
        self._open_picker = open_picker
        self._save_as_picker = save_as_picker
        self._tabs_listeners: list[TabsListener] = []
        self._theme_listeners: list[ThemeListener] = []

        bus = session.event_bus
        for event_type in (DocumentCreated, DocumentOpened, DocumentClosed, DocumentSaved):
            bus.subscribe(event_type, self._on_tabs_changed)
        bus.subscribe(DocumentModified, self._on_document_modified)
        bus.subscribe(ActiveDocumentChanged, self._on_active_changed)
        bus.subscribe(CursorMoved, self._on_cursor_moved)
        bus.subscribe(DocumentSaveFailed, self._on_save_failed)
        self._status_bar.show_document(session.active_document)

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def status_bar(self) -> StatusBar:
        return self._status_bar

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------
    def add_tabs_listener(self, listener: TabsListener) -> None:
        self._tabs_listeners.append(listener)
        listener(self._session.tabs())

    def add_theme_listener(self, listener: ThemeListener) -> None:
        self._theme_listeners.append(listener)

    # ------------------------------------------------------------------
    # File commands
    # ------------------------------------------------------------------
    def new_document(self) -> str:
        return self._session.create_new()

    async def open_locator(self, locator: str) -> OpenResult:
        result = await self._session.open_locator(locator)
        if not result.ok:
            self._status_bar.set_message(f"Unable to open {locator}: {result.error}")
        return result

    async def open_interactive(self) -> OpenResult | None:
        if self._open_picker is None:
            return None
        locator = await self._open_picker()
        if not locator:
            return None
        return await self.open_locator(locator)

    async def save_active(self) -> SaveResult | None:
        document = self._session.active_document
        if document is None:
            return None
        result = await self._session.save(document.document_id)
        self._report_save(result)
        return result

    async def save_active_as(self) -> SaveResult | None:
        document = self._session.active_document
        if document is None:
            return None
        if self._save_as_picker is None:
            self._status_bar.set_message("Save As is unavailable")
            return None
        target = await self._save_as_picker(document)
        if not target:
            return None
        result = await self._session.save(document.document_id, locator_override=target)
        self._report_save(result)
        return result

    async def close_document(self, document_id: str) -> CloseRequest | None:
        """Close one document, asking what to do when it has unsaved changes.

        A "save" answer awaits the write; the document closes only if it
        succeeded and otherwise stays open, active and dirty.
        """

        request = self._session.request_close(document_id)
        if request is None or not request.needs_decision:
            return request

        self._session.set_active(document_id)
        decision = CloseDecision.CANCEL
        if self._close_prompt is not None:
            decision = await self._close_prompt(self._session.get(document_id))
        LOGGER.debug("Close decision for %s: %s", document_id, decision.name)

        if decision is CloseDecision.SAVE:
            result = await request.save_then_close()
            self._report_save(result)
        elif decision is CloseDecision.DISCARD:
            request.discard_then_close()
        else:
            request.cancel()
        return request

    async def close_active(self) -> CloseRequest | None:
        document_id = self._session.active_document_id
        if document_id is None:
            return None
        return await self.close_document(document_id)

    async def confirm_quit(self) -> bool:
        """Resolve every dirty document before shutdown; ``False`` aborts the quit."""

        for document in self._session.dirty_documents():
            self._session.set_active(document.document_id)
            decision = CloseDecision.CANCEL
            if self._close_prompt is not None:
                decision = await self._close_prompt(document)
            if decision is CloseDecision.CANCEL:
                return False
            if decision is CloseDecision.SAVE:
                result = await self._session.save(document.document_id)
                self._report_save(result)
                if not result.ok:
                    return False
        if self._workspace is not None:
            self._workspace.capture()
        return True

    # ------------------------------------------------------------------
    # View commands
    # ------------------------------------------------------------------
    def set_theme(self, theme: str) -> None:
        normalized = theme.strip().lower()
        if normalized not in THEME_CHOICES:
            raise ValueError(f"Unknown theme '{theme}'")
        if self._settings is not None:
            self._settings.theme = normalized
        if self._workspace is not None:
            self._workspace.persist()
        for listener in list(self._theme_listeners):
            listener(normalized)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _notify_tabs(self) -> None:
        tabs = self._session.tabs()
        for listener in list(self._tabs_listeners):
            listener(tabs)

    def _on_tabs_changed(self, _event: object) -> None:
        self._notify_tabs()

    def _on_document_modified(self, event: DocumentModified) -> None:
        # Only the first edit after a clean state changes a tab title.
        if event.became_dirty:
            self._notify_tabs()

    def _on_active_changed(self, event: ActiveDocumentChanged) -> None:
        self._status_bar.show_document(self._session.find(event.document_id))
        self._notify_tabs()

    def _on_cursor_moved(self, event: CursorMoved) -> None:
        if event.document_id == self._session.active_document_id:
            self._status_bar.update_cursor(event.line, event.column)

    def _on_save_failed(self, event: DocumentSaveFailed) -> None:
        if isinstance(event.error, SaveCancelledError):
            return
        self._status_bar.set_message(f"Save failed: {event.error}")

    def _report_save(self, result: SaveResult) -> None:
        if result.ok and result.locator:
            self._status_bar.set_message(f"Saved {result.locator}", timeout_ms=3000)
