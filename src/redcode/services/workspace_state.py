"""Recent-file tracking and open-tab persistence across runs."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..editor.session import SessionManager
from ..events import DocumentOpened, DocumentSaved
from .settings import Settings, SettingsStore

__all__ = ["WorkspaceStateService"]

LOGGER = logging.getLogger(__name__)


class WorkspaceStateService:
    """Mirrors the session's persisted documents into :class:`Settings`.

    Recent files are tracked as documents are opened or saved. :meth:`capture`
    snapshots the open tabs before shutdown and :meth:`restore` re-opens them
    on the next run.
    """

    def __init__(
        self,
        session: SessionManager,
        settings: Settings,
        store: SettingsStore | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._store = store
        self._restoring = False
        bus = session.event_bus
        bus.subscribe(DocumentOpened, self._on_document_opened)
        bus.subscribe(DocumentSaved, self._on_document_saved)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def recent_files(self) -> list[str]:
        return list(self._settings.recent_files)

    # ------------------------------------------------------------------
    # Recent files
    # ------------------------------------------------------------------
    def remember_recent_file(self, locator: str, *, persist: bool = True) -> None:
        settings = self._settings
        limit = max(settings.max_recent_files, 0)
        updated: list[str] = [locator]
        for existing in settings.recent_files:
            if existing == locator:
                continue
            updated.append(existing)
        settings.recent_files = updated[:limit]
        settings.last_open_file = locator
        if persist:
            self.persist()

    def clear_recent_files(self) -> None:
        self._settings.recent_files = []
        self._settings.last_open_file = None
        self.persist()

    def _on_document_opened(self, event: DocumentOpened) -> None:
        if self._restoring:
            return
        self.remember_recent_file(event.locator)

    def _on_document_saved(self, event: DocumentSaved) -> None:
        self.remember_recent_file(event.locator)

    # ------------------------------------------------------------------
    # Open tabs
    # ------------------------------------------------------------------
    def capture(self, *, persist: bool = True) -> Settings:
        """Record persisted open documents and the active tab into settings."""

        settings = self._settings
        entries: list[dict[str, Any]] = []
        active_entry: int | None = None
        active_id = self._session.active_document_id
        for document in self._session:
            if not document.persisted:
                continue
            if document.document_id == active_id:
                active_entry = len(entries)
            entries.append({"locator": document.locator, "language": document.language.tag})
        settings.open_tabs = entries
        settings.active_tab_index = active_entry
        settings.next_untitled_index = self._session.serialize_state()["next_untitled_index"]
        LOGGER.debug("Captured %d open tabs (active=%s)", len(entries), active_entry)
        if persist:
            self.persist()
        return settings

    async def restore(self) -> int:
        """Re-open the tabs recorded by :meth:`capture`.

        Entries whose read fails are skipped. Returns the number of restored
        documents; the session is non-empty afterwards either way.
        """

        settings = self._settings
        restored: list[str] = []
        entries = [entry for entry in (settings.open_tabs or []) if isinstance(entry, Mapping)]
        self._restoring = True
        try:
            for entry in entries:
                locator = entry.get("locator")
                if not isinstance(locator, str) or not locator:
                    LOGGER.debug("Skipping malformed tab entry %r", entry)
                    continue
                result = await self._session.open_locator(locator)
                if not result.ok or result.document_id is None:
                    LOGGER.warning("Skipping tab %s during restore: %s", locator, result.error)
                    continue
                restored.append(result.document_id)
        finally:
            self._restoring = False

        if isinstance(settings.next_untitled_index, int):
            self._session.set_next_untitled_index(settings.next_untitled_index)

        active = settings.active_tab_index
        if restored:
            target = restored[-1]
            if isinstance(active, int) and 0 <= active < len(entries):
                # Map the captured index onto the tabs that actually came back.
                locator = entries[active].get("locator")
                for document_id in restored:
                    if self._session.get(document_id).locator == locator:
                        target = document_id
                        break
            self._session.set_active(target)

        self._session.ensure_document()
        LOGGER.debug("Restored %d of %d tabs", len(restored), len(entries))
        return len(restored)

    def persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._settings)
        except OSError as exc:
            LOGGER.warning("Unable to persist settings to %s: %s", self._store.path, exc)
