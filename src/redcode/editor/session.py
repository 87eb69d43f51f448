"""Session manager owning the ordered set of open documents.

The manager is the single writer for the document sequence and the active
pointer. The presentation layer reads snapshots (:meth:`SessionManager.tabs`)
and issues commands; it learns about changes through the event bus.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Optional

from ..errors import (
    RedcodeError,
    SaveCancelledError,
    SaveInProgressError,
    SaveTargetRequiredError,
    StorageError,
    StorageWriteError,
    UnknownDocumentError,
)
from ..events import (
    ActiveDocumentChanged,
    CursorMoved,
    DocumentClosed,
    DocumentCreated,
    DocumentModified,
    DocumentOpened,
    DocumentSaved,
    DocumentSaveFailed,
    EventBus,
)
from ..utils import file_io
from .closing import CloseRequest, CloseState
from .document_model import Document, DocumentId, TabSummary, display_name_for
from .languages import Language, classify

if TYPE_CHECKING:  # pragma: no cover
    from ..services.storage import Storage

__all__ = ["OpenResult", "SaveResult", "SaveTargetPicker", "SessionManager"]

LOGGER = logging.getLogger(__name__)

SaveTargetPicker = Callable[[Document], Awaitable[Optional[str]]]
Classifier = Callable[[Optional[str], Optional[str]], Language]


@dataclass(slots=True, frozen=True)
class SaveResult:
    """Outcome of :meth:`SessionManager.save`."""

    document_id: DocumentId
    locator: str | None = None
    error: RedcodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True, frozen=True)
class OpenResult:
    """Outcome of opening or creating a document through storage."""

    locator: str
    document_id: DocumentId | None = None
    error: RedcodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionManager:
    """Owns open documents, the active pointer and storage orchestration."""

    def __init__(
        self,
        storage: Storage,
        *,
        event_bus: EventBus | None = None,
        classifier: Classifier = classify,
        untitled_prefix: str = "Untitled",
        encoding: str = "utf-8",
        save_target_picker: SaveTargetPicker | None = None,
        strict: bool = True,
        skip_default_document: bool = False,
    ) -> None:
        self._storage = storage
        self._bus: EventBus = event_bus or EventBus()
        self._classifier = classifier
        self._untitled_prefix = untitled_prefix
        self._encoding = encoding
        self._save_target_picker = save_target_picker
        self._strict = strict
        self._documents: Dict[DocumentId, Document] = {}
        self._order: List[DocumentId] = []
        self._active_id: DocumentId | None = None
        self._saving: set[DocumentId] = set()
        self._untitled_counter = 1
        if not skip_default_document:
            self.ensure_document()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def storage(self) -> Storage:
        return self._storage

    def set_save_target_picker(self, picker: SaveTargetPicker | None) -> None:
        """Install the async "save as" prompt used for untitled documents."""

        self._save_target_picker = picker

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Document]:
        for document_id in self._order:
            yield self._documents[document_id]

    @property
    def count(self) -> int:
        return len(self._order)

    def documents(self) -> tuple[Document, ...]:
        return tuple(self)

    def document_ids(self) -> tuple[DocumentId, ...]:
        return tuple(self._order)

    def contains(self, document_id: DocumentId) -> bool:
        return document_id in self._documents

    def find(self, document_id: DocumentId) -> Document | None:
        return self._documents.get(document_id)

    def get(self, document_id: DocumentId) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise UnknownDocumentError(document_id)
        return document

    def index_of(self, document_id: DocumentId) -> int:
        try:
            return self._order.index(document_id)
        except ValueError as exc:
            raise UnknownDocumentError(document_id) from exc

    @property
    def active_document_id(self) -> DocumentId | None:
        return self._active_id

    @property
    def active_document(self) -> Document | None:
        if self._active_id is None:
            return None
        return self._documents.get(self._active_id)

    @property
    def active_index(self) -> int | None:
        """Index of the active document, ``None`` only while the session is empty."""

        if self._active_id is None:
            return None
        return self._order.index(self._active_id)

    def is_saving(self, document_id: DocumentId) -> bool:
        return document_id in self._saving

    def dirty_documents(self) -> tuple[Document, ...]:
        return tuple(document for document in self if document.dirty)

    def tabs(self) -> list[TabSummary]:
        """Ordered tab-strip snapshot for the presentation layer."""

        return [
            TabSummary(
                document_id=document.document_id,
                index=index,
                display_name=document.display_name,
                title=document.title,
                locator=document.locator,
                language=document.language,
                dirty=document.dirty,
                active=document.document_id == self._active_id,
            )
            for index, document in enumerate(self)
        ]

    def serialize_state(self) -> dict[str, Any]:
        """Return a structured session snapshot for persistence layers."""

        return {
            "documents": [document.snapshot() for document in self],
            "active_index": self.active_index,
            "next_untitled_index": self._untitled_counter,
        }

    # ------------------------------------------------------------------
    # Lifecycle commands
    # ------------------------------------------------------------------
    def ensure_document(self) -> DocumentId:
        """Guarantee a non-empty session, returning the active document id."""

        if self._active_id is not None:
            return self._active_id
        return self.create_new()

    def create_new(self) -> DocumentId:
        """Append and activate an empty untitled document."""

        untitled_index = self._reserve_untitled_index()
        document = Document(
            locator=f"{self._untitled_prefix}-{untitled_index}",
            language=Language.PLAIN_TEXT,
            untitled_index=untitled_index,
        )
        index = self._append(document)
        LOGGER.debug("Created %s (document_id=%s, index=%d)", document.locator, document.document_id, index)
        self._bus.publish(DocumentCreated(document_id=document.document_id, index=index, locator=document.locator))
        self._activate(document.document_id)
        return document.document_id

    def open(
        self,
        locator: str,
        display_name_hint: str | None = None,
        content: str | None = None,
        *,
        encoding: str | None = None,
        bom: bytes = b"",
    ) -> DocumentId:
        """Append and activate a document whose content was already fetched.

        ``encoding`` and ``bom`` describe the stored bytes so that saving an
        unmodified document writes them back unchanged; without them the
        session encoding is used. Opening the same locator twice yields two
        independent documents.
        """

        text = content if content is not None else ""
        display_name = display_name_hint or display_name_for(locator)
        document = Document(
            locator=locator,
            content=text,
            language=self._classifier(display_name, text),
            display_name=display_name,
            persisted=True,
            encoding=encoding,
            bom=bom,
        )
        index = self._append(document)
        LOGGER.debug(
            "Opened %s as %s (document_id=%s, index=%d)",
            locator,
            document.language.tag,
            document.document_id,
            index,
        )
        self._bus.publish(
            DocumentOpened(
                document_id=document.document_id,
                index=index,
                locator=locator,
                language=document.language.tag,
            )
        )
        self._activate(document.document_id)
        return document.document_id

    async def open_locator(self, locator: str) -> OpenResult:
        """Read ``locator`` from storage and open it; read failures leave the session untouched."""

        try:
            raw = await self._storage.read(locator)
        except StorageError as exc:
            LOGGER.warning("Unable to open %s: %s", locator, exc)
            return OpenResult(locator=locator, error=exc)
        bom, encoding = file_io.split_bom(raw)
        body = raw[len(bom):]
        if encoding is None:
            encoding = file_io.detect_encoding(body, default=self._encoding)
        text = file_io.decode_text(body, encoding=encoding, errors="replace")
        display_name = self._storage.resolve_display_name(locator)
        document_id = self.open(locator, display_name, text, encoding=encoding, bom=bom)
        return OpenResult(locator=locator, document_id=document_id)

    async def create_file(self, parent_locator: str, name: str, mime_type: str = "text/plain") -> OpenResult:
        """Create an empty entry in storage and open it."""

        try:
            locator = await self._storage.create(parent_locator, name, mime_type)
        except StorageError as exc:
            LOGGER.warning("Unable to create %s under %s: %s", name, parent_locator, exc)
            return OpenResult(locator=exc.locator, error=exc)
        display_name = self._storage.resolve_display_name(locator)
        return OpenResult(locator=locator, document_id=self.open(locator, display_name, ""))

    def set_active(self, document_id: DocumentId) -> Document | None:
        document = self._documents.get(document_id)
        if document is None:
            self._missing(document_id, "set_active")
            return None
        self._activate(document_id)
        return document

    def set_active_index(self, index: int) -> Document | None:
        if not 0 <= index < len(self._order):
            self._missing(f"#{index}", "set_active_index")
            return None
        return self.set_active(self._order[index])

    def set_next_untitled_index(self, value: int) -> None:
        """Raise the untitled counter when restoring a previous session."""

        self._untitled_counter = max(self._untitled_counter, value, 1)

    # ------------------------------------------------------------------
    # Editing widget notifications (fire-and-forget)
    # ------------------------------------------------------------------
    def mark_dirty(self, document_id: DocumentId, content: str | None = None) -> None:
        """Handle a content-changed notification from the editing widget."""

        document = self._documents.get(document_id)
        if document is None:
            LOGGER.debug("Ignoring content change for closed document %s", document_id)
            return
        was_dirty = document.dirty
        document.apply_content_change(content)
        self._bus.publish(
            DocumentModified(document_id=document_id, version=document.version, became_dirty=not was_dirty)
        )

    def update_cursor(self, document_id: DocumentId, line: int, column: int) -> None:
        document = self._documents.get(document_id)
        if document is None:
            LOGGER.debug("Ignoring cursor move for closed document %s", document_id)
            return
        document.move_cursor(line, column)
        self._bus.publish(CursorMoved(document_id=document_id, line=line, column=column))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    async def save(self, document_id: DocumentId, locator_override: str | None = None) -> SaveResult:
        """Write a document to storage.

        The target is ``locator_override``, else the document's own locator
        when it is persisted, else whatever the save-target picker returns.
        Only one save per document may be in flight. Any failure, including
        cancellation, leaves locator and dirty flag exactly as they were.
        """

        document = self._documents.get(document_id)
        if document is None:
            self._missing(document_id, "save")
            return self._save_failed(document_id, UnknownDocumentError(document_id))
        if document_id in self._saving:
            LOGGER.info("Rejecting save for %s: a save is already in progress", document.locator)
            return self._save_failed(document_id, SaveInProgressError(document_id))

        self._saving.add(document_id)
        try:
            target = locator_override
            if target is None and document.persisted:
                target = document.locator
            if target is None:
                if self._save_target_picker is None:
                    return self._save_failed(document_id, SaveTargetRequiredError(document_id))
                target = await self._save_target_picker(document)
                if not target:
                    LOGGER.debug("Save target picker dismissed for %s", document.locator)
                    return self._save_failed(document_id, SaveCancelledError(document_id))

            written = document.content
            encoding = document.encoding or self._encoding
            try:
                payload = document.bom + file_io.encode_text(written, encoding)
            except UnicodeEncodeError as exc:
                LOGGER.warning("Cannot encode %s as %s: %s", document.locator, encoding, exc.reason)
                return self._save_failed(document_id, StorageWriteError(target, f"not representable in {encoding}"))
            try:
                await self._storage.write(target, payload)
            except StorageError as exc:
                LOGGER.warning("Save of %s to %s failed: %s", document.locator, target, exc)
                return self._save_failed(document_id, exc)

            document.mark_saved(target, written, display_name=self._storage.resolve_display_name(target))
            LOGGER.debug("Saved %s (document_id=%s, dirty=%s)", target, document_id, document.dirty)
            self._bus.publish(DocumentSaved(document_id=document_id, locator=target, dirty=document.dirty))
            return SaveResult(document_id=document_id, locator=target)
        finally:
            self._saving.discard(document_id)

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------
    def request_close(self, document_id: DocumentId) -> CloseRequest | None:
        """Begin closing a document.

        Clean documents close immediately. Dirty ones return a request in
        :attr:`CloseState.DIRTY_PROMPT` whose decision is made by the caller.
        """

        document = self._documents.get(document_id)
        if document is None:
            self._missing(document_id, "request_close")
            return None
        if not document.dirty:
            self.perform_close(document_id)
            return CloseRequest(self, document_id, CloseState.CLEAN_CLOSE)
        LOGGER.debug("Close of dirty document %s awaits a decision", document.locator)
        return CloseRequest(self, document_id, CloseState.DIRTY_PROMPT)

    def perform_close(self, document_id: DocumentId) -> Document | None:
        """Remove a document unconditionally and repair the active pointer."""

        document = self._documents.get(document_id)
        if document is None:
            self._missing(document_id, "perform_close")
            return None

        index = self._order.index(document_id)
        previous_active = self.active_index
        self._order.pop(index)
        del self._documents[document_id]
        LOGGER.debug("Closed %s (document_id=%s, index=%d)", document.locator, document_id, index)
        self._bus.publish(DocumentClosed(document_id=document_id, index=index, locator=document.locator))

        if not self._order:
            self._active_id = None
            self.create_new()
        elif document_id == self._active_id:
            fallback = min(previous_active if previous_active is not None else 0, len(self._order) - 1)
            self._activate(self._order[fallback])
        return document

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _append(self, document: Document) -> int:
        self._documents[document.document_id] = document
        self._order.append(document.document_id)
        return len(self._order) - 1

    def _activate(self, document_id: DocumentId) -> None:
        if self._active_id == document_id:
            return
        self._active_id = document_id
        self._bus.publish(ActiveDocumentChanged(document_id=document_id, index=self._order.index(document_id)))

    def _reserve_untitled_index(self) -> int:
        value = self._untitled_counter
        self._untitled_counter += 1
        return value

    def _missing(self, document_id: str, operation: str) -> None:
        if self._strict:
            raise UnknownDocumentError(document_id)
        LOGGER.warning("%s ignored: unknown document %s", operation, document_id)

    def _save_failed(self, document_id: DocumentId, error: RedcodeError) -> SaveResult:
        self._bus.publish(DocumentSaveFailed(document_id=document_id, error=error))
        return SaveResult(document_id=document_id, error=error)
