"""Dataclasses representing open document state and tab snapshots."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from .languages import Language

__all__ = ["CursorPosition", "Document", "TabSummary", "display_name_for"]

DocumentId = str


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


def _generate_document_id() -> DocumentId:
    return uuid.uuid4().hex


def display_name_for(locator: str | None, fallback: str = "Untitled") -> str:
    """Return the trailing path segment of ``locator`` used as a tab label."""

    trimmed = (locator or "").replace("\\", "/").rstrip("/")
    if not trimmed:
        return fallback
    segment = trimmed.rsplit("/", 1)[-1]
    return segment or fallback


@dataclass(slots=True, frozen=True)
class CursorPosition:
    """Zero-based caret location reported by the editing widget."""

    line: int = 0
    column: int = 0

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise ValueError(f"Cursor position must be non-negative: ({self.line}, {self.column})")

    def as_tuple(self) -> tuple[int, int]:
        return (self.line, self.column)


@dataclass(slots=True)
class Document:
    """State for one open file: content snapshot, language, dirty flag and caret."""

    locator: str
    content: str = ""
    language: Language = Language.PLAIN_TEXT
    dirty: bool = False
    cursor: CursorPosition = field(default_factory=CursorPosition)
    display_name: str = ""
    persisted: bool = False
    untitled_index: int | None = None
    encoding: str | None = None
    bom: bytes = b""
    document_id: DocumentId = field(default_factory=_generate_document_id)
    version: int = 1
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.content is None:
            self.content = ""
        if not self.display_name:
            self.display_name = display_name_for(self.locator)

    @property
    def title(self) -> str:
        """Tab label, prefixed with ``*`` while there are unsaved changes."""

        return f"*{self.display_name}" if self.dirty else self.display_name

    def apply_content_change(self, content: str | None = None) -> None:
        """Record an edit notification; ``content`` replaces the snapshot when given."""

        if content is not None:
            self.content = content
        self.dirty = True
        self.version += 1
        self.updated_at = _utcnow()

    def move_cursor(self, line: int, column: int) -> None:
        self.cursor = CursorPosition(line, column)

    def mark_saved(self, locator: str, written: str, *, display_name: str | None = None) -> None:
        """Flip to the persisted state after ``written`` reached ``locator``.

        Edits that arrived while the write was in flight keep the document dirty.
        """

        self.locator = locator
        self.persisted = True
        self.display_name = display_name or display_name_for(locator)
        self.dirty = self.content != written

    def snapshot(self) -> Dict[str, Any]:
        """Return a serializable description of the document."""

        payload: Dict[str, Any] = {
            "document_id": self.document_id,
            "locator": self.locator,
            "display_name": self.display_name,
            "language": self.language.tag,
            "dirty": self.dirty,
            "cursor": self.cursor.as_tuple(),
            "persisted": self.persisted,
            "encoding": self.encoding,
            "version": self.version,
        }
        if self.untitled_index is not None:
            payload["untitled_index"] = self.untitled_index
        return payload


@dataclass(slots=True, frozen=True)
class TabSummary:
    """Lightweight view of a document's display metadata for the tab strip."""

    document_id: DocumentId
    index: int
    display_name: str
    title: str
    locator: str
    language: Language
    dirty: bool
    active: bool
