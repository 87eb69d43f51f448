"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from redcode.editor.document_model import CursorPosition
from redcode.editor.languages import Language
from redcode.events import Event, EventBus
from redcode.services.storage import MemoryStorage, WriteMode


class GatedStorage(MemoryStorage):
    """Memory storage whose writes park until ``release()`` is called."""

    def __init__(self, entries: dict[str, bytes] | None = None) -> None:
        super().__init__(entries)
        self.attempts: list[tuple[str, bytes]] = []
        self._gate = asyncio.Event()
        self._started = asyncio.Event()

    async def write(self, locator: str, data: bytes, *, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        self.attempts.append((locator, bytes(data)))
        self._started.set()
        await self._gate.wait()
        await super().write(locator, data, mode=mode)

    async def wait_started(self) -> None:
        await self._started.wait()

    def release(self) -> None:
        self._gate.set()


class EventRecorder:
    """Collects every published event of the subscribed types, in order."""

    def __init__(self, bus: EventBus, *event_types: type[Event]) -> None:
        self.events: list[Event] = []
        self._handler: Callable[[Any], None] = self.events.append
        for event_type in event_types:
            bus.subscribe(event_type, self._handler)

    def of_type(self, event_type: type[Event]) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]

    def types(self) -> list[type[Event]]:
        return [type(event) for event in self.events]


class StubEditorWidget:
    """In-memory stand-in for the editing widget."""

    def __init__(self) -> None:
        self.content = ""
        self.language: Language | None = None
        self.cursor: CursorPosition | None = None
        self.loads = 0
        self._content_listeners: list[Callable[[str], None]] = []
        self._cursor_listeners: list[Callable[[int, int], None]] = []

    def load(self, content: str, language: Language, cursor: CursorPosition) -> None:
        self.loads += 1
        self.content = content
        self.language = language
        self.cursor = cursor
        # A real widget fires change signals while loading text.
        self.type_text(content)
        self.move(cursor.line, cursor.column)

    def add_content_listener(self, listener: Callable[[str], None]) -> None:
        self._content_listeners.append(listener)

    def add_cursor_listener(self, listener: Callable[[int, int], None]) -> None:
        self._cursor_listeners.append(listener)

    def type_text(self, text: str) -> None:
        self.content = text
        for listener in list(self._content_listeners):
            listener(text)

    def move(self, line: int, column: int) -> None:
        for listener in list(self._cursor_listeners):
            listener(line, column)
