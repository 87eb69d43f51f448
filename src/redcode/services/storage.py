"""Storage capability consumed by the session manager.

A storage backend reads, writes, names, creates and deletes content by
opaque locator. All I/O is asynchronous so the UI loop stays responsive;
failures surface as :class:`~redcode.errors.StorageError` subclasses.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Protocol, runtime_checkable

from ..editor.document_model import display_name_for
from ..errors import (
    StorageCreateError,
    StorageDeleteError,
    StorageReadError,
    StorageWriteError,
)

__all__ = ["Storage", "WriteMode", "MemoryStorage", "UNTITLED_NAME"]

LOGGER = logging.getLogger(__name__)
UNTITLED_NAME = "Untitled"


class WriteMode(Enum):
    """How a write treats existing content at the locator."""

    TRUNCATE = "wt"
    APPEND = "wa"


@runtime_checkable
class Storage(Protocol):
    """Interface implemented by storage backends."""

    async def read(self, locator: str) -> bytes:
        """Return the bytes stored at ``locator`` (``StorageReadError`` on failure)."""
        ...

    async def write(self, locator: str, data: bytes, *, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        """Persist ``data`` at ``locator`` (``StorageWriteError`` on failure)."""
        ...

    def resolve_display_name(self, locator: str) -> str:
        """Best-effort human name for ``locator``; never raises."""
        ...

    async def create(self, parent_locator: str, name: str, mime_type: str = "text/plain") -> str:
        """Create an empty entry under ``parent_locator`` and return its locator."""
        ...

    async def delete(self, locator: str) -> None:
        """Remove ``locator`` (``StorageDeleteError`` on failure)."""
        ...


class MemoryStorage:
    """Dictionary-backed storage keyed by ``scheme://parent/name`` style locators.

    Useful for scratch sessions and headless runs. ``read_only`` makes every
    mutation fail, mirroring a provider without write permission.
    """

    def __init__(self, entries: Dict[str, bytes] | None = None, *, read_only: bool = False) -> None:
        self._entries: Dict[str, bytes] = dict(entries or {})
        self._mime_types: Dict[str, str] = {}
        self._read_only = read_only

    @property
    def entries(self) -> Dict[str, bytes]:
        """Return a copy of the stored bytes keyed by locator."""

        return dict(self._entries)

    def mime_type(self, locator: str) -> str | None:
        return self._mime_types.get(locator)

    async def read(self, locator: str) -> bytes:
        try:
            return self._entries[locator]
        except KeyError as exc:
            raise StorageReadError(locator, "no such entry") from exc

    async def write(self, locator: str, data: bytes, *, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        if self._read_only:
            raise StorageWriteError(locator, "permission denied")
        if mode is WriteMode.APPEND:
            self._entries[locator] = self._entries.get(locator, b"") + bytes(data)
        else:
            self._entries[locator] = bytes(data)
        LOGGER.debug("MemoryStorage wrote %d bytes to %s (%s)", len(data), locator, mode.name)

    def resolve_display_name(self, locator: str) -> str:
        return display_name_for(locator, fallback=UNTITLED_NAME)

    async def create(self, parent_locator: str, name: str, mime_type: str = "text/plain") -> str:
        if self._read_only:
            raise StorageCreateError(f"{parent_locator}/{name}", "permission denied")
        if not name or "/" in name:
            raise StorageCreateError(f"{parent_locator}/{name}", "invalid name")
        locator = f"{parent_locator.rstrip('/')}/{name}"
        if locator in self._entries:
            raise StorageCreateError(locator, "already exists")
        self._entries[locator] = b""
        self._mime_types[locator] = mime_type
        return locator

    async def delete(self, locator: str) -> None:
        if self._read_only:
            raise StorageDeleteError(locator, "permission denied")
        if self._entries.pop(locator, None) is None:
            raise StorageDeleteError(locator, "no such entry")
        self._mime_types.pop(locator, None)
