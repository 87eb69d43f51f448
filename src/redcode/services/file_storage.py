"""Filesystem storage backend addressing files by path or ``file://`` URI."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..editor.document_model import display_name_for
from ..errors import (
    StorageCreateError,
    StorageDeleteError,
    StorageReadError,
    StorageWriteError,
)
from ..utils import file_io
from .storage import UNTITLED_NAME, WriteMode

__all__ = ["LocalFileStorage"]

LOGGER = logging.getLogger(__name__)


class LocalFileStorage:
    """Storage backed by the local filesystem.

    Blocking calls run in a worker thread via :func:`asyncio.to_thread`.
    Truncating writes are atomic (temp file + replace).
    """

    def __init__(self, *, atomic_writes: bool = True) -> None:
        self._atomic_writes = atomic_writes

    async def read(self, locator: str) -> bytes:
        path = file_io.locator_to_path(locator)
        try:
            return await asyncio.to_thread(file_io.read_bytes, path)
        except OSError as exc:
            LOGGER.warning("Read failed for %s: %s", locator, exc)
            raise StorageReadError(locator, exc.strerror or str(exc)) from exc

    async def write(self, locator: str, data: bytes, *, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        path = file_io.locator_to_path(locator)
        try:
            if mode is WriteMode.APPEND:
                await asyncio.to_thread(file_io.append_bytes, path, data)
            else:
                await asyncio.to_thread(file_io.write_bytes, path, data, atomic=self._atomic_writes)
        except OSError as exc:
            LOGGER.warning("Write failed for %s: %s", locator, exc)
            raise StorageWriteError(locator, exc.strerror or str(exc)) from exc
        LOGGER.debug("Wrote %d bytes to %s (%s)", len(data), path, mode.name)

    def resolve_display_name(self, locator: str) -> str:
        try:
            name = file_io.locator_to_path(locator).name
        except (TypeError, ValueError):
            name = ""
        return name or display_name_for(locator, fallback=UNTITLED_NAME)

    async def create(self, parent_locator: str, name: str, mime_type: str = "text/plain") -> str:
        parent = file_io.locator_to_path(parent_locator)
        if not name or Path(name).name != name:
            raise StorageCreateError(str(parent / (name or "")), "invalid name")
        target = parent / name
        try:
            await asyncio.to_thread(_create_exclusive, target)
        except OSError as exc:
            raise StorageCreateError(str(target), exc.strerror or str(exc)) from exc
        LOGGER.debug("Created %s (%s)", target, mime_type)
        return str(target)

    async def delete(self, locator: str) -> None:
        path = file_io.locator_to_path(locator)
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as exc:
            raise StorageDeleteError(locator, exc.strerror or str(exc)) from exc


def _create_exclusive(target: Path) -> None:
    with target.open("xb"):
        pass
