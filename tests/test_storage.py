"""Tests for the in-memory and filesystem storage backends."""

from __future__ import annotations

from pathlib import Path

import pytest

from redcode.errors import (
    StorageCreateError,
    StorageDeleteError,
    StorageReadError,
    StorageWriteError,
)
from redcode.services.file_storage import LocalFileStorage
from redcode.services.storage import MemoryStorage, Storage, WriteMode


def test_backends_satisfy_protocol() -> None:
    assert isinstance(MemoryStorage(), Storage)
    assert isinstance(LocalFileStorage(), Storage)


# ----------------------------------------------------------------------
# MemoryStorage
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_memory_read_write_append() -> None:
    storage = MemoryStorage()

    await storage.write("mem://a/log.txt", b"one\n")
    await storage.write("mem://a/log.txt", b"two\n", mode=WriteMode.APPEND)

    assert await storage.read("mem://a/log.txt") == b"one\ntwo\n"


@pytest.mark.asyncio
async def test_memory_missing_entry() -> None:
    storage = MemoryStorage()

    with pytest.raises(StorageReadError) as excinfo:
        await storage.read("mem://a/missing")

    assert str(excinfo.value) == "Unable to read 'mem://a/missing': no such entry"


@pytest.mark.asyncio
async def test_memory_create_and_delete() -> None:
    storage = MemoryStorage()

    locator = await storage.create("mem://a/", "new.md", "text/markdown")
    with pytest.raises(StorageCreateError):
        await storage.create("mem://a", "new.md")
    with pytest.raises(StorageCreateError):
        await storage.create("mem://a", "nested/name.md")
    await storage.delete(locator)

    assert locator == "mem://a/new.md"
    assert storage.entries == {}
    assert storage.mime_type(locator) is None
    with pytest.raises(StorageDeleteError):
        await storage.delete(locator)


@pytest.mark.asyncio
async def test_memory_read_only_rejects_mutations() -> None:
    storage = MemoryStorage({"mem://a/x": b"x"}, read_only=True)

    assert await storage.read("mem://a/x") == b"x"
    with pytest.raises(StorageWriteError):
        await storage.write("mem://a/x", b"y")
    with pytest.raises(StorageCreateError):
        await storage.create("mem://a", "y")
    with pytest.raises(StorageDeleteError):
        await storage.delete("mem://a/x")


def test_memory_display_names() -> None:
    storage = MemoryStorage()

    assert storage.resolve_display_name("content://provider/docs/42") == "42"
    assert storage.resolve_display_name("") == "Untitled"


# ----------------------------------------------------------------------
# LocalFileStorage
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_local_write_then_read(tmp_path: Path) -> None:
    storage = LocalFileStorage()
    target = tmp_path / "nested" / "notes.txt"

    await storage.write(str(target), b"line 1\r\nline 2\r\n")

    assert target.read_bytes() == b"line 1\r\nline 2\r\n"
    assert await storage.read(str(target)) == b"line 1\r\nline 2\r\n"
    assert list(target.parent.glob("*.tmp")) == []


@pytest.mark.asyncio
async def test_local_file_uri_locators(tmp_path: Path) -> None:
    storage = LocalFileStorage(atomic_writes=False)
    target = tmp_path / "uri.txt"
    locator = target.as_uri()

    await storage.write(locator, b"abc")
    await storage.write(locator, b"def", mode=WriteMode.APPEND)

    assert target.read_bytes() == b"abcdef"
    assert storage.resolve_display_name(locator) == "uri.txt"


@pytest.mark.asyncio
async def test_local_read_missing_file(tmp_path: Path) -> None:
    storage = LocalFileStorage()

    with pytest.raises(StorageReadError) as excinfo:
        await storage.read(str(tmp_path / "missing.txt"))

    assert excinfo.value.locator == str(tmp_path / "missing.txt")


@pytest.mark.asyncio
async def test_local_write_into_file_parent_fails(tmp_path: Path) -> None:
    storage = LocalFileStorage()
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    with pytest.raises(StorageWriteError):
        await storage.write(str(blocker / "child.txt"), b"data")


@pytest.mark.asyncio
async def test_local_create_and_delete(tmp_path: Path) -> None:
    storage = LocalFileStorage()

    locator = await storage.create(str(tmp_path), "fresh.py")

    assert Path(locator).read_bytes() == b""
    with pytest.raises(StorageCreateError):
        await storage.create(str(tmp_path), "fresh.py")
    with pytest.raises(StorageCreateError):
        await storage.create(str(tmp_path), "../escape.py")

    await storage.delete(locator)

    assert not Path(locator).exists()
    with pytest.raises(StorageDeleteError):
        await storage.delete(locator)
