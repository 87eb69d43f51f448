"""Byte-level file helpers and text decoding used by the storage backends."""

from __future__ import annotations

import codecs
import locale
import os
import tempfile
from pathlib import Path
from urllib.parse import unquote, urlparse

__all__ = [
    "decode_text",
    "encode_text",
    "detect_encoding",
    "split_bom",
    "locator_to_path",
    "path_to_locator",
    "read_bytes",
    "write_bytes",
    "append_bytes",
]

# (mark, codec for the bytes after it, codec that consumes the mark itself).
# Longest marks first: the UTF-32 LE mark starts with the UTF-16 LE one.
_BOM_CODECS: tuple[tuple[bytes, str, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le", "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32-be", "utf-32"),
    (codecs.BOM_UTF8, "utf-8", "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16-le", "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16-be", "utf-16"),
)
_FILE_SCHEME = "file"


def split_bom(raw: bytes) -> tuple[bytes, str | None]:
    """Return the byte-order mark leading ``raw`` and the BOM-less codec it implies.

    Without a mark the result is ``(b"", None)``. Writing ``bom + text.encode(codec)``
    reproduces the original bytes of an unmodified document.
    """

    for bom, encoding, _ in _BOM_CODECS:
        if raw.startswith(bom):
            return bom, encoding
    return b"", None


def detect_encoding(raw: bytes, default: str = "utf-8") -> str:
    """Guess the encoding of ``raw`` from its BOM, then by trial decoding."""

    for bom, _, encoding in _BOM_CODECS:
        if raw.startswith(bom):
            return encoding

    preferred = locale.getpreferredencoding(False) or default
    seen: set[str] = set()
    for candidate in (default, "utf-8", preferred, "latin-1"):
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        try:
            raw.decode(candidate)
            return candidate
        except (UnicodeDecodeError, LookupError):
            continue
    return default


def decode_text(
    raw: bytes,
    *,
    encoding: str | None = None,
    errors: str = "strict",
    normalize_newlines: bool = False,
) -> str:
    """Decode storage bytes into editor text.

    Newlines are kept as stored unless ``normalize_newlines`` is set, so an
    unmodified document writes back the bytes it was read from.
    """

    detected = encoding or detect_encoding(raw)
    text = raw.decode(detected, errors=errors)
    if text.startswith("\ufeff"):
        text = text[1:]
    if normalize_newlines and "\r" in text:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text


def encode_text(text: str, encoding: str = "utf-8") -> bytes:
    return text.encode(encoding)


def locator_to_path(locator: str) -> Path:
    """Translate a plain path or ``file://`` URI into a :class:`Path`."""

    parsed = urlparse(locator)
    if parsed.scheme == _FILE_SCHEME:
        return Path(unquote(parsed.path)).expanduser()
    return Path(locator).expanduser()


def path_to_locator(path: Path | str) -> str:
    return str(Path(path).expanduser().resolve())


def read_bytes(path: Path | str) -> bytes:
    return Path(path).read_bytes()


def write_bytes(path: Path | str, data: bytes, *, atomic: bool = True) -> Path:
    """Replace the contents of ``path`` with ``data``.

    Atomic writes go to a sibling temp file which then replaces the target,
    so a failed write never leaves a truncated file behind.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if not atomic:
        with target.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        return target

    descriptor, tmp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(descriptor, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def append_bytes(path: Path | str, data: bytes) -> Path:
    target = Path(path)
    with target.open("ab") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    return target
