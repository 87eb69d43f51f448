"""Exception hierarchy shared by the session core and storage backends.

Storage backends raise :class:`StorageError` subclasses. The session manager
catches them at its storage-facing seams and hands them back inside result
objects, so callers can branch on the error type without ``try`` blocks.
"""

from __future__ import annotations

__all__ = [
    "RedcodeError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "StorageCreateError",
    "StorageDeleteError",
    "SessionError",
    "UnknownDocumentError",
    "SaveError",
    "SaveInProgressError",
    "SaveCancelledError",
    "SaveTargetRequiredError",
    "CloseFlowError",
]


class RedcodeError(Exception):
    """Base class for all application errors."""


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class StorageError(RedcodeError):
    """A storage operation on ``locator`` failed."""

    operation = "access"

    def __init__(self, locator: str, reason: str | None = None) -> None:
        self.locator = locator
        self.reason = reason or "unknown error"
        super().__init__(f"Unable to {self.operation} {locator!r}: {self.reason}")


class StorageReadError(StorageError):
    operation = "read"


class StorageWriteError(StorageError):
    operation = "write"


class StorageCreateError(StorageError):
    operation = "create"


class StorageDeleteError(StorageError):
    operation = "delete"


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------


class SessionError(RedcodeError):
    """Base class for session-manager failures."""


class UnknownDocumentError(SessionError, KeyError):
    """Raised when a command references a document that is no longer open."""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(f"Unknown document_id: {document_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class SaveError(SessionError):
    """A save request was refused before reaching storage."""

    def __init__(self, document_id: str, message: str) -> None:
        self.document_id = document_id
        super().__init__(message)


class SaveInProgressError(SaveError):
    """Another save for the same document has not finished yet."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id, f"A save is already in progress for {document_id}")


class SaveCancelledError(SaveError):
    """The user dismissed the save-location picker."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id, f"Save cancelled for {document_id}")


class SaveTargetRequiredError(SaveError):
    """An untitled document was saved without a target locator."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id, f"No save location for untitled document {document_id}")


class CloseFlowError(SessionError):
    """A close decision was issued in a state that does not accept it."""
