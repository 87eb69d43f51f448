"""Editor core: documents, language classification and the session manager."""

from .closing import CloseRequest, CloseState
from .document_model import CursorPosition, Document, TabSummary
from .languages import Language, classify
from .session import OpenResult, SaveResult, SessionManager

__all__ = [
    "CloseRequest",
    "CloseState",
    "CursorPosition",
    "Document",
    "Language",
    "OpenResult",
    "SaveResult",
    "SessionManager",
    "TabSummary",
    "classify",
]
