"""Close-confirmation state machine for documents with unsaved changes."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import CloseFlowError, RedcodeError, UnknownDocumentError

if TYPE_CHECKING:  # pragma: no cover
    from .session import SaveResult, SessionManager

__all__ = ["CloseRequest", "CloseState"]

LOGGER = logging.getLogger(__name__)


class CloseState(Enum):
    CLEAN_CLOSE = "clean-close"
    DIRTY_PROMPT = "dirty-prompt"
    SAVING = "saving"
    SAVE_THEN_CLOSE = "save-then-close"
    DISCARD_THEN_CLOSE = "discard-then-close"
    CANCEL = "cancel"

    @property
    def terminal(self) -> bool:
        return self not in (CloseState.DIRTY_PROMPT, CloseState.SAVING)

    @property
    def closed(self) -> bool:
        return self in (CloseState.CLEAN_CLOSE, CloseState.SAVE_THEN_CLOSE, CloseState.DISCARD_THEN_CLOSE)


class CloseRequest:
    """Pending close of one document, resolved by exactly one user decision.

    A clean document is closed before the request is handed out, so the
    request starts in :attr:`CloseState.CLEAN_CLOSE`. A dirty one starts in
    :attr:`CloseState.DIRTY_PROMPT` and waits for :meth:`save_then_close`,
    :meth:`discard_then_close` or :meth:`cancel`. The decision may arrive at
    any later point; nothing happens to the document until it does.
    """

    def __init__(self, session: SessionManager, document_id: str, state: CloseState) -> None:
        self._session = session
        self._document_id = document_id
        self._state = state
        self._last_error: RedcodeError | None = None

    def __repr__(self) -> str:
        return f"CloseRequest(document_id={self._document_id!r}, state={self._state.name})"

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def state(self) -> CloseState:
        return self._state

    @property
    def needs_decision(self) -> bool:
        return self._state is CloseState.DIRTY_PROMPT

    @property
    def resolved(self) -> bool:
        return self._state.terminal

    @property
    def closed(self) -> bool:
        return self._state.closed

    @property
    def last_error(self) -> RedcodeError | None:
        """Error from the most recent failed save attempt, if any."""

        return self._last_error

    async def save_then_close(self, locator_override: str | None = None) -> SaveResult:
        """Save, and close only once storage confirms the write.

        A failed or cancelled save returns the request to the prompt state
        with the document still open, active and dirty. If the document was
        closed elsewhere while the prompt was open there is nothing left to
        save: the request resolves as closed without saving and the result
        carries an :class:`UnknownDocumentError`.
        """

        self._require_prompt("save_then_close")
        if not self._session.contains(self._document_id):
            from .session import SaveResult  # session imports this module

            LOGGER.info("Document %s was closed before it could be saved", self._document_id)
            self._last_error = UnknownDocumentError(self._document_id)
            self._state = CloseState.DISCARD_THEN_CLOSE
            return SaveResult(document_id=self._document_id, error=self._last_error)
        self._state = CloseState.SAVING
        try:
            result = await self._session.save(self._document_id, locator_override)
        except BaseException:
            # Includes asyncio.CancelledError; the document was not touched.
            self._state = CloseState.DIRTY_PROMPT
            raise

        if not result.ok:
            LOGGER.info("Keeping %s open: save failed (%s)", self._document_id, result.error)
            self._last_error = result.error
            self._state = CloseState.DIRTY_PROMPT
            return result

        self._last_error = None
        if self._session.contains(self._document_id):
            self._session.perform_close(self._document_id)
        self._state = CloseState.SAVE_THEN_CLOSE
        return result

    def discard_then_close(self) -> None:
        self._require_prompt("discard_then_close")
        if self._session.contains(self._document_id):
            self._session.perform_close(self._document_id)
        self._state = CloseState.DISCARD_THEN_CLOSE

    def cancel(self) -> None:
        self._require_prompt("cancel")
        self._state = CloseState.CANCEL

    def _require_prompt(self, decision: str) -> None:
        if self._state is not CloseState.DIRTY_PROMPT:
            raise CloseFlowError(f"Cannot {decision}: close request is in state {self._state.name}")
