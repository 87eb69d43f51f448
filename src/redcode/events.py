"""Typed publish/subscribe bus and the session-changed notifications.

The presentation layer subscribes here instead of holding references into
the session manager, so tab strips and status bars refresh from events.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for bus events; subclasses are slotted dataclasses."""


# High-frequency event types that should not log each publish
_QUIET_EVENT_TYPES: set[type] = set()


# =============================================================================
# Session events
# =============================================================================


@dataclass(slots=True)
class DocumentCreated(Event):
    """An untitled document was inserted at ``index``."""

    document_id: str
    index: int
    locator: str


@dataclass(slots=True)
class DocumentOpened(Event):
    """A document read from storage was inserted at ``index``."""

    document_id: str
    index: int
    locator: str
    language: str


@dataclass(slots=True)
class DocumentClosed(Event):
    """The document previously at ``index`` was removed from the session."""

    document_id: str
    index: int
    locator: str


@dataclass(slots=True)
class ActiveDocumentChanged(Event):
    """The active pointer moved to ``document_id`` at ``index``."""

    document_id: str
    index: int


@dataclass(slots=True)
class DocumentSaved(Event):
    """A save reached storage; ``locator`` is the resolved target."""

    document_id: str
    locator: str
    dirty: bool = False


@dataclass(slots=True)
class DocumentSaveFailed(Event):
    """A save was refused or the storage write failed."""

    document_id: str
    error: Exception


@dataclass(slots=True)
class DocumentModified(Event):
    """The editing widget reported a content change.

    ``became_dirty`` is set only on the edit that flipped a clean document dirty.
    """

    document_id: str
    version: int
    became_dirty: bool = False


@dataclass(slots=True)
class CursorMoved(Event):
    """The editing widget reported a caret move (zero-based)."""

    document_id: str
    line: int
    column: int


_QUIET_EVENT_TYPES.update({DocumentModified, CursorMoved})


# =============================================================================
# Bus
# =============================================================================


class EventBus(Generic[E]):
    """Synchronous publish/subscribe dispatcher keyed by exact event type.

    Bound-method handlers are held weakly so a closed window or dropped
    controller does not keep receiving events; plain functions and lambdas
    are held strongly. Not thread-safe: publish from the UI event loop only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for ``event_type``; duplicates fire twice."""

        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for position, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(position)
                logger.debug("Unsubscribed %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to its handlers in registration order.

        A handler that raises is logged and skipped; delivery continues.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        quiet = event_type in _QUIET_EVENT_TYPES
        if not handlers:
            if not quiet:
                logger.debug("No handlers for %s", event_type.__name__)
            return
        if not quiet:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s", _handler_name(handler), event_type.__name__
                )
        for handler_ref in dead:
            try:
                handlers.remove(handler_ref)
            except ValueError:  # pragma: no cover - removed by a handler meanwhile
                pass

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handler count for ``event_type``, or across all types."""

        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, target: Any, is_weak: bool) -> None:
        self._ref = target
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if self._is_weak:
            return self._ref()
        return self._ref

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentCreated",
    "DocumentOpened",
    "DocumentClosed",
    "ActiveDocumentChanged",
    "DocumentSaved",
    "DocumentSaveFailed",
    "DocumentModified",
    "CursorMoved",
]
