"""Event bus connecting editor hosts to the split-string controller.

Hosts publish document lifecycle notifications; the controller subscribes
without holding references to concrete host classes.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Sequence, TypeVar

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .editor.document_model import ContentChange, TextDocument, TextEdit
    from .services.settings import Settings

LOGGER = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events published on the :class:`EventBus`."""

    #: Publishes of quiet events are not logged; they fire on every keystroke.
    quiet: ClassVar[bool] = False


@dataclass(slots=True)
class DocumentChanged(Event):
    """Emitted after a host applied changes to a document.

    Attributes:
        document: Snapshot of the document after all changes.
        changes: Change descriptions in application order; each range is in
            the coordinates of the text the change was applied to.
    """

    quiet: ClassVar[bool] = True

    document: "TextDocument"
    changes: tuple["ContentChange", ...]

    @property
    def uri(self) -> str:
        return self.document.uri


@dataclass(slots=True)
class DocumentClosed(Event):
    """Emitted when a document is closed and per-document state should go."""

    uri: str


@dataclass(slots=True)
class DocumentWillSave(Event):
    """Emitted before a document is persisted.

    Subscribers may contribute replacement edits against ``document``. The
    host applies every contributed edit as one batch and, only when that
    succeeds, invokes the ``on_applied`` callbacks that came with them.
    """

    document: "TextDocument"
    edits: list["TextEdit"] = field(default_factory=list)
    callbacks: list[Callable[[], None]] = field(default_factory=list)

    @property
    def uri(self) -> str:
        return self.document.uri

    def contribute(self, edits: Sequence["TextEdit"], on_applied: Callable[[], None] | None = None) -> None:
        self.edits.extend(edits)
        if on_applied is not None:
            self.callbacks.append(on_applied)

    def notify_applied(self) -> None:
        for callback in list(self.callbacks):
            callback()


@dataclass(slots=True)
class DocumentSaved(Event):
    """Emitted after a document was written."""

    uri: str


@dataclass(slots=True)
class ActiveEditorChanged(Event):
    """Emitted when focus moves to another editor (``None`` when none is active)."""

    uri: str | None


@dataclass(slots=True)
class SettingsChanged(Event):
    """Emitted when the feature settings are replaced."""

    settings: "Settings"


class EventBus:
    """Synchronous publish/subscribe hub keyed by exact event type.

    Handlers run in subscription order, which is also the order in which
    save-time edits are contributed. Bound methods are held weakly so a
    controller that is garbage collected without :meth:`unsubscribe` drops
    out on the next publish. A handler that raises is logged and the rest
    still run.

    Not thread-safe; hosts publish from their UI thread.
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: dict[type[Event], list[_Subscription]] = {}

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._subscriptions.setdefault(event_type, []).append(_Subscription.wrap(handler))
        LOGGER.debug("%s subscribed to %s", _describe(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Drop the earliest subscription of ``handler``; unknown handlers are ignored."""
        subscriptions = self._subscriptions.get(event_type, [])
        for index, subscription in enumerate(subscriptions):
            if subscription.target() == handler:
                del subscriptions[index]
                return

    def publish(self, event: Event) -> None:
        event_type = type(event)
        # Handlers may unsubscribe while the event is delivered.
        subscriptions = list(self._subscriptions.get(event_type, ()))
        if not event.quiet:
            LOGGER.debug("Publishing %s to %d handler(s)", event_type.__name__, len(subscriptions))

        collected = False
        for subscription in subscriptions:
            handler = subscription.target()
            if handler is None:
                collected = True
                continue
            try:
                handler(event)
            except Exception:
                LOGGER.exception("%s failed while handling %s", _describe(handler), event_type.__name__)

        if collected:
            self._subscriptions[event_type] = [
                item for item in self._subscriptions.get(event_type, []) if item.target() is not None
            ]

    def clear(self) -> None:
        self._subscriptions.clear()

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is not None:
            return len(self._subscriptions.get(event_type, []))
        return sum(len(items) for items in self._subscriptions.values())


@dataclass(frozen=True, slots=True)
class _Subscription:
    reference: Any
    weak: bool

    @classmethod
    def wrap(cls, handler: Handler) -> _Subscription:
        if getattr(handler, "__self__", None) is not None and hasattr(handler, "__func__"):
            return cls(weakref.WeakMethod(handler), weak=True)
        return cls(handler, weak=False)

    def target(self) -> Handler | None:
        return self.reference() if self.weak else self.reference


def _describe(handler: Handler) -> str:
    owner = getattr(handler, "__self__", None)
    if owner is not None:
        return f"{type(owner).__name__}.{getattr(handler, '__name__', '?')}"
    return getattr(handler, "__qualname__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentChanged",
    "DocumentClosed",
    "DocumentWillSave",
    "DocumentSaved",
    "ActiveEditorChanged",
    "SettingsChanged",
]
