"""Editor collaborator protocols and an in-memory host.

The controller talks to editors only through :class:`EditorView` and
:class:`EditorHost`. :class:`BufferHost` implements both on top of
:class:`~splitstrings.editor.document_model.TextDocument` snapshots; it backs the
command line and the test-suite.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence

from ..core.positions import LineRange, Position
from ..events import ActiveEditorChanged, DocumentChanged, DocumentClosed, DocumentSaved, DocumentWillSave, EventBus
from .document_model import TextDocument, TextEdit
from .edits import EditApplyError, apply_text_edits

LOGGER = logging.getLogger(__name__)


class EditorView(Protocol):
    """One open document with a cursor."""

    def document(self) -> TextDocument:
        ...

    def cursor(self) -> Position:
        ...

    def set_cursor(self, position: Position) -> None:
        ...

    def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        """Apply ``edits`` as one batch; ``False`` when the batch was rejected."""
        ...

    def set_decorations(self, ranges: Sequence[LineRange], hover_message: str) -> None:
        ...


class EditorHost(Protocol):
    def active_editor(self) -> EditorView | None:
        ...

    def show_information(self, message: str) -> None:
        ...


def save_document(view: EditorView, bus: EventBus, path: Path | None = None) -> str:
    """Publish the save lifecycle for ``view`` and return the text that was saved.

    Edits contributed to :class:`DocumentWillSave` are applied as one batch;
    their callbacks only run when the batch was accepted.
    """

    event = DocumentWillSave(document=view.document())
    bus.publish(event)
    if event.edits:
        if view.apply_edits(event.edits):
            event.notify_applied()
        else:
            LOGGER.warning("Save-time edits for %s were rejected", event.uri)
    text = view.document().text
    if path is not None:
        path.write_text(text, encoding="utf-8")
    bus.publish(DocumentSaved(uri=event.uri))
    return text


class BufferEditor:
    """Headless :class:`EditorView` over an immutable document snapshot."""

    def __init__(
        self,
        document: TextDocument,
        bus: EventBus,
        *,
        cursor: Position | None = None,
        path: Path | None = None,
    ) -> None:
        self._document = document
        self._bus = bus
        self._cursor = document.validate_position(cursor or Position(0, 0))
        self.path = path
        self.read_only = False
        self.decorations: tuple[LineRange, ...] = ()
        self.hover_message = ""

    @property
    def uri(self) -> str:
        return self._document.uri

    @property
    def text(self) -> str:
        return self._document.text

    def document(self) -> TextDocument:
        return self._document

    def cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, position: Position) -> None:
        self._cursor = self._document.validate_position(position)

    def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        if self.read_only:
            LOGGER.warning("Rejected %d edit(s) on read-only %s", len(edits), self.uri)
            return False
        try:
            result = apply_text_edits(self._document, edits)
        except EditApplyError as exc:
            LOGGER.warning("Rejected edit batch on %s: %s (%s)", self.uri, exc, exc.reason)
            return False
        self._document = self._document.with_text(result.text)
        self._cursor = self._document.validate_position(self._cursor)
        LOGGER.debug("Applied %d edit(s) to %s: %s", len(edits), self.uri, result.summary)
        self._bus.publish(DocumentChanged(document=self._document, changes=result.changes))
        return True

    def set_decorations(self, ranges: Sequence[LineRange], hover_message: str) -> None:
        self.decorations = tuple(ranges)
        self.hover_message = hover_message if self.decorations else ""

    def save(self) -> str:
        """Run the will-save round, write the text to :attr:`path` if set, and return it."""

        return save_document(self, self._bus, self.path)


class BufferHost:
    """Collection of :class:`BufferEditor` instances with one active editor."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._editors: dict[str, BufferEditor] = {}
        self._active: str | None = None
        self.messages: list[str] = []

    def open(
        self,
        uri: str,
        text: str,
        *,
        language_id: str = "plaintext",
        cursor: Position | None = None,
        path: Path | None = None,
    ) -> BufferEditor:
        document = TextDocument(uri=uri, text=text.replace("\r\n", "\n"), language_id=language_id)
        editor = BufferEditor(document, self._bus, cursor=cursor, path=path)
        self._editors[uri] = editor
        self.focus(uri)
        return editor

    def focus(self, uri: str | None) -> None:
        if uri is not None and uri not in self._editors:
            raise KeyError(f"No open editor for {uri}")
        self._active = uri
        self._bus.publish(ActiveEditorChanged(uri=uri))

    def close(self, uri: str) -> None:
        if self._editors.pop(uri, None) is None:
            return
        self._bus.publish(DocumentClosed(uri=uri))
        if self._active == uri:
            self.focus(None)

    def editor(self, uri: str) -> BufferEditor:
        return self._editors[uri]

    def active_editor(self) -> BufferEditor | None:
        if self._active is None:
            return None
        return self._editors.get(self._active)

    def show_information(self, message: str) -> None:
        LOGGER.info(message)
        self.messages.append(message)


__all__ = ["EditorView", "EditorHost", "BufferEditor", "BufferHost", "save_document"]
