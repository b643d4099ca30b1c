"""Toggle command, save-time collapse, and tracking decorations.

:class:`SplitStringsController` wires the string engine to an editor host. It
owns the :class:`~splitstrings.strings.tracking.TrackedStringStore` for the
session and listens to document lifecycle events on the :class:`EventBus`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from .core.positions import LineRange, Position
from .editor.document_model import TextDocument, TextEdit
from .editor.host import EditorHost, EditorView
from .events import (
    ActiveEditorChanged,
    DocumentChanged,
    DocumentClosed,
    DocumentWillSave,
    EventBus,
    SettingsChanged,
)
from .services.settings import Settings
from .strings.attributes import AttributeContextDetector
from .strings.cursor import map_from_word, map_to_word
from .strings.locator import locate
from .strings.models import StringSpan
from .strings.tracking import TrackedStringStore
from .strings.transform import merge, split
from .utils.debounce import Debouncer, Scheduler
from .utils.logging import log_context

LOGGER = logging.getLogger(__name__)

NOT_IN_STRING_MESSAGE = "Cursor is not inside a string literal"
HOVER_MESSAGE = "This string will be collapsed to single line on save (if auto-collapse is enabled)"


class ToggleOutcome(str, Enum):
    SPLIT = "split"
    MERGED = "merged"
    NO_STRING = "no_string"
    NO_EDITOR = "no_editor"
    REJECTED = "rejected"


class SplitStringsController:
    """Implements the toggle command on top of an :class:`EditorHost`.

    Without a ``scheduler`` decorations are refreshed synchronously; with one,
    refreshes after edits are debounced by ``settings.decoration_delay``.
    """

    def __init__(
        self,
        host: EditorHost,
        *,
        bus: EventBus,
        store: TrackedStringStore | None = None,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        detector: AttributeContextDetector | None = None,
    ) -> None:
        self._host = host
        self._bus = bus
        self._store = store if store is not None else TrackedStringStore()
        self._settings = settings or Settings()
        self._detector = detector
        self._debouncer = (
            Debouncer(self._settings.decoration_delay, self.refresh_decorations, scheduler)
            if scheduler is not None
            else None
        )
        self._subscriptions = (
            (DocumentChanged, self.handle_document_changed),
            (DocumentWillSave, self.handle_will_save),
            (DocumentClosed, self.handle_document_closed),
            (ActiveEditorChanged, self.handle_active_editor_changed),
            (SettingsChanged, self.handle_settings_changed),
        )
        for event_type, handler in self._subscriptions:
            bus.subscribe(event_type, handler)

    @property
    def store(self) -> TrackedStringStore:
        return self._store

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def tracking_enabled(self) -> bool:
        return self._settings.auto_collapse_on_save

    # ------------------------------------------------------------------
    # Toggle command
    # ------------------------------------------------------------------
    def toggle(self) -> ToggleOutcome:
        """Split or merge the literal under the cursor of the active editor."""

        editor = self._host.active_editor()
        if editor is None:
            return ToggleOutcome.NO_EDITOR

        document = editor.document()
        position = editor.cursor()
        with log_context(command="toggle", uri=document.uri, cursor=f"{position.line}:{position.character}"):
            span = locate(document.lines, position)
            if span is None:
                LOGGER.debug("No string literal under the cursor")
                self._host.show_information(NOT_IN_STRING_MESSAGE)
                return ToggleOutcome.NO_STRING

            if span.is_multiline:
                return self._merge(editor, document, span, position)
            return self._split(editor, document, span, position)

    def _split(self, editor: EditorView, document: TextDocument, span: StringSpan, position: Position) -> ToggleOutcome:
        word = map_to_word(span, position)
        result = split(span, document, self._detector)
        if not editor.apply_edits([TextEdit(span.range, result.text)]):
            LOGGER.warning("Split of literal at %s in %s was rejected", span.start.to_tuple(), document.uri)
            return ToggleOutcome.REJECTED

        if self.tracking_enabled:
            lines = result.text.split("\n")
            tracked = StringSpan(
                start=span.start,
                end=Position(span.start.line + len(lines) - 1, len(lines[-1])),
                quote=result.quote,
                content=result.text[len(result.quote) : len(result.text) - len(result.quote)],
                is_multiline=True,
                original_quote=result.original_quote,
            )
            self._store.track(editor.document(), tracked)

        editor.set_cursor(map_from_word(result.text, span.start, word, was_multiline=False))
        LOGGER.info("Split literal at %s in %s", span.start.to_tuple(), document.uri)
        self._schedule_refresh()
        return ToggleOutcome.SPLIT

    def _merge(self, editor: EditorView, document: TextDocument, span: StringSpan, position: Position) -> ToggleOutcome:
        word = map_to_word(span, position)
        entry = self._store.lookup(document, span)
        if entry is not None and entry.original_quote:
            span = span.with_original_quote(entry.original_quote)
        text = merge(span, document)
        if not editor.apply_edits([TextEdit(span.range, text)]):
            LOGGER.warning("Merge of literal at %s in %s was rejected", span.start.to_tuple(), document.uri)
            return ToggleOutcome.REJECTED

        # The entry's boundaries were shifted by the edit itself; drop it by identity.
        if entry is not None:
            self._store.discard(document.uri, entry)

        editor.set_cursor(map_from_word(text, span.start, word, was_multiline=True))
        LOGGER.info("Merged literal at %s in %s", span.start.to_tuple(), document.uri)
        self._schedule_refresh()
        return ToggleOutcome.MERGED

    # ------------------------------------------------------------------
    # Save-time collapse
    # ------------------------------------------------------------------
    def collapse_edits(self, document: TextDocument) -> list[TextEdit]:
        if not self.tracking_enabled:
            return []
        return self._store.collapse_all(document)

    def handle_will_save(self, event: DocumentWillSave) -> None:
        uri = event.uri
        with log_context(command="collapse", uri=uri):
            edits = self.collapse_edits(event.document)
            if not edits:
                return
            LOGGER.info("Collapsing %d split string(s) before save", len(edits))
            event.contribute(edits, on_applied=lambda: self._store.clear(uri))

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    def handle_document_changed(self, event: DocumentChanged) -> None:
        if not self.tracking_enabled or event.uri not in self._store:
            return
        self._store.on_document_change(event.document, event.changes)
        self._schedule_refresh()

    def handle_document_closed(self, event: DocumentClosed) -> None:
        self._store.clear(event.uri)

    def handle_active_editor_changed(self, event: ActiveEditorChanged) -> None:
        if event.uri is not None:
            self.refresh_decorations()

    def handle_settings_changed(self, event: SettingsChanged) -> None:
        previous = self._settings
        self._settings = event.settings
        if self._debouncer is not None:
            self._debouncer.delay = event.settings.decoration_delay
        if previous.auto_collapse_on_save and not self.tracking_enabled:
            LOGGER.info("Auto-collapse disabled; forgetting %d tracked string(s)", len(self._store))
            self._store.clear_all()
        self.refresh_decorations()

    # ------------------------------------------------------------------
    # Decorations
    # ------------------------------------------------------------------
    def decoration_ranges(self, document: TextDocument) -> list[LineRange]:
        if not self.tracking_enabled:
            return []
        return [LineRange(span.start.line, span.end.line) for span in self._store.find_live(document)]

    def refresh_decorations(self, editor: EditorView | None = None) -> None:
        target = editor or self._host.active_editor()
        if target is None:
            return
        ranges: Sequence[LineRange] = self.decoration_ranges(target.document())
        target.set_decorations(ranges, HOVER_MESSAGE)

    def _schedule_refresh(self) -> None:
        if self._debouncer is None:
            self.refresh_decorations()
        else:
            self._debouncer.trigger()

    def dispose(self) -> None:
        for event_type, handler in self._subscriptions:
            self._bus.unsubscribe(event_type, handler)
        if self._debouncer is not None:
            self._debouncer.cancel()


__all__ = ["SplitStringsController", "ToggleOutcome", "NOT_IN_STRING_MESSAGE", "HOVER_MESSAGE"]
