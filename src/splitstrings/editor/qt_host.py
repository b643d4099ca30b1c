"""PySide6 binding of the editor protocols for ``QPlainTextEdit`` widgets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from PySide6.QtGui import QColor, QTextCharFormat, QTextCursor, QTextFormat
from PySide6.QtWidgets import QPlainTextEdit, QStatusBar, QTextEdit

from ..core.positions import LineRange, Position
from ..events import ActiveEditorChanged, DocumentChanged, DocumentClosed, EventBus, SettingsChanged
from ..services.settings import DecorationStyle, parse_css_color
from .document_model import TextDocument, TextEdit
from .edits import EditApplyError, apply_text_edits, change_between
from .host import save_document

LOGGER = logging.getLogger(__name__)

_STATUS_TIMEOUT_MS = 5000


def _qcolor(value: str, fallback: tuple[int, int, int, int]) -> QColor:
    try:
        red, green, blue, alpha = parse_css_color(value)
    except ValueError:
        LOGGER.warning("Ignoring unsupported decoration colour %r", value)
        red, green, blue, alpha = fallback
    return QColor(red, green, blue, alpha)


def to_qt_offset(text: str, offset: int) -> int:
    """Convert a code-point offset into *text* to the UTF-16 position Qt uses."""

    return len(text[:offset].encode("utf-16-le")) // 2


def from_qt_offset(text: str, position: int) -> int:
    """Convert a Qt (UTF-16) position in *text* back to a code-point offset."""

    units = 0
    for index, char in enumerate(text):
        if units >= position:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
    return len(text)


class QtEditorView:
    """:class:`~splitstrings.editor.host.EditorView` over a ``QPlainTextEdit``.

    Programmatic batches run inside one ``QTextCursor`` edit block so they undo
    as a single step. User typing is observed through ``contentsChanged`` and
    reported as a minimal change computed against a shadow copy of the text.
    """

    def __init__(
        self,
        editor: QPlainTextEdit,
        bus: EventBus,
        *,
        uri: str,
        language_id: str = "plaintext",
        style: DecorationStyle | None = None,
        path: Path | None = None,
    ) -> None:
        self._editor = editor
        self._bus = bus
        self._uri = uri
        self._language_id = language_id
        self._style = style or DecorationStyle()
        self._version = 1
        self._shadow = editor.toPlainText()
        self._applying = False
        self.path = path
        self.decorations: tuple[LineRange, ...] = ()
        self.hover_message = ""
        editor.document().contentsChanged.connect(self._handle_contents_changed)

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def widget(self) -> QPlainTextEdit:
        return self._editor

    def set_style(self, style: DecorationStyle) -> None:
        self._style = style
        self.set_decorations(self.decorations, self.hover_message)

    def handle_settings_changed(self, event: SettingsChanged) -> None:
        self.set_style(event.settings.decoration)

    def document(self) -> TextDocument:
        return TextDocument(
            uri=self._uri,
            text=self._editor.toPlainText(),
            language_id=self._language_id,
            version=self._version,
        )

    def cursor(self) -> Position:
        snapshot = self.document()
        offset = from_qt_offset(snapshot.text, self._editor.textCursor().position())
        return snapshot.position_at(offset)

    def set_cursor(self, position: Position) -> None:
        snapshot = self.document()
        offset = snapshot.offset_at(position)
        cursor = self._editor.textCursor()
        cursor.setPosition(to_qt_offset(snapshot.text, offset))
        self._editor.setTextCursor(cursor)

    def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        if self._editor.isReadOnly():
            LOGGER.warning("Rejected %d edit(s) on read-only %s", len(edits), self._uri)
            return False
        snapshot = self.document()
        try:
            result = apply_text_edits(snapshot, edits)
        except EditApplyError as exc:
            LOGGER.warning("Rejected edit batch on %s: %s (%s)", self._uri, exc, exc.reason)
            return False

        ordered = sorted(edits, key=lambda item: (item.range.start, item.range.end), reverse=True)
        text_document = self._editor.document()
        cursor = QTextCursor(text_document)
        text = snapshot.text
        self._applying = True
        try:
            cursor.beginEditBlock()
            for edit in ordered:
                cursor.setPosition(to_qt_offset(text, snapshot.offset_at(edit.range.start)))
                cursor.setPosition(
                    to_qt_offset(text, snapshot.offset_at(edit.range.end)),
                    QTextCursor.MoveMode.KeepAnchor,
                )
                cursor.insertText(edit.new_text)
            cursor.endEditBlock()
            if self._editor.toPlainText() != result.text:
                LOGGER.error("Editor text diverged from the applied batch on %s; reverting", self._uri)
                if text_document.isUndoRedoEnabled():
                    text_document.undo()
                else:
                    self._editor.setPlainText(text)
                return False
        finally:
            self._applying = False
            self._shadow = self._editor.toPlainText()

        self._version += 1
        self._bus.publish(DocumentChanged(document=self.document(), changes=result.changes))
        return True

    def set_decorations(self, ranges: Sequence[LineRange], hover_message: str) -> None:
        self.decorations = tuple(ranges)
        self.hover_message = hover_message if self.decorations else ""
        background = _qcolor(self._style.background_color, (255, 200, 0, 25))

        text_document = self._editor.document()
        selections: list[QTextEdit.ExtraSelection] = []
        for line_range in self.decorations:
            for line in range(line_range.start_line, line_range.end_line + 1):
                block = text_document.findBlockByNumber(line)
                if not block.isValid():
                    break
                char_format = QTextCharFormat()
                char_format.setBackground(background)
                char_format.setToolTip(self.hover_message)
                cursor = QTextCursor(block)
                if self._style.whole_line:
                    char_format.setProperty(QTextFormat.Property.FullWidthSelection, True)
                else:
                    cursor.movePosition(QTextCursor.MoveOperation.EndOfBlock, QTextCursor.MoveMode.KeepAnchor)
                selection = QTextEdit.ExtraSelection()
                selection.cursor = cursor
                selection.format = char_format
                selections.append(selection)
        self._editor.setExtraSelections(selections)

    def save(self) -> str:
        text = save_document(self, self._bus, self.path)
        self._editor.document().setModified(False)
        return text

    def _handle_contents_changed(self) -> None:
        if self._applying:
            return
        before = self._shadow
        after = self._editor.toPlainText()
        change = change_between(before, after)
        if change is None:
            return
        self._shadow = after
        self._version += 1
        self._bus.publish(DocumentChanged(document=self.document(), changes=(change,)))


class QtEditorHost:
    """:class:`~splitstrings.editor.host.EditorHost` for one or more Qt editor views."""

    def __init__(self, bus: EventBus, *, status_bar: QStatusBar | None = None) -> None:
        self._bus = bus
        self._status_bar = status_bar
        self._views: dict[str, QtEditorView] = {}
        self._active: str | None = None
        self.messages: list[str] = []

    def add_view(self, view: QtEditorView, *, activate: bool = True) -> None:
        self._views[view.uri] = view
        if activate:
            self.activate(view.uri)

    def activate(self, uri: str | None) -> None:
        if uri is not None and uri not in self._views:
            raise KeyError(f"No editor view for {uri}")
        self._active = uri
        self._bus.publish(ActiveEditorChanged(uri=uri))

    def remove_view(self, uri: str) -> None:
        if self._views.pop(uri, None) is None:
            return
        self._bus.publish(DocumentClosed(uri=uri))
        if self._active == uri:
            self.activate(None)

    def active_editor(self) -> QtEditorView | None:
        if self._active is None:
            return None
        return self._views.get(self._active)

    def show_information(self, message: str) -> None:
        self.messages.append(message)
        if self._status_bar is not None:
            self._status_bar.showMessage(message, _STATUS_TIMEOUT_MS)
        else:
            LOGGER.info(message)


__all__ = ["QtEditorView", "QtEditorHost", "to_qt_offset", "from_qt_offset"]
