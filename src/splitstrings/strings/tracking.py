"""Registry of literals that are currently in split form.

Entries remember where a split literal's quotes were and a fingerprint of its
content. Document edits shift the recorded boundaries; :meth:`find_live`
re-resolves them against the current text and only reports entries that are
still multi-line and unchanged in content.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from ..core.positions import Position
from ..editor.document_model import ContentChange, TextDocument, TextEdit
from .locator import extract_content, find_quote_position_in_line
from .models import StringSpan, TrackedEntry, fingerprint
from .transform import merge

LOGGER = logging.getLogger(__name__)


class TrackedStringStore:
    """Split literals per document uri.

    The store is owned by a controller; per-document state is dropped with
    :meth:`clear` when the document closes.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[TrackedEntry]] = {}

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __contains__(self, uri: object) -> bool:
        return bool(self._entries.get(uri)) if isinstance(uri, str) else False

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def track(self, document: TextDocument, span: StringSpan) -> TrackedEntry:
        """Insert or replace the entry whose boundaries match ``span``."""

        entry = TrackedEntry.from_span(document.uri, span)
        entries = self._entries.setdefault(document.uri, [])
        for index, existing in enumerate(entries):
            if existing.key == entry.key:
                entries[index] = entry
                break
        else:
            entries.append(entry)
        LOGGER.debug("Tracking %s in %s (%d tracked)", entry.key, document.uri, len(entries))
        return entry

    def untrack(self, document: TextDocument, span: StringSpan) -> bool:
        entries = self._entries.get(document.uri)
        if not entries:
            return False
        for index, existing in enumerate(entries):
            if existing.key == span.key:
                del entries[index]
                self._prune(document.uri)
                LOGGER.debug("Untracked %s in %s", span.key, document.uri)
                return True
        return False

    def discard(self, uri: str, entry: TrackedEntry) -> bool:
        """Remove ``entry`` itself, regardless of where its boundaries moved."""

        entries = self._entries.get(uri)
        if not entries:
            return False
        for index, existing in enumerate(entries):
            if existing is entry:
                del entries[index]
                self._prune(uri)
                return True
        return False

    def lookup(self, document: TextDocument, span: StringSpan) -> TrackedEntry | None:
        for entry in self._entries.get(document.uri, ()):
            if entry.key == span.key:
                return entry
        return None

    def entries(self, uri: str) -> list[TrackedEntry]:
        return list(self._entries.get(uri, ()))

    def clear(self, uri: str) -> None:
        removed = self._entries.pop(uri, None)
        if removed:
            LOGGER.debug("Cleared %d tracked string(s) for %s", len(removed), uri)

    def clear_all(self) -> None:
        self._entries.clear()

    def _prune(self, uri: str) -> None:
        if not self._entries.get(uri):
            self._entries.pop(uri, None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_live(self, document: TextDocument) -> list[StringSpan]:
        """Return the tracked literals that are still split and unchanged."""

        lines = document.lines
        live: list[StringSpan] = []
        for entry in self._entries.get(document.uri, ()):
            resolved = _resolve(entry, lines)
            if resolved is None:
                LOGGER.debug("Dropping %s: quotes no longer found", entry.key)
                continue
            open_column, close_column = resolved
            content = extract_content(
                lines, entry.start_line, open_column, entry.end_line, close_column, len(entry.quote)
            )
            span = StringSpan(
                start=Position(entry.start_line, open_column),
                end=Position(entry.end_line, close_column + len(entry.quote)),
                quote=entry.quote,
                content=content,
                is_multiline=entry.start_line != entry.end_line or "\n" in content,
                original_quote=entry.original_quote,
            )
            if not span.is_multiline:
                LOGGER.debug("Dropping %s: no longer multi-line", entry.key)
                continue
            if fingerprint(content) != entry.content_fingerprint:
                LOGGER.debug("Dropping %s: content changed", entry.key)
                continue
            live.append(span)
        return live

    def collapse_all(self, document: TextDocument) -> list[TextEdit]:
        """Return one merge edit per live entry, bottom-most literal first.

        The caller applies the edits and then clears the document's entries.
        """

        spans = sorted(
            self.find_live(document),
            key=lambda span: (span.start.line, span.start.character),
            reverse=True,
        )
        return [TextEdit(span.range, merge(span, document)) for span in spans]

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------
    def on_document_change(self, document: TextDocument, changes: Sequence[ContentChange]) -> None:
        """Shift entry boundaries for ``changes`` and refresh their content.

        ``document`` is the text after the changes. Entries whose quotes cannot
        be re-resolved keep their previous content and fail :meth:`find_live`.
        """

        entries = self._entries.get(document.uri)
        if not entries:
            return
        lines = document.lines
        for change in changes:
            for entry in entries:
                _shift(entry, change, lines)

        for entry in entries:
            resolved = _resolve(entry, lines)
            if resolved is None:
                LOGGER.debug("Leaving %s stale: quotes not found after edit", entry.key)
                continue
            open_column, close_column = resolved
            content = extract_content(
                lines, entry.start_line, open_column, entry.end_line, close_column, len(entry.quote)
            )
            entry.refresh(open_column, close_column, content)


def _resolve(entry: TrackedEntry, lines: Sequence[str]) -> tuple[int, int] | None:
    """Re-find the opening and closing quote columns near their last known place."""

    if entry.start_line >= len(lines) or entry.end_line >= len(lines):
        return None
    open_column = find_quote_position_in_line(lines[entry.start_line], entry.quote, entry.start_char, "start")
    if open_column == -1:
        return None
    close_column = find_quote_position_in_line(lines[entry.end_line], entry.quote, entry.end_char, "end")
    if close_column == -1:
        return None
    if entry.start_line == entry.end_line and close_column < open_column + len(entry.quote):
        return None
    return open_column, close_column


def _is_after_string(entry: TrackedEntry, change: ContentChange, lines: Sequence[str]) -> bool:
    start = change.range.start
    end = change.range.end
    if start.line != entry.end_line or end.line != entry.end_line:
        return False
    close_column = entry.end_char
    if entry.end_line < len(lines):
        found = find_quote_position_in_line(lines[entry.end_line], entry.quote, entry.end_char, "end")
        if found != -1:
            close_column = found
    return start.character > close_column + len(entry.quote) - 1


def _shift(entry: TrackedEntry, change: ContentChange, lines: Sequence[str]) -> None:
    start = change.range.start
    end = change.range.end
    line_delta = change.inserted_line_count - change.replaced_line_count
    single_line = start.line == end.line and "\n" not in change.text
    after = _is_after_string(entry, change, lines)

    if not single_line and end.line == entry.start_line and end.character <= entry.start_char:
        # The opening quote moves onto the last line of the inserted text.
        head = change.text.rsplit("\n", 1)[-1] if "\n" in change.text else change.text
        column = (0 if "\n" in change.text else start.character) + len(head)
        char_delta = column - end.character
        if entry.end_line == entry.start_line:
            entry.end_char += char_delta
        entry.start_char += char_delta
        entry.start_line += line_delta
        entry.end_line += line_delta
        return

    if end.line < entry.start_line:
        entry.start_line += line_delta
        entry.end_line += line_delta
    elif after:
        return
    elif start.line <= entry.end_line and end.line >= entry.start_line:
        if start.line < entry.start_line:
            entry.start_line += line_delta
        entry.end_line += line_delta

    if not single_line:
        return
    char_delta = len(change.text) - (end.character - start.character)
    if start.line == entry.start_line and end.character <= entry.start_char:
        entry.start_char += char_delta
        if entry.end_line == entry.start_line:
            entry.end_char += char_delta
    elif start.line == entry.end_line and start.character <= entry.end_char:
        entry.end_char += char_delta


__all__ = ["TrackedStringStore"]
