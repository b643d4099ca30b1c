"""Dataclasses representing document snapshots, edits, and change descriptions."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field

from ..core.positions import Position, Range


def _line_start_offsets(text: str) -> tuple[int, ...]:
    offsets = [0]
    cursor = text.find("\n")
    while cursor != -1:
        offsets.append(cursor + 1)
        cursor = text.find("\n", cursor + 1)
    return tuple(offsets)


@dataclass(slots=True, frozen=True)
class TextEdit:
    """Replacement of ``range`` with ``new_text``."""

    range: Range
    new_text: str

    @classmethod
    def replace(cls, start: Position, end: Position, new_text: str) -> TextEdit:
        return cls(Range(start, end), new_text)

    @classmethod
    def insert(cls, position: Position, new_text: str) -> TextEdit:
        return cls(Range(position, position), new_text)


@dataclass(slots=True, frozen=True)
class ContentChange:
    """Discrete change reported by a host after an edit.

    ``range`` is expressed in the coordinates of the text *before* the change.
    """

    range: Range
    text: str

    @property
    def inserted_line_count(self) -> int:
        return self.text.count("\n")

    @property
    def replaced_line_count(self) -> int:
        return self.range.end.line - self.range.start.line


@dataclass(slots=True, frozen=True)
class TextDocument:
    """Immutable snapshot of a document's text.

    Lines are separated by ``"\\n"`` only; hosts normalise other line endings
    before building snapshots.
    """

    uri: str
    text: str = ""
    language_id: str = "plaintext"
    version: int = 1
    _lines: tuple[str, ...] = field(init=False, repr=False, compare=False)
    _offsets: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_lines", tuple(self.text.split("\n")))
        object.__setattr__(self, "_offsets", _line_start_offsets(self.text))

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, line: int) -> str:
        """Return the text of ``line`` without its line break."""

        if line < 0 or line >= len(self._lines):
            raise IndexError(f"Line {line} outside document with {len(self._lines)} lines")
        return self._lines[line]

    def validate_position(self, position: Position) -> Position:
        """Clamp ``position`` to an existing line and column."""

        line = min(position.line, len(self._lines) - 1)
        character = min(position.character, len(self._lines[line]))
        return Position(line, character)

    def offset_at(self, position: Position) -> int:
        valid = self.validate_position(position)
        return self._offsets[valid.line] + valid.character

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(int(offset), len(self.text)))
        line = bisect_right(self._offsets, offset) - 1
        return Position(line, offset - self._offsets[line])

    def with_text(self, text: str) -> TextDocument:
        """Return the next version of this document holding ``text``."""

        return TextDocument(uri=self.uri, text=text, language_id=self.language_id, version=self.version + 1)


__all__ = ["TextDocument", "TextEdit", "ContentChange"]
