"""Structured helpers for line/character coordinates inside a document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _coerce_index(owner: str, value: Any, label: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{owner} {label} must be an integer") from exc
    return max(0, number)


@dataclass(slots=True, frozen=True, order=True)
class Position:
    """Zero-based ``(line, character)`` coordinate; negative values clamp to 0."""

    line: int
    character: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "line", _coerce_index("Position", self.line, "line"))
        object.__setattr__(self, "character", _coerce_index("Position", self.character, "character"))

    def to_tuple(self) -> tuple[int, int]:
        return (self.line, self.character)

    def translate(self, *, line_delta: int = 0, character_delta: int = 0) -> Position:
        """Return a new position shifted by the given deltas."""

        return Position(self.line + line_delta, self.character + character_delta)


@dataclass(slots=True, frozen=True)
class Range:
    """Half-open span between two positions, normalised so ``start <= end``."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)


@dataclass(slots=True, frozen=True)
class LineRange:
    """Inclusive span of lines, as highlighted by the editor decorations."""

    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        start = _coerce_index("LineRange", self.start_line, "start_line")
        end = _coerce_index("LineRange", self.end_line, "end_line")
        if end < start:
            start, end = end, start
        object.__setattr__(self, "start_line", start)
        object.__setattr__(self, "end_line", end)


__all__ = ["Position", "Range", "LineRange"]
