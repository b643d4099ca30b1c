"""Keep the cursor on the same word (and character) across a toggle."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..core.positions import Position
from .locator import QUOTE_TOKENS
from .models import StringSpan

_WORD_RE = re.compile(r"\S+")

WordRange = tuple[int, int]


@dataclass(slots=True, frozen=True)
class WordPosition:
    """Cursor expressed as a word index within a literal and an offset into that word."""

    word_index: int
    char_offset: int


def word_ranges(text: str) -> list[WordRange]:
    """Return ``[start, end)`` ranges of the whitespace-delimited words in ``text``."""

    return [match.span() for match in _WORD_RE.finditer(text)]


def _sequential_ranges(content: str) -> list[WordRange]:
    # Offsets are relative to ``content``; duplicates resolve left to right.
    trimmed = content.strip()
    leading = len(content) - len(content.lstrip())
    ranges: list[WordRange] = []
    search_from = 0
    for word in trimmed.split():
        start = trimmed.find(word, search_from)
        ranges.append((leading + start, leading + start + len(word)))
        search_from = start + len(word)
    return ranges


def _snap(ranges: list[WordRange], offset: int) -> tuple[int, int] | None:
    if not ranges:
        return None
    for index, (start, end) in enumerate(ranges):
        if start <= offset <= end:
            return index, offset - start
    if offset < ranges[0][0]:
        return 0, 0
    for index in range(len(ranges) - 1):
        start, end = ranges[index]
        next_start = ranges[index + 1][0]
        if end < offset < next_start:
            if offset - end <= next_start - offset:
                return index, end - start
            return index + 1, 0
    start, end = ranges[-1]
    return len(ranges) - 1, end - start


def map_to_word(span: StringSpan, position: Position) -> WordPosition | None:
    """Return the word the cursor addresses inside ``span``.

    Returns ``None`` when the cursor line is outside the span or holds no
    words.
    """

    first_column = span.content_start.character
    if not span.is_multiline:
        if position.line != span.start.line:
            return None
        snapped = _snap(_sequential_ranges(span.content), position.character - first_column)
        if snapped is None:
            return None
        return WordPosition(*snapped)

    # One segment per document line; the first starts after the opening token.
    segments = span.content.split("\n")
    row = position.line - span.start.line
    if row < 0 or row >= len(segments):
        return None
    preceding = sum(len(word_ranges(segment)) for segment in segments[:row])
    line_start = first_column if row == 0 else 0
    snapped = _snap(word_ranges(segments[row]), position.character - line_start)
    if snapped is None:
        return None
    index, char_offset = snapped
    return WordPosition(preceding + index, char_offset)


def _emitted_quote(text: str) -> str:
    for token in QUOTE_TOKENS:
        if len(text) >= 2 * len(token) and text.startswith(token) and text.endswith(token):
            return token
    return ""


def map_from_word(
    new_text: str,
    span_start: Position,
    word: WordPosition | None,
    was_multiline: bool,
) -> Position:
    """Translate ``word`` into a document position inside ``new_text``.

    ``new_text`` replaces the literal starting at ``span_start``. Without a
    mapping, or when the word no longer exists, the literal's start is used.
    """

    if word is None:
        return span_start

    if not was_multiline:
        body = new_text.split("\n")[1:-1]
        preceding = 0
        for row, line in enumerate(body):
            ranges = word_ranges(line)
            if word.word_index < preceding + len(ranges):
                start, end = ranges[word.word_index - preceding]
                return Position(span_start.line + 1 + row, start + min(word.char_offset, end - start))
            preceding += len(ranges)
        return span_start

    quote = _emitted_quote(new_text)
    words = new_text[len(quote) : len(new_text) - len(quote)].split()
    if word.word_index >= len(words):
        return span_start
    column = sum(len(item) + 1 for item in words[: word.word_index])
    column += min(word.char_offset, len(words[word.word_index]))
    return span_start.translate(character_delta=len(quote) + column)


__all__ = ["WordPosition", "word_ranges", "map_to_word", "map_from_word"]
