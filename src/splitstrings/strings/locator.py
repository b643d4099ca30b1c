"""Locate the string literal enclosing a cursor position.

There is no lexer for most host languages, so literals are found informally:

* A single-line pass pairs quote tokens on the cursor's line from left to
  right and returns the pair that encloses the cursor.
* A multi-line pass looks, per quote token, for an opener before the cursor
  and the nearest closer after it. An occurrence only counts as an opener when
  an odd number of occurrences of that token were left unpaired on the lines
  read so far, so the closing quote of one split string is never mistaken for
  the opening quote of the next.

Escaping (an odd run of backslashes before the token) applies to one-character
tokens only; multi-character tokens are matched as plain substrings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

from ..core.positions import Position
from .models import StringSpan

LOGGER = logging.getLogger(__name__)

QUOTE_TOKENS: tuple[str, ...] = ('"""', "'''", "`", '"', "'")

SearchDirection = Literal["start", "end"]


@dataclass(slots=True, frozen=True)
class _Pair:
    open: int
    close: int
    token: str


def is_escaped(text: str, index: int) -> bool:
    """Return ``True`` when an odd number of backslashes precede ``index``."""

    count = 0
    cursor = index - 1
    while cursor >= 0 and text[cursor] == "\\":
        count += 1
        cursor -= 1
    return count % 2 == 1


def is_token_at(text: str, index: int, token: str) -> bool:
    if index < 0 or index + len(token) > len(text):
        return False
    if not text.startswith(token, index):
        return False
    return len(token) > 1 or not is_escaped(text, index)


def match_quote_token(text: str, index: int, tokens: Sequence[str] = QUOTE_TOKENS) -> str | None:
    """Return the longest token starting at ``index`` (tokens are ordered longest first)."""

    for token in tokens:
        if is_token_at(text, index, token):
            return token
    return None


def _find_in_line(text: str, token: str, start: int) -> int:
    for index in range(max(0, start), len(text) - len(token) + 1):
        if is_token_at(text, index, token):
            return index
    return -1


def _scan_line(text: str) -> tuple[list[_Pair], list[tuple[int, str]]]:
    """Pair quote tokens on one line.

    Returns the closed pairs and the occurrences left without a closer. An
    unclosed token is skipped so the rest of the line is still scanned.
    """

    pairs: list[_Pair] = []
    unpaired: list[tuple[int, str]] = []
    index = 0
    while index < len(text):
        token = match_quote_token(text, index)
        if token is None:
            index += 1
            continue
        close = _find_in_line(text, token, index + len(token))
        if close == -1:
            unpaired.append((index, token))
            index += len(token)
            continue
        pairs.append(_Pair(open=index, close=close, token=token))
        index = close + len(token)
    return pairs, unpaired


def extract_content(
    lines: Sequence[str],
    start_line: int,
    open_column: int,
    end_line: int,
    close_column: int,
    quote_length: int,
) -> str:
    """Return the raw text between an opening and a closing quote token."""

    if start_line == end_line:
        return lines[start_line][open_column + quote_length : close_column]
    parts = [lines[start_line][open_column + quote_length :]]
    parts.extend(lines[start_line + 1 : end_line])
    parts.append(lines[end_line][:close_column])
    return "\n".join(parts)


def _build_span(lines: Sequence[str], opener: Position, closer: Position, token: str) -> StringSpan:
    content = extract_content(lines, opener.line, opener.character, closer.line, closer.character, len(token))
    return StringSpan(
        start=opener,
        end=closer.translate(character_delta=len(token)),
        quote=token,
        content=content,
        is_multiline=opener.line != closer.line or "\n" in content,
    )


def _locate_on_line(lines: Sequence[str], position: Position) -> StringSpan | None:
    text = lines[position.line]
    column = position.character
    pairs, _ = _scan_line(text)
    for pair in pairs:
        close_last = pair.close + len(pair.token) - 1
        if pair.open < column <= close_last:
            opener = Position(position.line, pair.open)
            closer = Position(position.line, pair.close)
            return _build_span(lines, opener, closer, pair.token)
    return None


def _find_opener(
    unpaired_by_line: Sequence[list[tuple[int, str]]],
    position: Position,
    token: str,
) -> Position | None:
    opener: Position | None = None
    count = 0
    for line, unpaired in enumerate(unpaired_by_line):
        for column, candidate in unpaired:
            if candidate != token:
                continue
            if line == position.line and column >= position.character:
                break
            count += 1
            opener = Position(line, column)
    if count % 2 == 0:
        return None
    return opener


def _find_closer(lines: Sequence[str], token: str, start: Position) -> Position | None:
    for line in range(start.line, len(lines)):
        begin = start.character if line == start.line else 0
        column = _find_in_line(lines[line], token, begin)
        if column != -1:
            return Position(line, column)
    return None


def _locate_across_lines(lines: Sequence[str], position: Position) -> StringSpan | None:
    unpaired_by_line = [_scan_line(lines[line])[1] for line in range(position.line + 1)]
    for token in QUOTE_TOKENS:
        opener = _find_opener(unpaired_by_line, position, token)
        if opener is None:
            continue
        closer = _find_closer(lines, token, opener.translate(character_delta=len(token)))
        if closer is None:
            continue
        close_last = closer.translate(character_delta=len(token) - 1)
        if opener < position <= close_last:
            return _build_span(lines, opener, closer, token)
    return None


def locate(lines: Sequence[str], position: Position) -> StringSpan | None:
    """Return the literal containing ``position``, or ``None``.

    Positions past the end of a line are clamped to the line length.
    """

    if not lines:
        return None
    line = min(position.line, len(lines) - 1)
    position = Position(line, min(position.character, len(lines[line])))

    span = _locate_on_line(lines, position)
    if span is None:
        span = _locate_across_lines(lines, position)
    if span is None:
        LOGGER.debug("No string literal at %s", position.to_tuple())
    return span


def find_quote_position_in_line(
    line_text: str,
    quote: str,
    expected_column: int,
    direction: SearchDirection,
) -> int:
    """Re-find ``quote`` on ``line_text`` near ``expected_column``.

    The hint is returned when still valid; otherwise the nearest valid column is
    searched alternately to the left and right. Returns -1 when the token is not
    on the line.
    """

    if is_token_at(line_text, expected_column, quote):
        return expected_column

    limit = max(expected_column, len(line_text) - expected_column)
    for offset in range(1, limit + 1):
        left = expected_column - offset
        if is_token_at(line_text, left, quote):
            return left
        right = expected_column + offset
        if is_token_at(line_text, right, quote):
            return right

    max_column = len(line_text) - len(quote)
    columns = range(0, max_column + 1) if direction == "start" else range(max_column, -1, -1)
    for column in columns:
        if is_token_at(line_text, column, quote):
            return column
    return -1


__all__ = [
    "QUOTE_TOKENS",
    "locate",
    "extract_content",
    "find_quote_position_in_line",
    "is_escaped",
    "match_quote_token",
]
