"""Detect whether a literal is the value of a markup attribute.

Attribute values keep their quote token when split: ``<div class="a b">``
must not become a template literal. Two detectors are provided; callers only
depend on :class:`AttributeContextDetector`.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, Sequence

from ..core.positions import Position

LOGGER = logging.getLogger(__name__)

MARKUP_LANGUAGES = frozenset(
    {"javascriptreact", "typescriptreact", "html", "xml", "vue", "svelte", "astro"}
)

_TAG_NAME_RE = re.compile(r"[A-Za-z][\w:.\-]*")
_ATTRIBUTE_NAME_RE = re.compile(r"[A-Za-z_:@#.\[(*][\w:.\-@#\[\]()*]*")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s>]+")
_TRAILING_ASSIGNMENT_RE = re.compile(r"=\s*$")
_MAX_TAG_LINES = 50


class AttributeContextDetector(Protocol):
    def is_attribute_value(
        self,
        lines: Sequence[str],
        position: Position,
        language_id: str | None = None,
    ) -> bool:
        """Return ``True`` when the quote at ``position`` opens an attribute value."""
        ...


class HeuristicAttributeDetector:
    """Single-line check: an open tag precedes the quote, ending in ``=``."""

    def is_attribute_value(
        self,
        lines: Sequence[str],
        position: Position,
        language_id: str | None = None,
    ) -> bool:
        if position.line >= len(lines):
            return False
        before = lines[position.line][: position.character]
        last_open = before.rfind("<")
        if last_open == -1 or before.rfind(">") > last_open:
            return False
        if not _TAG_NAME_RE.match(before, last_open + 1):
            return False
        return bool(_TRAILING_ASSIGNMENT_RE.search(before[last_open:]))


class MarkupAttributeDetector:
    """Shallow start-tag tokenizer for JSX and HTML-like dialects.

    Walks back to candidate ``<`` characters, then reads the tag forward
    (name, attributes, quoted values, balanced ``{...}`` expressions) until the
    quote position is reached. Tags may span several lines. When no enclosing
    start tag can be read, the heuristic detector decides.
    """

    def __init__(self, fallback: AttributeContextDetector | None = None) -> None:
        self._fallback = fallback or HeuristicAttributeDetector()

    def is_attribute_value(
        self,
        lines: Sequence[str],
        position: Position,
        language_id: str | None = None,
    ) -> bool:
        if position.line >= len(lines):
            return False
        first_line = max(0, position.line - _MAX_TAG_LINES)
        window = lines[first_line : position.line + 1]
        text = "\n".join(window)
        target = sum(len(line) + 1 for line in window[:-1]) + position.character

        candidate = text.rfind("<", 0, target)
        while candidate != -1:
            verdict = _classify(text, candidate, target)
            if verdict is not None:
                return verdict
            candidate = text.rfind("<", 0, candidate)

        LOGGER.debug("No enclosing tag for %s; using heuristic", position.to_tuple())
        return self._fallback.is_attribute_value(lines, position, language_id)


def _skip_braces(text: str, index: int) -> int:
    """Return the index just past the ``}`` balancing the ``{`` at ``index``."""

    depth = 0
    quote: str | None = None
    cursor = index
    while cursor < len(text):
        char = text[cursor]
        if quote is not None:
            if char == "\\":
                cursor += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return cursor + 1
        cursor += 1
    return -1


def _classify(text: str, tag_start: int, target: int) -> bool | None:
    """Read the tag opened at ``tag_start`` up to ``target``.

    Returns ``True`` when ``target`` starts an attribute value, ``False`` when
    it lies inside the tag elsewhere or the tag closed before it, and ``None``
    when ``tag_start`` does not open a readable tag.
    """

    match = _TAG_NAME_RE.match(text, tag_start + 1)
    if match is None:
        return None
    index = match.end()
    expect_value = False
    while index < len(text):
        if index == target:
            return expect_value
        char = text[index]
        if char.isspace():
            index += 1
            continue
        if expect_value:
            expect_value = False
            if char in "\"'`":
                close = text.find(char, index + 1)
                if close == -1 or close >= target:
                    return None
                index = close + 1
            elif char == "{":
                end = _skip_braces(text, index)
                if end == -1 or end > target:
                    return False
                index = end
            else:
                value = _UNQUOTED_VALUE_RE.match(text, index)
                if value is None or value.end() > target:
                    return None
                index = value.end()
            continue
        if char == "=":
            expect_value = True
            index += 1
        elif char == ">":
            return False
        elif char == "/":
            index += 1
        elif char == "{":
            end = _skip_braces(text, index)
            if end == -1 or end > target:
                return False
            index = end
        else:
            name = _ATTRIBUTE_NAME_RE.match(text, index)
            if name is None:
                return None
            index = name.end()
    return None


_HEURISTIC = HeuristicAttributeDetector()
_MARKUP = MarkupAttributeDetector(_HEURISTIC)


def detector_for(language_id: str | None) -> AttributeContextDetector:
    """Return the detector suited to ``language_id``."""

    if (language_id or "").lower() in MARKUP_LANGUAGES:
        return _MARKUP
    return _HEURISTIC


__all__ = [
    "AttributeContextDetector",
    "HeuristicAttributeDetector",
    "MarkupAttributeDetector",
    "MARKUP_LANGUAGES",
    "detector_for",
]
