"""Produce the split (one word per line) and merged (single-line) forms of a literal."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..editor.document_model import TextDocument
from .attributes import AttributeContextDetector, detector_for
from .locator import is_token_at
from .models import StringSpan
from .rules import get_multiline_quote, resolve_language_id, should_restore_original_quote

LOGGER = logging.getLogger(__name__)

WORD_INDENT = "  "


@dataclass(slots=True, frozen=True)
class SplitResult:
    """Replacement text for a split literal.

    ``original_quote`` is only set when the emitted token differs from the one
    the literal had, so a later merge can restore it.
    """

    text: str
    quote: str
    original_quote: Optional[str] = None


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def split(
    span: StringSpan,
    document: TextDocument,
    detector: AttributeContextDetector | None = None,
) -> SplitResult:
    """Return the multi-line form of ``span``.

    Each word goes on its own line, indented two spaces past the leading
    whitespace of the literal's first line; the closing token sits on its own
    line at that base indentation.
    """

    lines = document.lines
    language_id = resolve_language_id(document.language_id, lines, span)
    if detector is None:
        detector = detector_for(language_id)
    is_attribute = detector.is_attribute_value(lines, span.start, language_id)
    quote = get_multiline_quote(language_id, span.quote, is_attribute)
    indent = leading_whitespace(lines[span.start.line])

    word_lines = "".join(f"{indent}{WORD_INDENT}{word}\n" for word in span.words())
    text = f"{quote}\n{word_lines}{indent}{quote}"
    original_quote = span.quote if quote != span.quote else None
    LOGGER.debug(
        "Split literal at %s into %d word line(s) with %r (language=%s, attribute=%s)",
        span.start.to_tuple(),
        len(span.words()),
        quote,
        language_id,
        is_attribute,
    )
    return SplitResult(text=text, quote=quote, original_quote=original_quote)


def merged_content(content: str) -> str:
    """Join the non-blank lines of ``content``, stripped, with single spaces."""

    parts = (line.strip() for line in content.split("\n"))
    return " ".join(part for part in parts if part)


def _contains_unescaped(text: str, quote: str) -> bool:
    return any(is_token_at(text, index, quote) for index in range(len(text)))


def merge(span: StringSpan, document: TextDocument) -> str:
    """Return the single-line form of ``span``.

    The original quote token is restored when the language allows it and the
    merged content would not terminate the restored literal early.
    """

    language_id = resolve_language_id(document.language_id, document.lines, span)
    content = merged_content(span.content)
    quote = span.quote
    if should_restore_original_quote(language_id, content, span.quote, span.original_quote):
        assert span.original_quote is not None
        if _contains_unescaped(content, span.original_quote):
            LOGGER.debug("Keeping %r: content contains unescaped %r", quote, span.original_quote)
        else:
            quote = span.original_quote
    return f"{quote}{content}{quote}"


__all__ = ["SplitResult", "split", "merge", "merged_content", "leading_whitespace", "WORD_INDENT"]
