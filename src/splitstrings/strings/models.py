"""Dataclasses shared by the locator, transformer, and registry."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from ..core.positions import Position, Range

_WHITESPACE_RE = re.compile(r"\s+")

SpecialFeaturePredicate = Callable[[str, str], bool]


def fingerprint(content: str) -> str:
    """Return the whitespace-normalised signature of ``content``."""

    return _WHITESPACE_RE.sub(" ", content.strip())


@dataclass(slots=True)
class StringSpan:
    """A located string literal.

    ``end`` is exclusive and includes the closing quote token. ``content`` is
    the raw text between the tokens with ``"\\n"`` between lines.
    """

    start: Position
    end: Position
    quote: str
    content: str
    is_multiline: bool = False
    original_quote: Optional[str] = None

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)

    @property
    def content_start(self) -> Position:
        return self.start.translate(character_delta=len(self.quote))

    @property
    def closing_column(self) -> int:
        """Column of the closing quote token on the end line."""

        return self.end.character - len(self.quote)

    @property
    def key(self) -> tuple[int, int, int, int]:
        return (self.start.line, self.start.character, self.end.line, self.closing_column)

    def words(self) -> list[str]:
        return self.content.split()

    def with_original_quote(self, original_quote: str | None) -> StringSpan:
        return replace(self, original_quote=original_quote)


@dataclass(slots=True)
class TrackedEntry:
    """Registry record for one string currently in split form.

    ``start_char`` is the column of the opening quote and ``end_char`` the
    column of the closing quote, i.e. the exclusive end of the content.
    """

    uri: str
    start_line: int
    start_char: int
    end_line: int
    end_char: int
    quote: str
    content: str
    content_fingerprint: str = ""
    original_quote: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.content_fingerprint:
            self.content_fingerprint = fingerprint(self.content)

    @property
    def key(self) -> tuple[int, int, int, int]:
        return (self.start_line, self.start_char, self.end_line, self.end_char)

    @classmethod
    def from_span(cls, uri: str, span: StringSpan) -> TrackedEntry:
        return cls(
            uri=uri,
            start_line=span.start.line,
            start_char=span.start.character,
            end_line=span.end.line,
            end_char=span.closing_column,
            quote=span.quote,
            content=span.content,
            original_quote=span.original_quote,
        )

    def refresh(self, start_char: int, end_char: int, content: str) -> None:
        self.start_char = start_char
        self.end_char = end_char
        self.content = content
        self.content_fingerprint = fingerprint(content)


@dataclass(slots=True, frozen=True)
class QuoteRuleSet:
    """Quoting conventions of one language."""

    multiline_quotes: tuple[str, ...] = ()
    preferred_multiline_quote: str = '"'
    has_special_features: SpecialFeaturePredicate = field(default=lambda content, quote: False, compare=False)
    allows_multiline_in_regular_quotes: bool = True

    @property
    def converts_quotes(self) -> bool:
        return bool(self.multiline_quotes) and not self.allows_multiline_in_regular_quotes


__all__ = ["StringSpan", "TrackedEntry", "QuoteRuleSet", "fingerprint"]
