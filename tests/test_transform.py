"""Tests for producing split and merged literal text."""

from __future__ import annotations

import pytest

from splitstrings.core.positions import Position
from splitstrings.editor.document_model import TextEdit
from splitstrings.editor.edits import apply_text_edits
from splitstrings.strings.locator import locate
from splitstrings.strings.models import StringSpan
from splitstrings.strings.transform import merge, merged_content, split

from helpers import make_document, position_of


def _span_at(document, needle: str, offset: int = 0) -> StringSpan:
    span = locate(document.lines, position_of(document.text, needle, offset=offset))
    assert span is not None
    return span


class TestSplit:
    def test_one_word_per_line(self) -> None:
        document = make_document('const x = "one two three";')

        result = split(_span_at(document, "two"), document)

        assert result.text == '"\n  one\n  two\n  three\n"'
        assert result.quote == '"'
        assert result.original_quote is None

    def test_uses_leading_whitespace_of_the_start_line(self) -> None:
        document = make_document('    foo("hello    world")')

        result = split(_span_at(document, "hello"), document)

        assert result.text == '"\n      hello\n      world\n    "'

    def test_empty_literal_has_no_word_lines(self) -> None:
        document = make_document('x = ""')

        result = split(_span_at(document, '""', offset=1), document)

        assert result.text == '"\n"'

    @pytest.mark.parametrize(
        ("language_id", "expected_quote"),
        [("javascript", "`"), ("python", '"""'), ("java", '"""'), ("ruby", '"')],
    )
    def test_switches_to_multiline_token(self, language_id: str, expected_quote: str) -> None:
        document = make_document('x = "a b"', language_id=language_id)

        result = split(_span_at(document, "a"), document)

        assert result.text == f"{expected_quote}\n  a\n  b\n{expected_quote}"
        assert result.quote == expected_quote
        assert result.original_quote == (None if expected_quote == '"' else '"')

    def test_plaintext_kotlin_declaration(self) -> None:
        document = make_document('val s = "a b"')

        result = split(_span_at(document, "a b"), document)

        assert result.quote == '"""'

    def test_markup_attribute_keeps_its_quote(self) -> None:
        document = make_document('<div className="a b" />', language_id="typescriptreact")

        result = split(_span_at(document, "a b"), document)

        assert result.quote == '"'
        assert result.original_quote is None


class TestMerge:
    def test_restores_original_quote(self) -> None:
        document = make_document("const x = `\n  a\n  b\n`;", language_id="javascript")
        span = _span_at(document, "a").with_original_quote('"')

        assert merge(span, document) == '"a b"'

    def test_keeps_template_literal_with_interpolation(self) -> None:
        document = make_document("const x = `\n  hi\n  ${name}\n`;", language_id="javascript")
        span = _span_at(document, "hi").with_original_quote('"')

        assert merge(span, document) == "`hi ${name}`"

    def test_keeps_token_when_content_contains_original_quote(self) -> None:
        document = make_document("const x = `\n  it's\n  ok\n`;", language_id="javascript")
        span = _span_at(document, "ok").with_original_quote("'")

        assert merge(span, document) == "`it's ok`"

    def test_without_original_quote(self) -> None:
        document = make_document('x = "\n  a\n  b\n"')

        assert merge(_span_at(document, "b"), document) == '"a b"'


def test_merged_content_drops_blank_lines() -> None:
    assert merged_content("\n  a\n\n  b  \n") == "a b"
    assert merged_content("   ") == ""


def test_split_then_merge_restores_text() -> None:
    document = make_document('const x = "one two three";', language_id="javascript")
    span = _span_at(document, "two")
    result = split(span, document)

    applied = apply_text_edits(document, [TextEdit(span.range, result.text)])
    split_document = document.with_text(applied.text)
    split_span = locate(split_document.lines, Position(2, 3))
    assert split_span is not None
    merged = merge(split_span.with_original_quote(result.original_quote), split_document)
    restored = apply_text_edits(split_document, [TextEdit(split_span.range, merged)])

    assert applied.text == "const x = `\n  one\n  two\n  three\n`;"
    assert restored.text == document.text
