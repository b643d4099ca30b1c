"""Tests for document snapshots and change descriptions."""

from __future__ import annotations

import pytest

from splitstrings.core.positions import Position, Range
from splitstrings.editor.document_model import ContentChange, TextDocument, TextEdit


def test_document_lines_and_offsets() -> None:
    document = TextDocument(uri="file:///a", text="ab\ncd")

    assert document.lines == ("ab", "cd")
    assert document.line_count == 2
    assert document.offset_at(Position(1, 1)) == 4
    assert document.position_at(4) == Position(1, 1)
    assert document.position_at(99) == Position(1, 2)


def test_document_line_at_rejects_missing_lines() -> None:
    document = TextDocument(uri="file:///a", text="only")

    assert document.line_at(0) == "only"
    with pytest.raises(IndexError):
        document.line_at(1)


def test_document_validate_position_clamps_to_text() -> None:
    document = TextDocument(uri="file:///a", text="ab\ncd")

    assert document.validate_position(Position(9, 9)) == Position(1, 2)
    assert document.validate_position(Position(0, 7)) == Position(0, 2)


def test_document_with_text_bumps_version_and_keeps_identity() -> None:
    document = TextDocument(uri="file:///a", text="one", language_id="python")

    updated = document.with_text("two")

    assert updated.version == document.version + 1
    assert updated.uri == document.uri
    assert updated.language_id == "python"
    assert updated.text == "two"


def test_empty_document_has_one_line() -> None:
    document = TextDocument(uri="file:///a")

    assert document.lines == ("",)
    assert document.position_at(0) == Position(0, 0)


def test_content_change_line_counts() -> None:
    change = ContentChange(range=Range(Position(1, 0), Position(3, 2)), text="x\ny")

    assert change.replaced_line_count == 2
    assert change.inserted_line_count == 1


def test_text_edit_constructors() -> None:
    insert = TextEdit.insert(Position(0, 2), "!")
    replace = TextEdit.replace(Position(0, 0), Position(0, 2), "hi")

    assert insert.range.start == insert.range.end
    assert replace.range.end == Position(0, 2)
