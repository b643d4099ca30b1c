"""Batch replacement helpers used by headless hosts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..core.positions import Range
from .document_model import ContentChange, TextDocument, TextEdit


class EditApplyError(RuntimeError):
    """Raised when a batch of edits cannot be applied cleanly."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "invalid_edit",
        edit: TextEdit | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.edit = edit

    def details(self) -> dict[str, object]:
        return {"reason": self.reason, "edit": self.edit}


@dataclass(slots=True)
class EditResult:
    """Result of applying a batch of edits to a document."""

    text: str
    changes: tuple[ContentChange, ...]
    summary: str


def apply_text_edits(document: TextDocument, edits: Sequence[TextEdit]) -> EditResult:
    """Apply ``edits`` to ``document`` as one atomic batch.

    Changes are produced bottom-up so each change's range is valid against the
    text it was applied to.
    """

    if not edits:
        raise EditApplyError("Edit batch requires at least one entry", reason="empty_batch")

    ordered = tuple(sorted(edits, key=lambda item: (item.range.start, item.range.end)))
    _ensure_inside(document, ordered)
    _ensure_non_overlapping(ordered)

    updated = document.text
    changes: list[ContentChange] = []
    for edit in reversed(ordered):
        start = document.offset_at(edit.range.start)
        end = document.offset_at(edit.range.end)
        updated = updated[:start] + edit.new_text + updated[end:]
        changes.append(ContentChange(range=edit.range, text=edit.new_text))

    return EditResult(text=updated, changes=tuple(changes), summary=_summarize(document.text, updated))


def change_between(before: str, after: str) -> ContentChange | None:
    """Describe the edit turning ``before`` into ``after`` as one replacement.

    Used by hosts that only observe whole-text snapshots. The common prefix and
    suffix are excluded, so a single keystroke yields a minimal change.
    """

    if before == after:
        return None
    prefix = 0
    limit = min(len(before), len(after))
    while prefix < limit and before[prefix] == after[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit - prefix and before[-1 - suffix] == after[-1 - suffix]:
        suffix += 1
    snapshot = TextDocument(uri="", text=before)
    replaced = Range(snapshot.position_at(prefix), snapshot.position_at(len(before) - suffix))
    return ContentChange(range=replaced, text=after[prefix : len(after) - suffix])


def _ensure_inside(document: TextDocument, edits: Sequence[TextEdit]) -> None:
    last_line = document.line_count - 1
    for edit in edits:
        for position in (edit.range.start, edit.range.end):
            if position.line > last_line or position.character > len(document.line_at(position.line)):
                raise EditApplyError(
                    f"Edit position {position.to_tuple()} lies outside the document",
                    reason="range_overflow",
                    edit=edit,
                )


def _ensure_non_overlapping(edits: Sequence[TextEdit]) -> None:
    previous: Range | None = None
    for edit in edits:
        if previous is not None and edit.range.start < previous.end:
            raise EditApplyError("Edits may not overlap", reason="range_overlap", edit=edit)
        previous = edit.range


def _summarize(before: str, after: str) -> str:
    delta = len(after) - len(before)
    if delta == 0:
        return "edit: Δ0"
    sign = "+" if delta > 0 else "-"
    return f"edit: {sign}{abs(delta)} chars"


__all__ = ["EditApplyError", "EditResult", "apply_text_edits", "change_between"]
