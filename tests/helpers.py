"""Shared test helpers and stub classes.

Import with ``from helpers import ...`` instead of duplicating these classes in
individual test files.
"""

from __future__ import annotations

from typing import Callable

from splitstrings.core.positions import Position
from splitstrings.editor.document_model import TextDocument


class ManualHandle:
    """Timer handle recorded by :class:`ManualScheduler`."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose timers only fire when the test says so.

    Example:
        scheduler = ManualScheduler()
        debouncer = Debouncer(0.1, callback, scheduler)
        debouncer.trigger()
        scheduler.run_pending()
    """

    def __init__(self) -> None:
        self.handles: list[ManualHandle] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [handle for handle in self.handles if not handle.cancelled and not handle.fired]

    def run_pending(self) -> int:
        due = self.pending
        for handle in due:
            handle.fired = True
            handle.callback()
        return len(due)


def make_document(text: str, language_id: str = "plaintext", uri: str = "file:///sample") -> TextDocument:
    return TextDocument(uri=uri, text=text, language_id=language_id)


def position_of(text: str, needle: str, *, occurrence: int = 0, offset: int = 0) -> Position:
    """Return the position of ``needle`` (plus ``offset`` characters) in ``text``."""

    index = -1
    for _ in range(occurrence + 1):
        index = text.index(needle, index + 1)
    return TextDocument(uri="", text=text).position_at(index + offset)
