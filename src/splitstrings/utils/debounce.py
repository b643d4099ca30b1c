"""Cancel-and-reschedule timers used to coalesce bursts of edits."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay on the host's event loop."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


class Debouncer:
    """Run ``callback`` once, ``delay`` seconds after the last :meth:`trigger`.

    Every trigger cancels the pending run and schedules a new one, so a burst
    of triggers results in a single call.
    """

    def __init__(self, delay: float, callback: Callable[[], None], scheduler: Scheduler) -> None:
        self.delay = delay
        self._callback = callback
        self._scheduler = scheduler
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._scheduler.schedule(self.delay, self._fire)

    def flush(self) -> None:
        """Run a pending callback now."""

        if self._handle is None:
            return
        self.cancel()
        self._callback()

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _fire(self) -> None:
        self._handle = None
        try:
            self._callback()
        except Exception:
            LOGGER.exception("Debounced callback failed")


__all__ = ["TimerHandle", "Scheduler", "AsyncioScheduler", "Debouncer"]
