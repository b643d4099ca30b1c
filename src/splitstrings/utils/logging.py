"""Logging for the splitstrings command line and editor window.

Records go to ``~/.splitstrings/logs/splitstrings.log`` (rotated) and, in
debug mode, to the console. Every record carries a ``context`` field holding
the ``key=value`` pairs bound with :func:`log_context`, so a toggle or a
save-time collapse can be followed across modules.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

__all__ = ["setup_logging", "log_context", "ContextFilter", "LOG_DIR_ENV"]

LOG_DIR_ENV = "SPLITSTRINGS_LOG_DIR"
_DEFAULT_LOG_DIR = Path.home() / ".splitstrings" / "logs"
_LOG_FILE_NAME = "splitstrings.log"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(context)s] %(message)s"
# Both log every scheduled callback at DEBUG.
_CHATTY_LOGGERS = ("asyncio", "qasync")

_context: ContextVar[tuple[tuple[str, str], ...]] = ContextVar("splitstrings_log_context", default=())
_active_path: Path | None = None


class ContextFilter(logging.Filter):
    """Copy the bound :func:`log_context` pairs onto ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        pairs = _context.get()
        record.context = " ".join(f"{key}={value}" for key, value in pairs) if pairs else "-"
        return True


@contextmanager
def log_context(**values: object) -> Iterator[None]:
    """Bind ``key=value`` pairs to every record logged inside the block."""

    token = _context.set(_context.get() + tuple((key, str(value)) for key, value in values.items()))
    try:
        yield
    finally:
        _context.reset(token)


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = False,
    force: bool = False,
) -> Path:
    """Install the rotating file handler (and the console one when asked).

    Returns the log file path. Later calls are no-ops unless ``force`` is set,
    which lets the debug level from the settings file replace the first
    configuration.
    """

    global _active_path
    if _active_path is not None and not force:
        return _active_path

    directory = Path(log_dir or os.environ.get(LOG_DIR_ENV) or _DEFAULT_LOG_DIR).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(path, maxBytes=512_000, backupCount=2, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(_FORMAT, datefmt="%H:%M:%S")
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _active_path = path
    return path
