"""Command line entry point: headless toggles and a minimal Qt editor window."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TextIO, cast

from .controller import SplitStringsController, ToggleOutcome
from .core.positions import Position
from .editor.host import BufferHost
from .events import EventBus, SettingsChanged
from .services.settings import DecorationStyle, Settings, SettingsStore, TRUE_VALUES, parse_bool
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)

TOGGLE_SHORTCUT = "Ctrl+Alt+S"
SAVE_SHORTCUT = "Ctrl+S"
RELOAD_SETTINGS_SHORTCUT = "Ctrl+Alt+R"

LANGUAGE_BY_SUFFIX: Mapping[str, str] = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".py": "python",
    ".cs": "csharp",
    ".go": "go",
    ".rb": "ruby",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".php": "php",
    ".html": "html",
    ".htm": "html",
    ".xml": "xml",
    ".vue": "vue",
    ".svelte": "svelte",
    ".astro": "astro",
}


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    path = logging_utils.setup_logging(level, console=debug, force=force)
    _LOGGER.debug("Logging to %s at %s", path, logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def guess_language_id(path: Path) -> str:
    return LANGUAGE_BY_SUFFIX.get(path.suffix.lower(), "plaintext")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``splitstrings`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or os.environ.get("SPLITSTRINGS_DEBUG", "").strip().lower() in TRUE_VALUES
    configure_logging(debug)

    resolved_path = Path(args.settings_path).expanduser() if args.settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2
    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)

    # The settings file may ask for debug output the command line did not.
    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return 0
    if args.command == "toggle":
        return run_toggle(args, settings)
    if args.command == "edit":
        return run_editor(args, settings, store=settings_store, overrides=cli_overrides)
    parser.print_help()
    return 2


def run_toggle(args: argparse.Namespace, settings: Settings, *, stdout: TextIO | None = None) -> int:
    """Toggle the literal at ``--line``/``--column`` (both 1-based) of a file."""

    destination = stdout or sys.stdout
    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot read {path}: {exc}", file=sys.stderr)
        return 2

    bus = EventBus()
    host = BufferHost(bus)
    language_id = args.language or guess_language_id(path)
    cursor = Position(max(0, args.line - 1), max(0, args.column - 1))
    editor = host.open(path.resolve().as_uri(), text, language_id=language_id, cursor=cursor)
    controller = SplitStringsController(host, bus=bus, settings=settings)

    outcome = controller.toggle()
    if outcome is ToggleOutcome.NO_STRING:
        for message in host.messages:
            print(message, file=sys.stderr)
        return 1
    if outcome is not ToggleOutcome.SPLIT and outcome is not ToggleOutcome.MERGED:
        print(f"Toggle failed: {outcome.value}", file=sys.stderr)
        return 1

    if args.in_place:
        path.write_text(editor.text, encoding="utf-8")
    else:
        destination.write(editor.text)
        if not editor.text.endswith("\n"):
            destination.write("\n")
    final = editor.cursor()
    print(f"{outcome.value} cursor={final.line + 1}:{final.character + 1}", file=sys.stderr)
    controller.dispose()
    return 0


def create_qapp(settings: Settings) -> QtRuntime:
    """Create a qasync-powered QApplication instance."""

    from PySide6.QtWidgets import QApplication
    from qasync import QEventLoop

    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName("splitstrings")
    app.setApplicationDisplayName("Split Strings")

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)
    return QtRuntime(app=app, loop=loop)


def build_editor_window(
    path: Path,
    settings: Settings,
    *,
    bus: EventBus,
    scheduler: Any,
    language_id: str | None = None,
    reload_settings: Callable[[], Settings] | None = None,
) -> tuple[Any, Any, SplitStringsController]:
    """Create the editor window for ``path``; returns ``(window, view, controller)``.

    ``reload_settings`` backs the "Reload settings" action; the settings it
    returns are published as :class:`SettingsChanged`.
    """

    from PySide6.QtGui import QAction, QKeySequence
    from PySide6.QtWidgets import QMainWindow, QPlainTextEdit

    from .editor.qt_host import QtEditorHost, QtEditorView

    text = path.read_text(encoding="utf-8").replace("\r\n", "\n") if path.exists() else ""
    window = QMainWindow()
    window.setWindowTitle(f"{path.name} - Split Strings")
    editor = QPlainTextEdit(window)
    editor.setPlainText(text)
    window.setCentralWidget(editor)

    host = QtEditorHost(bus, status_bar=window.statusBar())
    view = QtEditorView(
        editor,
        bus,
        uri=path.resolve().as_uri(),
        language_id=language_id or guess_language_id(path),
        style=settings.decoration,
        path=path,
    )
    controller = SplitStringsController(host, bus=bus, settings=settings, scheduler=scheduler)
    bus.subscribe(SettingsChanged, view.handle_settings_changed)
    host.add_view(view)

    def _add_action(label: str, shortcut: str, slot: Callable[[], Any]) -> None:
        action = QAction(label, window)
        action.setShortcut(QKeySequence(shortcut))
        action.triggered.connect(slot)
        window.addAction(action)

    _add_action("Toggle split string", TOGGLE_SHORTCUT, controller.toggle)
    _add_action("Save", SAVE_SHORTCUT, view.save)
    if reload_settings is not None:

        def _reload() -> None:
            bus.publish(SettingsChanged(settings=reload_settings()))
            host.show_information("Settings reloaded")

        _add_action("Reload settings", RELOAD_SETTINGS_SHORTCUT, _reload)

    window.statusBar().showMessage(f"{TOGGLE_SHORTCUT} toggles the string under the cursor")
    return window, view, controller


def run_editor(
    args: argparse.Namespace,
    settings: Settings,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> int:
    from .utils.debounce import AsyncioScheduler

    _install_qt_message_handler()
    runtime = create_qapp(settings)
    bus = EventBus()
    window, _view, controller = build_editor_window(
        Path(args.file),
        settings,
        bus=bus,
        scheduler=AsyncioScheduler(runtime.loop),
        language_id=args.language,
        reload_settings=lambda: load_settings(store=store, overrides=overrides or None),
    )
    window.resize(900, 640)
    window.show()

    loop = runtime.loop
    try:
        loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")
    finally:
        controller.dispose()
        _close_loop(loop)
    return 0


def _close_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel whatever is still scheduled on ``loop`` and close it."""

    if loop.is_closed():
        return
    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        _LOGGER.debug("Cancelled %d pending task(s) at shutdown", len(pending))
        loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
    loop.close()


def _install_qt_message_handler() -> None:
    """Send Qt diagnostics to the ``splitstrings.qt`` logger."""

    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = logging.getLogger("splitstrings.qt")
    levels = {
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _forward(mode, context, message):  # type: ignore[no-untyped-def]
        qt_logger.log(levels.get(mode, logging.DEBUG), "%s", message)

    qInstallMessageHandler(_forward)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splitstrings",
        description="Toggle string literals between single-line and one-word-per-line form.",
    )
    parser.add_argument(
        "--settings",
        dest="settings_path",
        metavar="PATH",
        help="Override the default ~/.splitstrings/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on the console.")
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    commands = parser.add_subparsers(dest="command")

    toggle = commands.add_parser("toggle", help="Toggle the string at a position and print the result.")
    toggle.add_argument("file", help="File containing the string literal.")
    toggle.add_argument("--line", type=int, required=True, help="1-based line of the cursor.")
    toggle.add_argument("--column", type=int, required=True, help="1-based column of the cursor.")
    toggle.add_argument("--language", help="Language id (guessed from the file suffix by default).")
    toggle.add_argument("--in-place", action="store_true", help="Rewrite the file instead of printing it.")

    edit = commands.add_parser("edit", help="Open the file in a minimal editor window.")
    edit.add_argument("file", help="File to edit.")
    edit.add_argument("--language", help="Language id (guessed from the file suffix by default).")
    return parser


def _parse_delay(raw_value: str) -> float:
    delay = float(raw_value)
    if delay < 0:
        raise ValueError("decoration_delay cannot be negative.")
    return delay


def _parse_decoration(raw_value: str) -> Dict[str, Any]:
    """Partial :class:`DecorationStyle` given as a JSON object."""

    try:
        payload = json.loads(raw_value or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError("decoration must be a JSON object.") from exc
    if not isinstance(payload, dict):
        raise ValueError("decoration must be a JSON object.")
    known = {item.name for item in fields(DecorationStyle)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"Unknown decoration field(s): {', '.join(unknown)}.")
    return payload


# One parser per Settings field.
_OVERRIDE_PARSERS: Mapping[str, Callable[[str], Any]] = {
    "auto_collapse_on_save": parse_bool,
    "debug_logging": parse_bool,
    "decoration_delay": _parse_delay,
    "decoration": _parse_decoration,
}


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        parser = _OVERRIDE_PARSERS.get(key)
        if parser is None:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = parser(raw_value.strip())
    return overrides


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides),
        "environment_variables": sorted(name for name in os.environ if name.startswith("SPLITSTRINGS_")),
    }
    json.dump({"settings": asdict(settings), "meta": metadata}, destination, indent=2)
    destination.write("\n")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
