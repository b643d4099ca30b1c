"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from splitstrings.controller import SplitStringsController  # noqa: E402
from splitstrings.editor.host import BufferHost  # noqa: E402
from splitstrings.events import EventBus  # noqa: E402
from splitstrings.services.settings import Settings  # noqa: E402

from helpers import ManualScheduler  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep settings and logs of the test-suite out of the user's home directory."""

    for name in list(os.environ):
        if name.startswith("SPLITSTRINGS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPLITSTRINGS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("SPLITSTRINGS_SETTINGS_PATH", str(tmp_path / "settings.json"))


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def host(bus: EventBus) -> BufferHost:
    return BufferHost(bus)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def controller(host: BufferHost, bus: EventBus) -> Iterator[SplitStringsController]:
    controller = SplitStringsController(host, bus=bus, settings=Settings())
    yield controller
    controller.dispose()
