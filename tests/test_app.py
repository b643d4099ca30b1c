"""Tests covering the command line entry point."""

from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path

import pytest

from splitstrings import app
from splitstrings.controller import NOT_IN_STRING_MESSAGE
from splitstrings.services.settings import Settings, SettingsStore

SOURCE = 'const x = "one two three";'
SPLIT = 'const x = "\n  one\n  two\n  three\n";'


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "configure_logging", lambda debug=False, *, force=False: None)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    target = tmp_path / name
    target.write_text(text, encoding="utf-8")
    return target


def test_toggle_prints_the_split_text(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path, "sample.txt", SOURCE)

    exit_code = app.main(["toggle", str(source), "--line", "1", "--column", "16"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out == SPLIT + "\n"
    assert "split cursor=3:3" in captured.err
    assert source.read_text(encoding="utf-8") == SOURCE


def test_toggle_in_place_merges(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path, "sample.txt", SPLIT)

    exit_code = app.main(["toggle", str(source), "--line", "3", "--column", "3", "--in-place"])

    assert exit_code == 0
    assert source.read_text(encoding="utf-8") == SOURCE
    assert "merged cursor=1:16" in capsys.readouterr().err


def test_toggle_uses_the_file_suffix_for_the_language(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path, "sample.js", 'const x = "a b";')

    app.main(["toggle", str(source), "--line", "1", "--column", "12"])

    assert capsys.readouterr().out == "const x = `\n  a\n  b\n`;\n"


def test_toggle_language_flag_wins(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path, "sample.js", 'const x = "a b";')

    app.main(["toggle", str(source), "--line", "1", "--column", "12", "--language", "ruby"])

    assert capsys.readouterr().out == 'const x = "\n  a\n  b\n";\n'


def test_toggle_outside_a_string(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path, "sample.txt", "plain text")

    exit_code = app.main(["toggle", str(source), "--line", "1", "--column", "2"])

    assert exit_code == 1
    assert NOT_IN_STRING_MESSAGE in capsys.readouterr().err


def test_toggle_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = app.main(["toggle", str(tmp_path / "missing.txt"), "--line", "1", "--column", "1"])

    assert exit_code == 2
    assert "Cannot read" in capsys.readouterr().err


def test_dump_settings_reports_overrides(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    settings_path = tmp_path / "custom.json"
    SettingsStore(settings_path).save(Settings(decoration_delay=0.5))

    exit_code = app.main(
        [
            "--settings",
            str(settings_path),
            "--set",
            "auto_collapse_on_save=off",
            "--set",
            'decoration={"overview_ruler_lane": "left"}',
            "--dump-settings",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["settings"]["auto_collapse_on_save"] is False
    assert payload["settings"]["decoration_delay"] == 0.5
    assert payload["settings"]["decoration"]["overview_ruler_lane"] == "left"
    assert payload["settings"]["decoration"]["whole_line"] is True
    assert payload["meta"]["path"] == str(settings_path)
    assert payload["meta"]["cli_overrides"] == ["auto_collapse_on_save", "decoration"]


@pytest.mark.parametrize(
    "override",
    [
        "auto_collapse_on_save",
        "colour=red",
        "auto_collapse_on_save=maybe",
        "decoration_delay=-1",
        "decoration_delay=soon",
        "decoration=[1]",
        'decoration={"shape": "round"}',
    ],
)
def test_invalid_override_is_rejected(override: str, capsys: pytest.CaptureFixture[str]) -> None:
    assert app.main(["--set", override, "--dump-settings"]) == 2
    assert "Invalid --set override" in capsys.readouterr().err


def test_coerce_cli_overrides_types() -> None:
    overrides = app._coerce_cli_overrides(
        ["decoration_delay=0.2", "debug_logging=true", 'decoration={"border_width": "3px"}']
    )

    assert overrides == {
        "decoration_delay": 0.2,
        "debug_logging": True,
        "decoration": {"border_width": "3px"},
    }


def test_every_setting_can_be_overridden() -> None:
    assert set(app._OVERRIDE_PARSERS) == {item.name for item in fields(Settings)}


def test_without_a_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert app.main([]) == 2
    assert "usage:" in capsys.readouterr().out


def test_guess_language_id() -> None:
    assert app.guess_language_id(Path("widget.TSX")) == "typescriptreact"
    assert app.guess_language_id(Path("notes")) == "plaintext"
