"""End-to-end tests of the toggle command against the in-memory host."""

from __future__ import annotations

from pathlib import Path

import pytest

from splitstrings.controller import (
    HOVER_MESSAGE,
    NOT_IN_STRING_MESSAGE,
    SplitStringsController,
    ToggleOutcome,
)
from splitstrings.core.positions import LineRange, Position
from splitstrings.editor.document_model import TextEdit
from splitstrings.editor.host import BufferHost
from splitstrings.events import EventBus, SettingsChanged
from splitstrings.services.settings import Settings

SOURCE = 'const x = "one two three";'
SPLIT = 'const x = "\n  one\n  two\n  three\n";'
URI = "file:///sample.txt"


class TestToggle:
    """Splitting and merging through :meth:`SplitStringsController.toggle`."""

    def test_split_puts_each_word_on_its_own_line(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))

        assert controller.toggle() is ToggleOutcome.SPLIT

        assert editor.text == SPLIT
        assert editor.cursor() == Position(2, 2)
        assert len(controller.store) == 1

    @pytest.mark.parametrize("cursor", [Position(1, 2), Position(2, 4), Position(3, 6), Position(4, 0)])
    def test_merge_from_any_line_restores_the_literal(self, host, controller, cursor: Position) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()
        editor.set_cursor(cursor)

        assert controller.toggle() is ToggleOutcome.MERGED

        assert editor.text == SOURCE
        assert len(controller.store) == 0

    def test_cursor_stays_on_its_word(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 20))

        controller.toggle()
        assert editor.cursor() == Position(3, 3)
        controller.toggle()

        assert editor.cursor() == Position(0, 20)

    def test_indentation_is_kept(self, host, controller) -> None:
        editor = host.open(URI, '    call("a b")', cursor=Position(0, 10))

        controller.toggle()

        assert editor.text == '    call("\n      a\n      b\n    ")'

    def test_outside_a_string(self, host, controller) -> None:
        editor = host.open(URI, "plain text", cursor=Position(0, 3))

        assert controller.toggle() is ToggleOutcome.NO_STRING

        assert editor.text == "plain text"
        assert host.messages == [NOT_IN_STRING_MESSAGE]

    def test_without_an_editor(self, host, controller) -> None:
        assert controller.toggle() is ToggleOutcome.NO_EDITOR

    def test_rejected_edit_tracks_nothing(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        editor.read_only = True

        assert controller.toggle() is ToggleOutcome.REJECTED

        assert editor.text == SOURCE
        assert len(controller.store) == 0

    def test_template_literal_gets_its_quote_back(self, host, controller) -> None:
        editor = host.open("file:///a.js", 'const x = "a b";', language_id="javascript", cursor=Position(0, 11))

        controller.toggle()
        assert editor.text == "const x = `\n  a\n  b\n`;"
        controller.toggle()

        assert editor.text == 'const x = "a b";'

    def test_jsx_attribute_keeps_its_quote(self, host, controller) -> None:
        editor = host.open(
            "file:///a.tsx",
            '<div className="p-4 flex">',
            language_id="typescriptreact",
            cursor=Position(0, 17),
        )

        controller.toggle()

        assert editor.text == '<div className="\n  p-4\n  flex\n">'


class TestSaveCollapse:
    """Tracked literals are merged back when the document is saved."""

    def test_save_collapses_split_strings(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()

        assert editor.save() == SOURCE
        assert len(controller.store) == 0

    def test_second_save_changes_nothing(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()
        editor.save()

        assert editor.save() == SOURCE

    def test_save_writes_the_collapsed_text(self, host, controller, tmp_path: Path) -> None:
        target = tmp_path / "sample.txt"
        editor = host.open(URI, SOURCE, cursor=Position(0, 15), path=target)
        controller.toggle()

        editor.save()

        assert target.read_text(encoding="utf-8") == SOURCE

    def test_only_the_split_string_on_a_line_is_touched(self, host, controller) -> None:
        editor = host.open(URI, 'f("a b", "c d")', cursor=Position(0, 10))
        controller.toggle()
        assert editor.text == 'f("a b", "\n  c\n  d\n")'

        assert editor.save() == 'f("a b", "c d")'

    def test_several_split_strings(self, host, controller) -> None:
        editor = host.open(URI, 'a = "x y"\nb = "z w"', cursor=Position(0, 5))
        controller.toggle()
        editor.set_cursor(Position(4, 5))
        controller.toggle()
        assert editor.text == 'a = "\n  x\n  y\n"\nb = "\n  z\n  w\n"'
        assert len(controller.store) == 2

        assert editor.save() == 'a = "x y"\nb = "z w"'

    def test_identical_strings_are_tracked_independently(self, host, controller) -> None:
        editor = host.open(URI, 'a = "x y"\nb = "x y"', cursor=Position(0, 5))
        controller.toggle()
        editor.set_cursor(Position(4, 5))
        controller.toggle()
        first, second = controller.store.entries(URI)
        assert first.content == second.content

        editor.apply_edits([TextEdit.insert(Position(6, 3), "s")])

        assert first.key == (0, 4, 3, 0)
        assert first.content == "\n  x\n  y\n"
        assert second.key == (4, 4, 7, 0)
        assert second.content == "\n  x\n  ys\n"
        assert editor.save() == 'a = "x y"\nb = "x ys"'

    def test_edits_above_are_followed(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()
        editor.apply_edits([TextEdit.insert(Position(0, 0), "// header\n")])

        assert editor.save() == "// header\n" + SOURCE

    def test_edited_words_are_kept(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()
        editor.apply_edits([TextEdit.insert(Position(2, 5), "s")])

        assert editor.save() == 'const x = "one twos three";'

    def test_disabled_setting_leaves_strings_split(self, bus: EventBus, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()

        bus.publish(SettingsChanged(settings=Settings(auto_collapse_on_save=False)))

        assert len(controller.store) == 0
        assert editor.decorations == ()
        assert editor.save() == SPLIT

    def test_split_while_disabled_is_not_tracked(self, bus: EventBus, host) -> None:
        controller = SplitStringsController(host, bus=bus, settings=Settings(auto_collapse_on_save=False))
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))

        controller.toggle()

        assert len(controller.store) == 0
        assert editor.save() == SPLIT
        controller.dispose()

    def test_closing_the_document_forgets_it(self, host, controller) -> None:
        host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()

        host.close(URI)

        assert URI not in controller.store
        assert host.active_editor() is None

    def test_disposed_controller_stops_collapsing(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()

        controller.dispose()

        assert editor.save() == SPLIT


class TestDecorations:
    def test_split_strings_are_highlighted(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))

        controller.toggle()
        assert editor.decorations == (LineRange(0, 4),)
        assert editor.hover_message == HOVER_MESSAGE

        controller.toggle()
        assert editor.decorations == ()
        assert editor.hover_message == ""

    def test_highlight_follows_edits(self, host, controller) -> None:
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()

        editor.apply_edits([TextEdit.insert(Position(0, 0), "\n\n")])

        assert editor.decorations == (LineRange(2, 6),)

    def test_refresh_is_debounced_with_a_scheduler(self, bus: EventBus, host: BufferHost, scheduler) -> None:
        settings = Settings(decoration_delay=0.25)
        controller = SplitStringsController(host, bus=bus, settings=settings, scheduler=scheduler)
        editor = host.open(URI, SOURCE, cursor=Position(0, 15))

        controller.toggle()
        editor.apply_edits([TextEdit.insert(Position(0, 0), "\n")])

        assert editor.decorations == ()
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == 0.25
        assert scheduler.run_pending() == 1
        assert editor.decorations == (LineRange(1, 5),)
        controller.dispose()

    def test_focus_change_refreshes(self, bus: EventBus, host, controller) -> None:
        first = host.open(URI, SOURCE, cursor=Position(0, 15))
        controller.toggle()
        host.open("file:///other.txt", "x")
        first.set_decorations((), "")

        host.focus(URI)

        assert first.decorations == (LineRange(0, 4),)
