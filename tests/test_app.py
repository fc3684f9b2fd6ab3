"""Tests for the modal state machine in passmr.app."""

from __future__ import annotations

import pytest

from passmr.app import BUFFER_FOR_MODE, App, Mode
from passmr.keybindings import KeybindingsManager
from passmr.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from passmr.store import StorageIOError, open_store

from .conftest import FakeClipboard, MemoryStore

ENTER = "\r"
ESC = "\x1b"
BACKSPACE = "\x7f"
UP = "\x1b[A"
DOWN = "\x1b[B"
LEFT = "\x1b[D"
HOME_KEY = "\x1b[H"
END_KEY = "\x1b[F"


def press(app: App, *keys: str) -> None:
    for key in keys:
        app.handle_input(key)


def type_text(app: App, text: str) -> None:
    for ch in text:
        app.handle_input(ch)


def paste(text: str) -> str:
    return BRACKETED_PASTE_START + text + BRACKETED_PASTE_END


def make_app(entries: dict[str, str] | None = None) -> tuple[App, MemoryStore, FakeClipboard]:
    store = MemoryStore(entries)
    clipboard = FakeClipboard()
    app = App(store, clipboard)
    app.resync()
    return app, store, clipboard


def enter_select(app: App, query: str = "") -> None:
    press(app, "s")
    type_text(app, query)
    press(app, ENTER)
    assert app.mode is Mode.SELECT


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


class TestDispatchTable:
    def test_every_mode_has_a_handler(self, app: App):
        assert set(app._handlers) == set(Mode)

    def test_every_mode_has_a_buffer_entry(self):
        assert set(BUFFER_FOR_MODE) == set(Mode)

    def test_initial_state(self, app: App):
        assert app.mode is Mode.HOME
        assert not app.should_quit
        assert app.key_index == ["alpha", "beta", "gamma"]
        assert app.status is None

    @pytest.mark.parametrize("mode", list(Mode))
    def test_unbound_input_never_raises(self, app: App, mode: Mode):
        app.resync()
        if mode is Mode.SELECT or mode is Mode.EDIT or mode is Mode.DELETE:
            app.selection.reset(len(app.filtered))
        app.mode = mode
        for data in ("\x1b[1;5A", "\x1b[99~", "\t", "\x00", "\x1bx"):
            app.handle_input(data)


# ---------------------------------------------------------------------------
# Home
# ---------------------------------------------------------------------------


class TestHome:
    def test_q_quits(self, app: App):
        press(app, "q")
        assert app.should_quit

    def test_q_only_quits_from_home(self, app: App):
        press(app, "a", "q")
        assert not app.should_quit
        assert app.key.text == "q"

    def test_a_enters_add_key(self, app: App):
        press(app, "a")
        assert app.mode is Mode.ADD_KEY
        assert app.key.text == ""
        assert app.key.cursor == 0

    def test_s_enters_search_with_full_list(self, app: App):
        press(app, "s")
        assert app.mode is Mode.SEARCH
        assert app.query.text == ""
        assert app.filtered == ["alpha", "beta", "gamma"]

    def test_other_keys_are_ignored(self, app: App):
        press(app, "x", ENTER, ESC, DOWN)
        assert app.mode is Mode.HOME
        assert not app.should_quit

    def test_active_buffer_is_none(self, app: App):
        assert app.active_buffer is None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_typing_filters_live(self):
        app, _, _ = make_app({"github": "1", "gitlab": "2", "email": "3"})
        press(app, "s")
        type_text(app, "git")
        assert app.filtered == ["github", "gitlab"]
        assert app.query.text == "git"

    def test_filter_is_case_insensitive(self):
        app, _, _ = make_app({"GitHub": "1", "email": "3"})
        press(app, "s")
        type_text(app, "hub")
        assert app.filtered == ["GitHub"]

    def test_backspace_widens(self, app: App):
        press(app, "s")
        type_text(app, "alz")
        assert app.filtered == []
        press(app, BACKSPACE)
        assert app.filtered == ["alpha"]

    def test_cursor_keys_edit_query(self, app: App):
        press(app, "s")
        type_text(app, "bt")
        press(app, LEFT)
        type_text(app, "e")
        assert app.query.text == "bet"
        press(app, HOME_KEY)
        assert app.query.cursor == 0
        press(app, END_KEY)
        assert app.query.cursor == 3

    def test_letters_bound_elsewhere_are_typed(self, app: App):
        press(app, "s")
        type_text(app, "qajk")
        assert app.query.text == "qajk"
        assert not app.should_quit
        assert app.mode is Mode.SEARCH

    def test_enter_selects_first_and_clears_query(self, app: App):
        press(app, "s")
        type_text(app, "a")
        press(app, ENTER)
        assert app.mode is Mode.SELECT
        assert app.selection.index == 0
        assert app.query.text == ""
        # The list stays the one that was submitted.
        assert app.filtered == ["alpha", "beta", "gamma"]

    def test_enter_keeps_submitted_filter(self, app: App):
        press(app, "s")
        type_text(app, "ga")
        press(app, ENTER)
        assert app.filtered == ["gamma"]
        assert app.selected_key == "gamma"

    def test_enter_with_empty_list_is_noop(self, app: App):
        press(app, "s")
        type_text(app, "zzz")
        press(app, ENTER)
        assert app.mode is Mode.SEARCH
        assert app.query.text == "zzz"

    def test_escape_returns_home_and_clears(self, app: App):
        press(app, "s")
        type_text(app, "al")
        press(app, ESC)
        assert app.mode is Mode.HOME
        assert app.query.text == ""

    def test_paste_goes_to_query(self, app: App):
        press(app, "s")
        app.handle_input(paste("gam"))
        assert app.query.text == "gam"
        assert app.filtered == ["gamma"]


# ---------------------------------------------------------------------------
# Select
# ---------------------------------------------------------------------------


class TestSelect:
    def test_down_wraps_around(self):
        app, _, _ = make_app({"a": "1", "b": "2"})
        enter_select(app)
        press(app, DOWN)
        assert app.selection.index == 1
        press(app, DOWN)
        assert app.selection.index == 0

    def test_j_and_k(self, app: App):
        enter_select(app)
        press(app, "j", "j")
        assert app.selected_key == "gamma"
        press(app, "k")
        assert app.selected_key == "beta"

    def test_up_from_first_wraps_to_last(self, app: App):
        enter_select(app)
        press(app, UP)
        assert app.selected_key == "gamma"

    def test_typing_does_not_edit_anything(self, app: App):
        enter_select(app)
        press(app, "x", "z")
        assert app.query.text == ""
        assert app.active_buffer is None
        assert app.mode is Mode.SELECT

    def test_enter_copies_value(self, app: App, clipboard: FakeClipboard):
        enter_select(app)
        press(app, "j", ENTER)
        assert clipboard.copies == ["b2"]
        assert app.mode is Mode.SELECT
        assert app.status is not None
        assert app.status.level == "info"
        assert "beta" in app.status.text

    def test_clipboard_failure_sets_error_status(self, app: App, clipboard: FakeClipboard):
        clipboard.fail = True
        enter_select(app)
        press(app, ENTER)
        assert app.mode is Mode.SELECT
        assert app.status is not None
        assert app.status.level == "error"
        assert "Clipboard" in app.status.text

    def test_status_is_cleared_by_next_input(self, app: App):
        enter_select(app)
        press(app, ENTER)
        assert app.status is not None
        press(app, "j")
        assert app.status is None

    def test_escape_returns_to_search_with_full_list(self, app: App):
        enter_select(app, "ga")
        press(app, ESC)
        assert app.mode is Mode.SEARCH
        assert app.query.text == ""
        assert app.filtered == ["alpha", "beta", "gamma"]

    def test_undecodable_value_reports_error(self, app: App, store: MemoryStore, clipboard: FakeClipboard):
        store.undecodable.add("alpha")
        enter_select(app)
        press(app, ENTER)
        assert clipboard.copies == []
        assert app.status is not None
        assert app.status.level == "error"
        assert "UTF-8" in app.status.text
        press(app, "e")
        assert app.mode is Mode.SELECT

    def test_vanished_key_triggers_resync(self, app: App, store: MemoryStore):
        enter_select(app)
        del store.entries["alpha"]
        press(app, ENTER)
        assert app.status is not None
        assert app.status.level == "error"
        assert "alpha" not in app.key_index
        assert app.filtered == ["beta", "gamma"]


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------


class TestEdit:
    def test_e_loads_value(self, app: App):
        enter_select(app)
        press(app, "e")
        assert app.mode is Mode.EDIT
        assert app.value.text == "a1"
        assert app.value.cursor == 2

    def test_enter_saves(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "e", BACKSPACE)
        type_text(app, "new")
        press(app, ENTER)
        assert store.entries["alpha"] == "anew"
        assert app.mode is Mode.SELECT
        assert app.value.text == ""
        assert app.query.text == ""
        assert app.selected_key == "alpha"

    def test_escape_discards(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "e")
        type_text(app, "zzz")
        press(app, ESC)
        assert store.entries["alpha"] == "a1"
        assert app.mode is Mode.SELECT
        assert app.value.text == ""

    def test_empty_value_is_not_saved(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "e", BACKSPACE, BACKSPACE, ENTER)
        assert store.entries["alpha"] == "a1"
        assert app.mode is Mode.SELECT
        assert app.status is not None
        assert app.status.level == "error"

    def test_letters_are_typed_not_dispatched(self, app: App):
        enter_select(app)
        press(app, "e")
        type_text(app, "jkdeq")
        assert app.value.text == "a1jkdeq"
        assert app.mode is Mode.EDIT

    def test_write_failure_keeps_edit_mode(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "e")
        type_text(app, "x")
        store.fail_writes = True
        press(app, ENTER)
        assert app.mode is Mode.EDIT
        assert app.value.text == "a1x"
        assert app.status is not None
        assert app.status.level == "error"

    def test_read_failure_stays_in_select(self, app: App, store: MemoryStore):
        enter_select(app)
        store.fail_reads = True
        press(app, "e")
        assert app.mode is Mode.SELECT
        assert app.status is not None
        assert app.status.level == "error"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_confirm_deletes_and_returns_to_search(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "j", "d")
        assert app.mode is Mode.DELETE
        press(app, "y")
        assert "beta" not in store.entries
        assert app.key_index == ["alpha", "gamma"]
        assert app.mode is Mode.SEARCH
        assert app.query.text == ""
        assert app.filtered == ["alpha", "gamma"]

    def test_escape_cancels(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "d", ESC)
        assert app.mode is Mode.SELECT
        assert "alpha" in store.entries

    def test_other_keys_ignored(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "d", "n", ENTER, "j")
        assert app.mode is Mode.DELETE
        assert app.selected_key == "alpha"
        assert "alpha" in store.entries

    def test_delete_failure_keeps_delete_mode(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "d")
        store.fail_writes = True
        press(app, "y")
        assert app.mode is Mode.DELETE
        assert "alpha" in store.entries
        assert app.status is not None
        assert app.status.level == "error"

    def test_deleting_last_entry(self):
        app, store, _ = make_app({"only": "1"})
        enter_select(app)
        press(app, "d", "y")
        assert store.entries == {}
        assert app.filtered == []
        assert app.selection.index is None
        press(app, ENTER)
        assert app.mode is Mode.SEARCH


# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------


class TestAdd:
    def test_add_entry_scenario(self):
        app, store, _ = make_app()
        press(app, "a")
        type_text(app, "site")
        press(app, ENTER)
        assert app.mode is Mode.ADD_VALUE
        type_text(app, "pw123")
        press(app, ENTER)
        assert app.mode is Mode.HOME
        assert store.get("site") == "pw123"
        assert app.key_index == ["site"]
        assert app.key.text == ""
        assert app.value.text == ""

    def test_enter_with_empty_key_is_noop(self, app: App):
        press(app, "a", ENTER)
        assert app.mode is Mode.ADD_KEY

    def test_enter_with_empty_value_is_noop(self, app: App, store: MemoryStore):
        press(app, "a")
        type_text(app, "new")
        press(app, ENTER, ENTER)
        assert app.mode is Mode.ADD_VALUE
        assert "new" not in store.entries

    def test_escape_from_value_keeps_buffers(self, app: App):
        press(app, "a")
        type_text(app, "new")
        press(app, ENTER)
        type_text(app, "pw")
        press(app, ESC)
        assert app.mode is Mode.ADD_KEY
        assert app.key.text == "new"
        assert app.value.text == "pw"
        press(app, ENTER)
        assert app.mode is Mode.ADD_VALUE
        assert app.value.cursor == 2

    def test_escape_from_key_goes_home_and_clears(self, app: App):
        press(app, "a")
        type_text(app, "new")
        press(app, ENTER)
        type_text(app, "pw")
        press(app, ESC, ESC)
        assert app.mode is Mode.HOME
        assert app.key.text == ""
        assert app.value.text == ""

    def test_adding_existing_key_overwrites(self, app: App, store: MemoryStore):
        press(app, "a")
        type_text(app, "beta")
        press(app, ENTER)
        type_text(app, "replaced")
        press(app, ENTER)
        assert store.entries["beta"] == "replaced"
        assert app.key_index == ["alpha", "beta", "gamma"]
        assert app.status is not None
        assert app.status.text.startswith("Updated")

    def test_write_failure_keeps_add_value_mode(self, app: App, store: MemoryStore):
        press(app, "a")
        type_text(app, "k")
        press(app, ENTER)
        type_text(app, "v")
        store.fail_writes = True
        press(app, ENTER)
        assert app.mode is Mode.ADD_VALUE
        assert app.key.text == "k"
        assert app.value.text == "v"

    def test_paste_strips_newlines(self, app: App):
        press(app, "a")
        app.handle_input(paste("multi\nline\r\nkey"))
        assert app.key.text == "multilinekey"

    def test_paste_drops_control_characters(self, app: App):
        press(app, "a")
        app.handle_input(paste("a\tb\x1bc"))
        assert app.key.text == "abc"

    def test_paste_in_home_is_ignored(self, app: App):
        app.handle_input(paste("q"))
        assert app.mode is Mode.HOME
        assert not app.should_quit


# ---------------------------------------------------------------------------
# Resync and custom keybindings
# ---------------------------------------------------------------------------


class TestResync:
    def test_resync_keeps_selection_on_same_key(self, app: App, store: MemoryStore):
        enter_select(app)
        press(app, "j")
        store.entries["aardvark"] = "x"
        app.resync()
        assert app.filtered == ["aardvark", "alpha", "beta", "gamma"]
        assert app.selected_key == "beta"

    def test_resync_failure_is_reported(self, app: App, store: MemoryStore):
        press(app, "a")
        type_text(app, "k")
        press(app, ENTER)
        type_text(app, "v")
        original_list_keys = store.list_keys

        def failing_list_keys() -> list[str]:
            raise StorageIOError("Failed to list keys: boom")

        store.list_keys = failing_list_keys  # type: ignore[method-assign]
        press(app, ENTER)
        assert store.entries["k"] == "v"
        assert app.status is not None
        assert app.status.level == "error"
        store.list_keys = original_list_keys  # type: ignore[method-assign]


class TestCustomKeybindings:
    def test_rebound_quit(self, store: MemoryStore, clipboard: FakeClipboard):
        app = App(store, clipboard, KeybindingsManager({"quit": "x"}))
        press(app, "q")
        assert not app.should_quit
        press(app, "x")
        assert app.should_quit

    def test_rebound_select_keys(self, store: MemoryStore, clipboard: FakeClipboard):
        app = App(store, clipboard, KeybindingsManager({"selectDown": "n", "selectUp": "p"}))
        app.resync()
        enter_select(app)
        press(app, "n")
        assert app.selected_key == "beta"
        press(app, "j")
        assert app.selected_key == "beta"
        press(app, "p")
        assert app.selected_key == "alpha"


class TestSqliteBackedScenario:
    """Add, edit and delete through the state machine on a real SQLite store."""

    def test_add_edit_delete(self, clipboard: FakeClipboard):
        store = open_store(":memory:")
        try:
            app = App(store, clipboard)
            app.resync()

            press(app, "a")
            type_text(app, "site")
            press(app, ENTER)
            type_text(app, "pw123")
            press(app, ENTER)
            assert app.mode is Mode.HOME
            assert store.get("site") == "pw123"
            assert app.key_index == ["site"]

            enter_select(app, "sit")
            press(app, "e", BACKSPACE)
            type_text(app, "4")
            press(app, ENTER)
            assert app.mode is Mode.SELECT
            assert store.get("site") == "pw124"

            press(app, ENTER)
            assert clipboard.copies == ["pw124"]

            press(app, "d", "y")
            assert app.mode is Mode.SEARCH
            assert store.get("site") is None
            assert store.list_keys() == []
            assert app.key_index == []
        finally:
            store.close()
