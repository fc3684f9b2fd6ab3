"""Modal application state and input dispatch.

``App`` owns every piece of interactive state: the current ``Mode``, the
three text buffers, the key index fetched from the store, the filtered key
list derived from it and the selection into that list. Each raw input event
goes through ``App.handle_input``, which dispatches on the current mode.

Derived state is pull-based: after any store mutation the whole key index is
re-fetched and the filtered list is recomputed from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Literal

from passmr.clipboard import Clipboard, ClipboardError
from passmr.edit_buffer import EditBuffer
from passmr.keybindings import KeybindingsManager
from passmr.keys import is_printable
from passmr.search import recompute
from passmr.selection import SelectionCursor
from passmr.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from passmr.store import Store, StoreError

logger = logging.getLogger(__name__)


class Mode(Enum):
    HOME = auto()
    SEARCH = auto()
    SELECT = auto()
    EDIT = auto()
    DELETE = auto()
    ADD_KEY = auto()
    ADD_VALUE = auto()


BufferName = Literal["query", "key", "value"]

# Which text buffer receives typed input in each mode.
BUFFER_FOR_MODE: dict[Mode, BufferName | None] = {
    Mode.HOME: None,
    Mode.SEARCH: "query",
    Mode.SELECT: None,
    Mode.EDIT: "value",
    Mode.DELETE: None,
    Mode.ADD_KEY: "key",
    Mode.ADD_VALUE: "value",
}


@dataclass
class StatusMessage:
    """Transient notice shown until the next input event."""

    text: str
    level: Literal["info", "error"] = "info"


class App:
    """The password manager's interaction state machine."""

    def __init__(
        self,
        store: Store,
        clipboard: Clipboard,
        keybindings: KeybindingsManager | None = None,
    ) -> None:
        self.store = store
        self.clipboard = clipboard
        self.keybindings = keybindings or KeybindingsManager()

        self.mode: Mode = Mode.HOME
        self.should_quit: bool = False
        self.status: StatusMessage | None = None

        # Text buffers
        self.query = EditBuffer()
        self.key = EditBuffer()
        self.value = EditBuffer()

        # Derived caches
        self.key_index: list[str] = []
        self.filter_query: str = ""
        self.filtered: list[str] = []
        self.selection = SelectionCursor()

        self._handlers: dict[Mode, Callable[[str], None]] = {
            Mode.HOME: self._handle_home,
            Mode.SEARCH: self._handle_search,
            Mode.SELECT: self._handle_select,
            Mode.EDIT: self._handle_edit,
            Mode.DELETE: self._handle_delete,
            Mode.ADD_KEY: self._handle_add_key,
            Mode.ADD_VALUE: self._handle_add_value,
        }

    # -- derived views ------------------------------------------------------

    @property
    def active_buffer(self) -> EditBuffer | None:
        """The buffer typed input goes to in the current mode, if any."""
        name = BUFFER_FOR_MODE[self.mode]
        if name is None:
            return None
        return self._buffers[name]

    @property
    def _buffers(self) -> dict[BufferName, EditBuffer]:
        return {"query": self.query, "key": self.key, "value": self.value}

    @property
    def selected_key(self) -> str | None:
        index = self.selection.index
        if index is None or index >= len(self.filtered):
            return None
        return self.filtered[index]

    def selected_value(self) -> str | None:
        """Read the selected entry's value from the store.

        Raises ``StoreError`` subclasses; the caller decides how to show them.
        """
        key = self.selected_key
        if key is None:
            return None
        return self.store.get(key)

    # -- key index ----------------------------------------------------------

    def resync(self) -> None:
        """Re-fetch the key index and rebuild the filtered list."""
        self.key_index = self.store.list_keys()
        self._refilter(self.filter_query)

    def _try_resync(self) -> None:
        try:
            self.resync()
        except StoreError as e:
            logger.exception("Failed to refresh key list")
            self._error(str(e))

    def _refilter(self, query: str) -> None:
        previous = self.selected_key
        self.filter_query = query
        self.filtered = recompute(self.key_index, query)
        self.selection.anchor(self.filtered, previous)

    # -- input dispatch -----------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Apply one raw terminal input event."""
        self.status = None

        if data.startswith(BRACKETED_PASTE_START) and data.endswith(BRACKETED_PASTE_END):
            self._handle_paste(
                data[len(BRACKETED_PASTE_START) : len(data) - len(BRACKETED_PASTE_END)]
            )
            return

        self._handlers[self.mode](data)

    def _set_mode(self, mode: Mode) -> None:
        if mode is not self.mode:
            logger.debug("Mode %s -> %s", self.mode.name, mode.name)
        self.mode = mode

    def _info(self, text: str) -> None:
        self.status = StatusMessage(text, "info")

    def _error(self, text: str) -> None:
        self.status = StatusMessage(text, "error")

    def _edit_active_buffer(self, data: str) -> bool:
        """Route text-editing input to the active buffer.

        Returns ``True`` when the buffer consumed the input.
        """
        buffer = self.active_buffer
        if buffer is None:
            return False

        kb = self.keybindings
        if kb.matches(data, "deleteCharBackward"):
            buffer.delete_before_cursor()
        elif kb.matches(data, "cursorLeft"):
            buffer.move_left()
        elif kb.matches(data, "cursorRight"):
            buffer.move_right()
        elif kb.matches(data, "cursorLineStart"):
            buffer.move_to_start()
        elif kb.matches(data, "cursorLineEnd"):
            buffer.move_to_end()
        elif is_printable(data):
            buffer.insert(data)
        else:
            return False
        return True

    def _handle_paste(self, text: str) -> None:
        buffer = self.active_buffer
        if buffer is None:
            return
        clean = text.replace("\r\n", "").replace("\r", "").replace("\n", "")
        if not is_printable(clean):
            clean = "".join(ch for ch in clean if is_printable(ch))
        buffer.insert(clean)
        if self.mode is Mode.SEARCH:
            self._refilter(self.query.text)

    # -- transitions --------------------------------------------------------

    def _enter_home(self) -> None:
        self.query.clear()
        self.key.clear()
        self.value.clear()
        self._set_mode(Mode.HOME)

    def _enter_search(self) -> None:
        self.query.clear()
        self._refilter("")
        self._set_mode(Mode.SEARCH)

    def _handle_home(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "quit"):
            logger.info("Quit requested")
            self.should_quit = True
        elif kb.matches(data, "add"):
            self.key.clear()
            self._set_mode(Mode.ADD_KEY)
        elif kb.matches(data, "search"):
            self._enter_search()

    def _handle_search(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "submit"):
            if self.filtered:
                # The list stays derived from the submitted query.
                self.selection.reset(len(self.filtered))
                self.query.clear()
                self._set_mode(Mode.SELECT)
        elif kb.matches(data, "cancel"):
            self._enter_home()
        elif self._edit_active_buffer(data):
            self._refilter(self.query.text)

    def _handle_select(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "selectDown"):
            self.selection.next()
        elif kb.matches(data, "selectUp"):
            self.selection.previous()
        elif kb.matches(data, "edit"):
            self._begin_edit()
        elif kb.matches(data, "delete"):
            if self.selected_key is not None:
                self._set_mode(Mode.DELETE)
        elif kb.matches(data, "submit"):
            self._copy_selected()
        elif kb.matches(data, "cancel"):
            self._enter_search()

    def _load_selected(self) -> str | None:
        """Fetch the selected value, reporting failures on the status line."""
        key = self.selected_key
        if key is None:
            return None
        try:
            value = self.store.get(key)
        except StoreError as e:
            logger.warning("Cannot read selected entry: %s", e)
            self._error(str(e))
            return None
        if value is None:
            self._error(f"'{key}' no longer exists")
            self._try_resync()
        return value

    def _begin_edit(self) -> None:
        value = self._load_selected()
        if value is None:
            return
        self.value.set(value)
        self._set_mode(Mode.EDIT)

    def _copy_selected(self) -> None:
        value = self._load_selected()
        if value is None:
            return
        try:
            self.clipboard.copy(value)
        except ClipboardError as e:
            self._error(f"Clipboard unavailable: {e}")
            return
        self._info(f"Copied value of '{self.selected_key}' to clipboard")

    def _handle_edit(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "submit"):
            self._commit_edit()
        elif kb.matches(data, "cancel"):
            self.value.clear()
            self.query.clear()
            self._set_mode(Mode.SELECT)
        else:
            self._edit_active_buffer(data)

    def _commit_edit(self) -> None:
        key = self.selected_key
        if key is None:
            self.value.clear()
            self._set_mode(Mode.SELECT)
            return
        if not self.value:
            self._error("Empty value not saved")
        else:
            try:
                self.store.insert(key, self.value.text)
            except StoreError as e:
                logger.exception("Failed to save edited entry")
                self._error(str(e))
                return
            self._info(f"Saved '{key}'")
            self._try_resync()
        self.value.clear()
        self.query.clear()
        self._set_mode(Mode.SELECT)

    def _handle_delete(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "confirmDelete"):
            self._commit_delete()
        elif kb.matches(data, "cancel"):
            self._set_mode(Mode.SELECT)

    def _commit_delete(self) -> None:
        key = self.selected_key
        if key is not None:
            try:
                self.store.delete(key)
            except StoreError as e:
                logger.exception("Failed to delete entry")
                self._error(str(e))
                return
            self._info(f"Deleted '{key}'")
        self.query.clear()
        self.filter_query = ""
        self._try_resync()
        self._set_mode(Mode.SEARCH)

    def _handle_add_key(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "submit"):
            if self.key:
                self.value.move_to_end()
                self._set_mode(Mode.ADD_VALUE)
        elif kb.matches(data, "cancel"):
            self._enter_home()
        else:
            self._edit_active_buffer(data)

    def _handle_add_value(self, data: str) -> None:
        kb = self.keybindings
        if kb.matches(data, "submit"):
            if self.key and self.value:
                self._commit_add()
        elif kb.matches(data, "cancel"):
            self._set_mode(Mode.ADD_KEY)
        else:
            self._edit_active_buffer(data)

    def _commit_add(self) -> None:
        key = self.key.text
        existed = key in self.key_index
        try:
            self.store.insert(key, self.value.text)
        except StoreError as e:
            logger.exception("Failed to add entry")
            self._error(str(e))
            return
        self._info(f"Updated '{key}'" if existed else f"Added '{key}'")
        self._try_resync()
        self._enter_home()
