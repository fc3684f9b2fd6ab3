"""Screen layout: turns the application state into terminal lines.

Each mode gets a header with its key hints, a body built from the small
components below, and a status line at the bottom of the screen.
"""

from __future__ import annotations

import logging
from typing import Callable

import grapheme

from passmr.app import App, Mode
from passmr.edit_buffer import EditBuffer
from passmr.keybindings import AppAction
from passmr.store import StoreError, ValueDecodeError
from passmr.tui import Container
from passmr.utils import truncate_to_width, visible_width

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

_RESET = "\x1b[0m"


def _style(code: str) -> Callable[[str], str]:
    def apply(text: str) -> str:
        return f"\x1b[{code}m{text}{_RESET}" if text else text

    return apply


bold = _style("1")
dim = _style("2")
hint = _style("3;33")  # italic yellow
error = _style("31")
success = _style("32")
selected = _style("1;36")

# Rows used by everything except the key list: header, blank, field (2),
# blank, list title, scroll indicator, status.
_RESERVED_ROWS = 8


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class Text:
    """Static text, one line per entry, truncated to the width."""

    def __init__(self, *lines: str) -> None:
        self.lines = list(lines)

    def render(self, width: int) -> list[str]:
        return [truncate_to_width(line, width) for line in self.lines]


class TextField:
    """Titled single-line field with horizontal scrolling.

    A focused field shows the buffer's cursor in reverse video.
    """

    def __init__(self, title: str, buffer: EditBuffer | str, focused: bool = False) -> None:
        self.title = title
        self.buffer = buffer
        self.focused = focused

    def render(self, width: int) -> list[str]:
        prompt = "> "
        available_width = width - len(prompt)
        title_line = bold(truncate_to_width(self.title, width))

        if available_width <= 0:
            return [title_line, prompt]

        if isinstance(self.buffer, EditBuffer):
            value, cursor = self.buffer.text, self.buffer.cursor
        else:
            value, cursor = self.buffer, len(self.buffer)

        if not self.focused:
            return [title_line, prompt + truncate_to_width(value, available_width)]

        visible_text, cursor_display = _scroll_window(value, cursor, available_width)

        before_cursor = visible_text[:cursor_display]
        after = visible_text[cursor_display:]
        graphemes = list(grapheme.graphemes(after)) if after else []
        at_cursor = graphemes[0] if graphemes else " "
        after_cursor = visible_text[cursor_display + len(at_cursor) :] if graphemes else ""

        text_with_cursor = before_cursor + f"\x1b[7m{at_cursor}\x1b[27m" + after_cursor
        text_with_cursor = truncate_to_width(text_with_cursor, available_width, "")
        padding = " " * max(0, available_width - visible_width(text_with_cursor))
        return [title_line, prompt + text_with_cursor + padding]


def _scroll_window(value: str, cursor: int, available_width: int) -> tuple[str, int]:
    """Pick the slice of *value* to show so the cursor stays visible.

    Returns ``(visible_text, cursor_offset_within_it)``.
    """
    if len(value) < available_width:
        return value, cursor

    scroll_width = available_width - 1 if cursor == len(value) else available_width
    half_width = scroll_width // 2

    if cursor < half_width:
        return value[:scroll_width], cursor
    if cursor > len(value) - half_width:
        start = len(value) - scroll_width
        return value[start:], cursor - start
    start = cursor - half_width
    return value[start : start + scroll_width], half_width


class KeyList:
    """Scrolling list of keys with an optional highlighted entry."""

    def __init__(
        self,
        title: str,
        items: list[str],
        selected_index: int | None = None,
        max_visible: int = 10,
    ) -> None:
        self.title = title
        self.items = items
        self.selected_index = selected_index
        self.max_visible = max(1, max_visible)

    def render(self, width: int) -> list[str]:
        lines = [bold(truncate_to_width(self.title, width))]

        if not self.items:
            lines.append(dim("  No matching keys"))
            return lines

        focus = self.selected_index or 0
        start_index = max(
            0,
            min(focus - self.max_visible // 2, len(self.items) - self.max_visible),
        )
        end_index = min(start_index + self.max_visible, len(self.items))

        for i in range(start_index, end_index):
            if i == self.selected_index:
                lines.append(selected(f"→ {truncate_to_width(self.items[i], width - 2)}"))
            else:
                lines.append(f"  {truncate_to_width(self.items[i], width - 2)}")

        if start_index > 0 or end_index < len(self.items):
            position = (self.selected_index or 0) + 1
            scroll_text = f"  ({position}/{len(self.items)})"
            lines.append(dim(truncate_to_width(scroll_text, width)))

        return lines


# ---------------------------------------------------------------------------
# Frame building
# ---------------------------------------------------------------------------


def _key_name(app: App, action: AppAction) -> str:
    keys = app.keybindings.get_keys(action)
    if not keys:
        return "?"
    key = keys[0]
    return f"'{key}'" if len(key) == 1 else key.capitalize()


def header_text(app: App) -> str:
    k = lambda action: _key_name(app, action)  # noqa: E731
    texts = {
        Mode.HOME: f"Home: {k('search')} to search, {k('add')} to add, {k('quit')} to quit",
        Mode.SEARCH: f"Search: type to filter, {k('submit')} to select, {k('cancel')} to go back",
        Mode.SELECT: (
            f"Select: {k('selectDown')}/{k('selectUp')} to move, {k('submit')} to copy, "
            f"{k('edit')} to edit, {k('delete')} to delete, {k('cancel')} to go back"
        ),
        Mode.EDIT: f"Edit: {k('submit')} to save, {k('cancel')} to discard",
        Mode.DELETE: f"Delete: {k('confirmDelete')} to confirm, {k('cancel')} to cancel",
        Mode.ADD_KEY: f"Add key: {k('submit')} to continue, {k('cancel')} to cancel",
        Mode.ADD_VALUE: f"Add value: {k('submit')} to save, {k('cancel')} to go back",
    }
    return texts[app.mode]


def _value_preview(app: App) -> tuple[str, str | None]:
    """Return ``(value, problem)`` for the selected entry."""
    try:
        value = app.selected_value()
    except ValueDecodeError:
        return "", "<value is not valid UTF-8>"
    except StoreError as e:
        logger.warning("Preview failed: %s", e)
        return "", f"<{e}>"
    if value is None:
        return "", "<no value>"
    return value, None


def _body(app: App, list_rows: int) -> Container:
    body = Container()
    mode = app.mode

    if mode is Mode.HOME:
        count = len(app.key_index)
        body.add_child(Text(dim(f"{count} {'entry' if count == 1 else 'entries'} stored")))
    elif mode is Mode.SEARCH:
        body.add_child(TextField("Search", app.query, focused=True))
        body.add_child(Text(""))
        body.add_child(
            KeyList(f"Keys ({len(app.filtered)}/{len(app.key_index)})", app.filtered, max_visible=list_rows)
        )
    elif mode is Mode.SELECT:
        body.add_child(
            KeyList("Keys", app.filtered, app.selection.index, max_visible=list_rows)
        )
        body.add_child(Text(""))
        value, problem = _value_preview(app)
        if problem is not None:
            body.add_child(Text(bold("Value"), error(problem)))
        else:
            body.add_child(TextField("Value", value))
    elif mode is Mode.EDIT:
        body.add_child(TextField("Key", app.selected_key or ""))
        body.add_child(TextField("Value", app.value, focused=True))
    elif mode is Mode.DELETE:
        body.add_child(
            Text(error(bold(f"Delete '{app.selected_key}'?")))
        )
        body.add_child(Text(dim("This cannot be undone.")))
    elif mode is Mode.ADD_KEY:
        body.add_child(TextField("Key", app.key, focused=True))
    elif mode is Mode.ADD_VALUE:
        body.add_child(TextField("Key", app.key))
        body.add_child(TextField("Value", app.value, focused=True))

    return body


def status_text(app: App) -> str:
    if app.status is None:
        return ""
    style = error if app.status.level == "error" else success
    return style(app.status.text)


def build_frame(app: App, width: int, height: int, max_visible: int | None = None) -> list[str]:
    """Lay out one full screen for the current state."""
    list_rows = max(1, height - _RESERVED_ROWS)
    if max_visible is not None:
        list_rows = min(list_rows, max_visible)

    lines = [hint(truncate_to_width(header_text(app), width)), ""]
    lines.extend(_body(app, list_rows).render(width))

    status = truncate_to_width(status_text(app), width)
    if len(lines) < height - 1:
        lines.extend([""] * (height - 1 - len(lines)))
    else:
        lines = lines[: max(0, height - 1)]
    lines.append(status)
    return lines
