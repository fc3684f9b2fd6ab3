"""Single-line text buffer with a clamped cursor."""

from __future__ import annotations


class EditBuffer:
    """Mutable text plus a cursor, with ``0 <= cursor <= len(text)``.

    The cursor counts characters (code points), not display columns.
    """

    def __init__(self, text: str = "") -> None:
        self._text: str = text
        self._cursor: int = len(text)

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._text)

    def __bool__(self) -> bool:
        return bool(self._text)

    def _clamp(self, position: int) -> int:
        return max(0, min(position, len(self._text)))

    def insert(self, text: str) -> None:
        """Insert *text* at the cursor and move the cursor past it."""
        if not text:
            return
        self._text = self._text[: self._cursor] + text + self._text[self._cursor :]
        self._cursor = self._clamp(self._cursor + len(text))

    def delete_before_cursor(self) -> None:
        if self._cursor == 0:
            return
        self._text = self._text[: self._cursor - 1] + self._text[self._cursor :]
        self._cursor = self._clamp(self._cursor - 1)

    def move_left(self) -> None:
        self._cursor = self._clamp(self._cursor - 1)

    def move_right(self) -> None:
        self._cursor = self._clamp(self._cursor + 1)

    def move_to_start(self) -> None:
        self._cursor = 0

    def move_to_end(self) -> None:
        self._cursor = len(self._text)

    def set(self, text: str) -> None:
        """Replace the contents and put the cursor at the end."""
        self._text = text
        self._cursor = len(text)

    def clear(self) -> None:
        self._text = ""
        self._cursor = 0

    def __repr__(self) -> str:
        return f"EditBuffer(text={self._text!r}, cursor={self._cursor})"
