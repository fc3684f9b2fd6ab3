"""Cyclic selection index over a list that is rebuilt from time to time."""

from __future__ import annotations

from collections.abc import Sequence


class SelectionCursor:
    """Optional index into a list of ``length`` items, wrapping at both ends.

    With an empty list every move is a no-op and the index stays ``None``.
    """

    def __init__(self, length: int = 0) -> None:
        self._length = length
        self._index: int | None = None

    @property
    def index(self) -> int | None:
        return self._index

    @property
    def length(self) -> int:
        return self._length

    def select(self, index: int | None) -> None:
        if index is not None and not 0 <= index < self._length:
            raise IndexError(f"selection {index} out of range for {self._length} items")
        self._index = index

    def next(self) -> int | None:
        if self._length == 0:
            self._index = None
        elif self._index is None:
            self._index = 0
        else:
            self._index = (self._index + 1) % self._length
        return self._index

    def previous(self) -> int | None:
        if self._length == 0:
            self._index = None
        elif self._index is None:
            self._index = 0
        else:
            self._index = (self._index - 1 + self._length) % self._length
        return self._index

    def reset(self, length: int) -> None:
        """Point at a freshly built list: first item, or nothing if empty."""
        self._length = length
        self._index = 0 if length > 0 else None

    def anchor(self, items: Sequence[str], key: str | None) -> None:
        """Re-derive the index for a rebuilt list, following *key* if present."""
        if key is not None and key in items:
            self._length = len(items)
            self._index = items.index(key)
        else:
            self.reset(len(items))

    def __repr__(self) -> str:
        return f"SelectionCursor(index={self._index}, length={self._length})"
