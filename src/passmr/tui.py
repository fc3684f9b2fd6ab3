"""Line-based renderer with differential redraw.

``Component`` is anything that renders itself into terminal lines for a
given width. ``TUI`` paints a list of lines onto a ``Terminal``: the first
frame (and every frame after a resize or ``invalidate``) is a full redraw,
later frames only rewrite the lines that changed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from passmr.utils import truncate_to_width

if TYPE_CHECKING:
    from passmr.terminal import Terminal

logger = logging.getLogger(__name__)

_CLEAR_LINE = "\x1b[2K"
_SEGMENT_RESET = "\x1b[0m"


class Component(Protocol):
    """A renderable terminal component."""

    def render(self, width: int) -> list[str]:
        """Render the component into a list of terminal lines."""
        ...


class Container:
    """A component that stacks its children vertically."""

    def __init__(self) -> None:
        self.children: list[Component] = []

    def add_child(self, component: Component) -> None:
        self.children.append(component)

    def clear(self) -> None:
        self.children.clear()

    def render(self, width: int) -> list[str]:
        lines: list[str] = []
        for child in self.children:
            lines.extend(child.render(width))
        return lines


class TUI:
    """Paints frames onto a terminal, rewriting only changed lines."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._previous_lines: list[str] = []
        self._previous_size: tuple[int, int] = (0, 0)
        self._full_redraws: int = 0

    @property
    def full_redraws(self) -> int:
        return self._full_redraws

    def invalidate(self) -> None:
        """Force the next ``render`` to repaint the whole screen."""
        self._previous_lines = []
        self._previous_size = (0, 0)

    def render(self, lines: list[str]) -> None:
        width = self.terminal.columns
        height = self.terminal.rows

        frame = [truncate_to_width(line, width, "") for line in lines[:height]]
        frame += [""] * (height - len(frame))

        if (width, height) != self._previous_size or not self._previous_lines:
            self.terminal.clear_screen()
            for row, line in enumerate(frame):
                if line:
                    self.terminal.move_to(row)
                    self.terminal.write(line + _SEGMENT_RESET)
            self._full_redraws += 1
            logger.debug("Full redraw #%d at %dx%d", self._full_redraws, width, height)
        else:
            for row, line in enumerate(frame):
                if line != self._previous_lines[row]:
                    self.terminal.move_to(row)
                    self.terminal.write(_CLEAR_LINE + line + _SEGMENT_RESET)

        self._previous_lines = frame
        self._previous_size = (width, height)
