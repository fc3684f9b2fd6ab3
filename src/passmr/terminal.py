"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, the alternate screen, bracketed paste,
cursor visibility and blocking key reads via ANSI escape sequences.
"""

from __future__ import annotations

import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from passmr.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_MOVE_TO_FMT = "\x1b[{};{}H"

_SET_TITLE_FMT = "\x1b]0;{}\x07"


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(self, on_resize: Callable[[], None] | None = None) -> None: ...

    def stop(self) -> None: ...

    def read_events(self) -> list[str]: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def move_to(self, row: int, col: int = 0) -> None: ...

    def clear_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal implementation backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios`, the alternate screen,
    bracketed paste mode, and SIGWINCH-based resize notification. Reads block
    until at least one complete key sequence is available.
    """

    def __init__(self) -> None:
        self._stdin_buffer = StdinBuffer(timeout=0.01)
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | Callable | int | None = None
        self._resize_handler: Callable[[], None] | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(self, on_resize: Callable[[], None] | None = None) -> None:
        """Enable raw mode, the alternate screen and bracketed paste."""
        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._raw_write(_ALT_SCREEN_ENABLE + _BRACKETED_PASTE_ENABLE + _HIDE_CURSOR)

        self._resize_handler = on_resize
        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)
        logger.debug("Terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        self._raw_write(_SHOW_CURSOR + _BRACKETED_PASTE_DISABLE + _ALT_SCREEN_DISABLE)
        self._stdin_buffer.clear()

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None
        self._resize_handler = None

        if self._original_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
            self._original_termios = None
        logger.debug("Terminal restored")

    # -- input --------------------------------------------------------------

    def read_events(self) -> list[str]:
        """Block until input arrives and return the complete key sequences.

        A partial escape sequence is completed by a follow-up read when more
        bytes arrive within the buffer timeout; otherwise it is flushed as is
        (a lone ``ESC`` becomes the escape key).
        """
        fd = sys.stdin.fileno()
        while True:
            events = self._stdin_buffer.process(self._read_chunk(fd))
            while self._stdin_buffer.pending:
                ready, _, _ = select.select([fd], [], [], self._stdin_buffer.timeout)
                if ready:
                    events.extend(self._stdin_buffer.process(self._read_chunk(fd)))
                else:
                    events.extend(self._stdin_buffer.flush())
            if events:
                return events

    @staticmethod
    def _read_chunk(fd: int) -> str:
        raw = os.read(fd, 4096)
        if not raw:
            raise EOFError("stdin closed")
        return raw.decode("utf-8", errors="replace")

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    def move_to(self, row: int, col: int = 0) -> None:
        """Move the cursor to zero-based (*row*, *col*)."""
        self._raw_write(_MOVE_TO_FMT.format(row + 1, col + 1))

    def clear_screen(self) -> None:
        self._raw_write(_CLEAR_SCREEN)

    def set_title(self, title: str) -> None:
        self._raw_write(_SET_TITLE_FMT.format(title))

    # -- private ------------------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            logger.debug("stdout write failed", exc_info=True)
