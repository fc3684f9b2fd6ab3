"""StdinBuffer splits raw terminal input into complete key sequences.

A single read from stdin can hold several keypresses (fast typing, pastes)
or only part of an escape sequence. The buffer keeps partial escape
sequences until the rest arrives, and pulls bracketed pastes out as a
single event.
"""

from __future__ import annotations

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"


def _escape_sequence_length(data: str) -> int | None:
    """Length of the escape sequence *data* starts with.

    Returns ``None`` while the sequence is still cut off. CSI sequences
    (``ESC [``) end at the first final byte in ``0x40-0x7E``, SS3 sequences
    (``ESC O``) carry one more character, anything else is a two character
    meta key.
    """
    if len(data) < 2:
        return None

    introducer = data[1]
    if introducer == "[":
        for i in range(2, len(data)):
            if 0x40 <= ord(data[i]) <= 0x7E:
                return i + 1
        return None
    if introducer == "O":
        return 3 if len(data) >= 3 else None
    return 2


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated buffer into complete sequences.

    Returns (sequences, remainder).
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        length = _escape_sequence_length(buffer[pos:])
        if length is None:
            return sequences, buffer[pos:]
        sequences.append(buffer[pos : pos + length])
        pos += length

    return sequences, ""


class StdinBuffer:
    """Accumulates raw input and hands back complete sequences.

    ``process`` returns what can be emitted now. A partial escape sequence
    stays buffered; the caller calls ``flush`` once no more input arrives
    within its timeout, which turns a lone ``ESC`` into the escape key.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def pending(self) -> bool:
        """``True`` while a partial escape sequence is waiting."""
        return bool(self._buffer)

    def process(self, data: str) -> list[str]:
        """Feed input data into the buffer and return complete events.

        Pastes are returned wrapped in the bracketed paste markers.
        """
        if self._paste_mode:
            self._paste_buffer += data
            return self._finish_paste()

        self._buffer += data
        start = self._buffer.find(BRACKETED_PASTE_START)
        if start == -1:
            events, self._buffer = _extract_complete_sequences(self._buffer)
            return events

        # Keys typed before the paste marker are emitted first.
        events, _ = _extract_complete_sequences(self._buffer[:start])
        self._paste_mode = True
        self._paste_buffer = self._buffer[start + len(BRACKETED_PASTE_START) :]
        self._buffer = ""
        return events + self._finish_paste()

    def _finish_paste(self) -> list[str]:
        end = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end == -1:
            return []

        content = self._paste_buffer[:end]
        rest = self._paste_buffer[end + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""

        events = [BRACKETED_PASTE_START + content + BRACKETED_PASTE_END]
        if rest:
            events.extend(self.process(rest))
        return events

    def flush(self) -> list[str]:
        """Emit whatever partial sequence is buffered as-is."""
        partial, self._buffer = self._buffer, ""
        return [partial] if partial else []

    def clear(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        return self._buffer
