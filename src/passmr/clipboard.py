"""System clipboard access."""

from __future__ import annotations

import logging
from typing import Protocol

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardError(Exception):
    """The clipboard service is unavailable or rejected the write."""


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class SystemClipboard:
    """Clipboard backed by ``pyperclip`` (xclip/xsel/wl-copy/pbcopy/...)."""

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.warning("Clipboard write failed: %s", e)
            raise ClipboardError(str(e)) from e
