"""passmr: terminal password manager with modal keyboard navigation."""

# Application state
from passmr.app import App, Mode, StatusMessage

# Clipboard
from passmr.clipboard import Clipboard, ClipboardError, SystemClipboard

# Text editing
from passmr.edit_buffer import EditBuffer

# Keybindings
from passmr.keybindings import DEFAULT_KEYBINDINGS, AppAction, KeybindingsManager

# Keyboard input handling
from passmr.keys import KeyId, matches_key, parse_key

# Filtering and selection
from passmr.search import recompute
from passmr.selection import SelectionCursor

# Settings
from passmr.settings import Settings, load_settings

# Storage
from passmr.store import (
    SqliteStore,
    StorageIOError,
    StorageOpenError,
    Store,
    StoreError,
    ValueDecodeError,
    open_store,
)

__all__ = [
    # App
    "App",
    "Mode",
    "StatusMessage",
    # Clipboard
    "Clipboard",
    "ClipboardError",
    "SystemClipboard",
    # Text editing
    "EditBuffer",
    # Keybindings
    "AppAction",
    "DEFAULT_KEYBINDINGS",
    "KeybindingsManager",
    # Keys
    "KeyId",
    "matches_key",
    "parse_key",
    # Filtering and selection
    "SelectionCursor",
    "recompute",
    # Settings
    "Settings",
    "load_settings",
    # Storage
    "SqliteStore",
    "StorageIOError",
    "StorageOpenError",
    "Store",
    "StoreError",
    "ValueDecodeError",
    "open_store",
]
