"""Application keybindings manager."""

from __future__ import annotations

import logging
from typing import Literal, get_args

from passmr.keys import KeyId, matches_key, normalize_key_id

logger = logging.getLogger(__name__)

AppAction = Literal[
    # Home screen
    "add",
    "search",
    "quit",
    # Select screen
    "edit",
    "delete",
    "selectUp",
    "selectDown",
    # Delete confirmation
    "confirmDelete",
    # Shared
    "submit",
    "cancel",
    # Text input
    "cursorLeft",
    "cursorRight",
    "cursorLineStart",
    "cursorLineEnd",
    "deleteCharBackward",
]

APP_ACTIONS: tuple[str, ...] = get_args(AppAction)

KeybindingsConfig = dict[AppAction, KeyId | list[KeyId]]

DEFAULT_KEYBINDINGS: dict[AppAction, KeyId | list[KeyId]] = {
    # Home screen
    "add": "a",
    "search": "s",
    "quit": "q",
    # Select screen
    "edit": "e",
    "delete": "d",
    "selectUp": ["k", "up"],
    "selectDown": ["j", "down"],
    # Delete confirmation
    "confirmDelete": "y",
    # Shared
    "submit": "enter",
    "cancel": "escape",
    # Text input
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    "deleteCharBackward": "backspace",
}


class KeybindingsManager:
    """Maps named actions to the keys that trigger them."""

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[AppAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()

        # Start with defaults
        for action, keys in DEFAULT_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # Override with user config
        for action, keys in config.items():
            if action not in APP_ACTIONS:
                logger.warning("Ignoring keybinding for unknown action %r", action)
                continue
            key_array = keys if isinstance(keys, list) else [keys]
            valid = [k for k in key_array if isinstance(k, str) and normalize_key_id(k) is not None]
            if len(valid) != len(key_array):
                logger.warning("Ignoring invalid keys for %r: %r", action, key_array)
            if valid:
                self._action_to_keys[action] = valid

    def matches(self, data: str, action: AppAction) -> bool:
        """Check if input matches a specific action."""
        keys = self._action_to_keys.get(action)
        if not keys:
            return False
        for key in keys:
            if matches_key(data, key):
                return True
        return False

    def get_keys(self, action: AppAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: KeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)
