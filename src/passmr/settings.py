"""Settings with JSON persistence.

Values come from ``<config dir>/settings.json`` and are overridden by
command line flags. The file uses camelCase keys::

    {
      "storePath": "~/secrets/store.db",
      "logFile": "/tmp/passmr.log",
      "logLevel": "debug",
      "maxVisible": 15,
      "keybindings": {"quit": ["q", "ctrl+q"]}
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from passmr.keybindings import KeybindingsConfig

CONFIG_DIR_ENV = "PASSMR_CONFIG_DIR"
SETTINGS_FILE_NAME = "settings.json"
STORE_FILE_NAME = "store.db"
LOG_FILE_NAME = "passmr.log"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
DEFAULT_LOG_LEVEL = "warning"


def get_config_dir(override: str | os.PathLike[str] | None = None) -> Path:
    """Resolve the configuration directory, creating it if needed.

    Precedence: *override*, ``$PASSMR_CONFIG_DIR``, ``$XDG_CONFIG_HOME/passmr``,
    ``~/.config/passmr``.
    """
    if override is not None:
        config_dir = Path(override).expanduser()
    elif os.environ.get(CONFIG_DIR_ENV):
        config_dir = Path(os.environ[CONFIG_DIR_ENV]).expanduser()
    elif os.environ.get("XDG_CONFIG_HOME"):
        config_dir = Path(os.environ["XDG_CONFIG_HOME"]).expanduser() / "passmr"
    else:
        config_dir = Path.home() / ".config" / "passmr"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@dataclass
class Settings:
    """Resolved runtime settings."""

    config_dir: Path
    store_path: Path
    log_file: Path
    log_level: str = DEFAULT_LOG_LEVEL
    max_visible: int | None = None
    keybindings: KeybindingsConfig = field(default_factory=dict)


def _load_from_file(path: Path) -> tuple[dict[str, Any], Exception | None]:
    if not path.exists():
        return {}, None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        return {}, e
    if not isinstance(data, dict):
        return {}, ValueError(f"{path}: expected a JSON object")
    return data, None


def _resolve_path(value: Any, base: Path) -> Path | None:
    if not isinstance(value, str) or not value:
        return None
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _clean_keybindings(raw: dict[str, Any], problems: list[str]) -> KeybindingsConfig:
    """Keep only key ids that are strings (alone or in a list)."""
    cleaned: KeybindingsConfig = {}
    for action, keys in raw.items():
        key_list = keys if isinstance(keys, list) else [keys]
        valid = [k for k in key_list if isinstance(k, str)]
        if len(valid) != len(key_list):
            problems.append(f"Ignoring non-string keys for {action!r}: {keys!r}")
        if valid:
            cleaned[action] = valid if isinstance(keys, list) else valid[0]
    return cleaned


def load_settings(
    config_dir: str | os.PathLike[str] | None = None,
    store_path: str | None = None,
    log_level: str | None = None,
) -> tuple[Settings, list[str]]:
    """Load settings for this run.

    Returns the settings and a list of problems found while reading the
    file. Problems are not fatal: the offending values fall back to their
    defaults. Logging is not configured yet at this point, so the caller
    reports them.
    """
    directory = get_config_dir(config_dir)
    data, error = _load_from_file(directory / SETTINGS_FILE_NAME)
    problems: list[str] = []
    if error is not None:
        problems.append(f"Could not read settings: {error}")

    settings = Settings(
        config_dir=directory,
        store_path=_resolve_path(data.get("storePath"), directory) or directory / STORE_FILE_NAME,
        log_file=_resolve_path(data.get("logFile"), directory) or directory / LOG_FILE_NAME,
    )

    file_level = data.get("logLevel")
    if isinstance(file_level, str) and file_level.lower() in LOG_LEVELS:
        settings.log_level = file_level.lower()
    elif file_level is not None:
        problems.append(f"Ignoring invalid logLevel {file_level!r}")

    max_visible = data.get("maxVisible")
    if isinstance(max_visible, int) and not isinstance(max_visible, bool) and max_visible > 0:
        settings.max_visible = max_visible
    elif max_visible is not None:
        problems.append(f"Ignoring invalid maxVisible {max_visible!r}")

    keybindings = data.get("keybindings")
    if isinstance(keybindings, dict):
        settings.keybindings = _clean_keybindings(keybindings, problems)
    elif keybindings is not None:
        problems.append("Ignoring keybindings: expected an object")

    # CLI overrides
    if store_path is not None:
        settings.store_path = Path(store_path).expanduser()
    if log_level is not None:
        settings.log_level = log_level.lower()

    return settings, problems
