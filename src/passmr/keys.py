"""Keyboard input parsing and matching for the terminal.

Translates raw terminal input (legacy xterm/VT escape sequences and control
bytes) into key identifiers such as ``"enter"``, ``"ctrl+a"`` or ``"j"``,
and checks raw input against an identifier with ``matches_key``.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Canonical modifier order used by ``parse_key`` output
_MODIFIER_ORDER = ("ctrl", "shift", "alt")

_KEY_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
    "pageup": "pageUp",
    "pagedown": "pageDown",
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
}

# xterm "CSI 1 ; <mod> <final>" sequences for arrows/home/end
_CSI_FINAL_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

# xterm modifier parameter -> (ctrl, shift, alt)
_XTERM_MODIFIERS: dict[str, tuple[bool, bool, bool]] = {
    "2": (False, True, False),
    "3": (False, False, True),
    "4": (False, True, True),
    "5": (True, False, False),
    "6": (True, True, False),
    "7": (True, False, True),
    "8": (True, True, True),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _with_modifiers(key: str, ctrl: bool = False, shift: bool = False, alt: bool = False) -> str:
    prefix = ""
    if ctrl:
        prefix += "ctrl+"
    if shift:
        prefix += "shift+"
    if alt:
        prefix += "alt+"
    return prefix + key


def normalize_key_id(key_id: str) -> KeyId | None:
    """Return *key_id* in canonical form (modifier order, aliases, case).

    ``"Shift+Ctrl+Up"`` -> ``"ctrl+shift+up"``; ``"esc"`` -> ``"escape"``.
    Single printable characters keep their case. Returns ``None`` for an
    empty identifier or an unknown modifier.
    """
    if not key_id:
        return None
    if key_id == " ":
        return "space"
    if len(key_id) == 1:
        return key_id

    parts = key_id.split("+")
    # A trailing "+" means the literal plus key ("ctrl++")
    if key_id.endswith("++"):
        parts = parts[:-2] + ["+"]
    key = parts[-1]
    mods = {p.lower() for p in parts[:-1]}
    if not mods.issubset(_MODIFIER_ORDER):
        return None

    if len(key) > 1:
        lowered = key.lower()
        key = _KEY_ALIASES.get(lowered, lowered)
    elif mods:
        key = key.lower()

    return _with_modifiers(
        key, ctrl="ctrl" in mods, shift="shift" in mods, alt="alt" in mods
    )


def is_printable(data: str) -> bool:
    """``True`` when *data* is plain text with no control characters."""
    if not data:
        return False
    return not any(
        ord(ch) < 32 or ord(ch) == 0x7F or (0x80 <= ord(ch) <= 0x9F)
        for ch in data
    )


# ---------------------------------------------------------------------------
# parse_key - determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyId | None:  # noqa: C901
    """Parse raw terminal input and return the key identifier, or ``None``.

    The returned string uses the same format ``matches_key`` expects:
    e.g. ``"a"``, ``"ctrl+a"``, ``"alt+enter"``, ``"shift+up"``.
    """
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    # --- CSI 1 ; <mod> <final> (modified arrows, home, end) ---
    if data.startswith("\x1b[1;") and len(data) == 6:
        mods = _XTERM_MODIFIERS.get(data[4])
        key = _CSI_FINAL_KEYS.get(data[5])
        if mods is not None and key is not None:
            return _with_modifiers(key, *mods)

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f" or data == "\x08":
        return "backspace"
    if data == "\x00":
        return "ctrl+space"
    if data == "\x1b[Z":
        return "shift+tab"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch == "\x1b":
            return "alt+escape"
        if ch == "\r" or ch == "\n":
            return "alt+enter"
        if ch == "\x7f" or ch == "\x08":
            return "alt+backspace"
        if 1 <= ord(ch) <= 26:
            return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
        if ch.isupper():
            return "shift+alt+" + ch.lower()
        if ch.isprintable():
            return "alt+" + ch

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None


# ---------------------------------------------------------------------------
# matches_key
# ---------------------------------------------------------------------------


def matches_key(data: str, key_id: str) -> bool:
    """Return ``True`` if *data* (raw terminal input) is the key *key_id*.

    *key_id* examples: ``"a"``, ``"ctrl+a"``, ``"escape"``, ``"shift+up"``.
    """
    wanted = normalize_key_id(key_id)
    if wanted is None:
        return False
    parsed = parse_key(data)
    return parsed is not None and parsed == wanted
