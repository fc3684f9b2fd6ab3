"""Terminal text utilities: ANSI handling and width measurement.

Provides functions for measuring visible terminal widths and truncating
styled text to a column budget without splitting escape sequences or
grapheme clusters.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# CSI sequences: ESC[ <params> <final byte>
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[mGKHJ]")
_RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Control characters and combining marks are zero width, emoji sequences
    (VS16, ZWJ, skin tones, flags) are two columns, everything else is
    delegated to ``wcwidth`` on the first code point.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first).startswith("M") or unicodedata.category(first) == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI escape sequences are ignored. ASCII takes a fast path; other
    strings are measured per grapheme cluster and cached.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    If the text is wider than *max_width*, it is truncated and *ellipsis* is
    appended (the ellipsis counts towards the width). If *pad* is ``True``,
    the result is right-padded with spaces to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    ellipsis_width = visible_width(ellipsis)
    target_width = max_width - ellipsis_width
    if target_width <= 0:
        return take_columns(ellipsis, max_width)

    result = take_columns(text, target_width) + ellipsis

    if pad:
        result_width = visible_width(result)
        if result_width < max_width:
            result += " " * (max_width - result_width)

    return result


def take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* that fits within *max_cols* visible columns.

    ANSI codes are preserved; the text is cut at grapheme boundaries.
    """
    result: list[str] = []
    cols = 0
    pos = 0

    for match in _ANSI_RE.finditer(text):
        plain = text[pos : match.start()]
        taken, cols, full = _take_plain(plain, max_cols, cols)
        result.append(taken)
        if not full:
            return "".join(result) + _RESET
        result.append(match.group(0))
        pos = match.end()

    taken, _, _ = _take_plain(text[pos:], max_cols, cols)
    result.append(taken)
    return "".join(result)


def _take_plain(text: str, max_cols: int, cols: int) -> tuple[str, int, bool]:
    """Take graphemes from plain *text* while they fit.

    Returns ``(taken, new_cols, consumed_everything)``.
    """
    out: list[str] = []
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if cols + w > max_cols:
            return "".join(out), cols, False
        out.append(g)
        cols += w
    return "".join(out), cols, True
