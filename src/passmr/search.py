"""Live substring filter over the key index."""

from __future__ import annotations

from collections.abc import Iterable


def recompute(all_keys: Iterable[str], query: str) -> list[str]:
    """Return the keys containing *query* case-insensitively, in input order.

    The empty query matches every key.
    """
    query_lower = query.lower()
    return [key for key in all_keys if query_lower in key.lower()]
