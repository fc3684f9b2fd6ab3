"""Shared fixtures: in-memory store and clipboard fakes."""

from __future__ import annotations

import pytest

from passmr.app import App
from passmr.clipboard import ClipboardError
from passmr.store import StorageIOError, ValueDecodeError


class MemoryStore:
    """Dict-backed ``Store`` with switchable failures."""

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self.entries: dict[str, str] = dict(entries or {})
        self.undecodable: set[str] = set()
        self.fail_writes = False
        self.fail_reads = False
        self.closed = False

    def insert(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageIOError(f"Failed to write '{key}': disk I/O error")
        self.entries[key] = value

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageIOError(f"Failed to read '{key}': disk I/O error")
        if key in self.undecodable:
            raise ValueDecodeError(key, UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
        return self.entries.get(key)

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StorageIOError(f"Failed to delete '{key}': disk I/O error")
        self.entries.pop(key, None)

    def list_keys(self) -> list[str]:
        if self.fail_reads:
            raise StorageIOError("Failed to list keys: disk I/O error")
        return sorted(self.entries)

    def close(self) -> None:
        self.closed = True


class FakeClipboard:
    """Records copies; set ``fail`` to simulate a missing clipboard service."""

    def __init__(self) -> None:
        self.copies: list[str] = []
        self.fail = False

    def copy(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("no clipboard mechanism found")
        self.copies.append(text)

    @property
    def last(self) -> str | None:
        return self.copies[-1] if self.copies else None


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore({"alpha": "a1", "beta": "b2", "gamma": "g3"})


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def app(store: MemoryStore, clipboard: FakeClipboard) -> App:
    application = App(store, clipboard)
    application.resync()
    return application
