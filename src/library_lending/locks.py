"""
Per-key mutual exclusion.

Every lending operation is a read-modify-write of one book. ``KeyedLock``
hands out one lock per book ID so operations on the same book are
serialized while operations on different books run in parallel.

A key's entry lives only while some thread holds or waits for it, so the
registry stays as small as the number of books currently being worked on.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLock:
    """A registry of reentrant locks, one per key in use."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)
