"""In-process locks keyed by an id (one per equipment unit)."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    """Hands out one reentrant lock per key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str | None) -> Iterator[None]:
        """Hold the lock for *key* for the duration of the block (no-op for None)."""
        if key is None:
            yield
            return
        with self._lock_for(key):
            yield
