"""Per-key mutual exclusion for threads sharing one book."""
from __future__ import annotations
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List


class KeyLocker:
    """Lets multiple threads lock against a string key.

    A lock exists only while some thread holds or waits for it, so the
    table does not grow with the number of keys ever touched.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
