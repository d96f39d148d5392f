"""Per-key write locks for scenario and version state."""

import threading
from typing import Dict


class KeyedLocks:
    """One lock per scenario id; different ids never block each other."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def __call__(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def discard(self, key: str) -> None:
        with self._guard:
            self._locks.pop(key, None)
