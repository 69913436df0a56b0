"""
Per-key mutual exclusion for webhook processing.

Two deliveries for the same WhatsApp number must not interleave their
load -> decide -> save sequence, or one draft silently overwrites the other.

Uses in-memory locks, so this only serializes within one process. With
multiple workers, deliveries for the same number can still race.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

logger = logging.getLogger(__name__)


class KeyedLock:
    """Reference-counted lock per key; entries are dropped once unused."""

    def __init__(self):
        self._guard = threading.Lock()
        # Dict[key, [lock, waiters]]
        self._locks: Dict[str, List] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1

        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
