"""Per-key serialization of schedule recalculations."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager

from flowplan.logger import get_logger

logger = get_logger()


class KeyedLocks:
    """Registry of reentrant locks, one per key, created on demand.

    Holders of different keys never block each other. The same thread may
    take a key it already holds, so a recalculation can trigger nested work
    on its own assignee.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self.lock_for(key)
        with lock:
            logger.debug(f"    lock acquired: {key}")
            yield

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
