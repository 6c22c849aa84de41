# cellblock/services/common/locking.py
"""
Per-record locks for serializing mutations on the same cell.
"""
from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, Tuple


class KeyedLock:
    """
    A registry of re-entrant locks, one per key.

    `hold` acquires every requested key in sorted order, so two callers
    locking the same pair of cells can never deadlock.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.RLock:
        with self._registry_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[Tuple[str, ...]]:
        ordered = tuple(sorted(set(keys)))
        with ExitStack() as stack:
            for key in ordered:
                stack.enter_context(self._lock_for(key))
            yield ordered
