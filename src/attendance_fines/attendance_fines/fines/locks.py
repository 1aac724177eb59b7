from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol


class ReconcileLocks(Protocol):
    """Per-event mutual exclusion for reconcilers.

    ``hold(key)`` yields True when the caller owns the lock for the duration
    of the block, False when somebody else holds it (non-blocking).
    """

    def hold(self, key: str) -> ContextManager[bool]:
        raise NotImplementedError


class InProcessLocks:
    """Lock registry shared by the threads of one process.

    Only keys currently held are stored; a key is dropped as soon as its
    holder leaves the block.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._held: set[str] = set()

    def __len__(self) -> int:
        with self._guard:
            return len(self._held)

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        with self._guard:
            acquired = key not in self._held
            if acquired:
                self._held.add(key)
        try:
            yield acquired
        finally:
            if acquired:
                with self._guard:
                    self._held.discard(key)


def event_lock_key(org_id: int, event_id: int) -> str:
    return f"reconcile:{int(org_id)}:{int(event_id)}"
