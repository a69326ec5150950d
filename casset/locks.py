"""Per-target single-flight locking for cache writes."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator


class PathLocks:
    """Hands out one re-entrant lock per target path.

    Only coordinates threads of the current process. Writers in other
    processes still race, but their writes are atomic and produce the same
    bytes from the same inputs.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def lock_for(self, path: Path) -> threading.RLock:
        key = Path(path).as_posix()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        lock = self.lock_for(path)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
