"""Per-session locking so turns for one session run one at a time."""
from __future__ import annotations

import threading
from typing import Dict


class SessionLocks:
    """Hands out one lock per session id; different sessions never contend."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
        return lock

    def discard(self, session_id: str) -> None:
        with self._guard:
            self._locks.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ["SessionLocks"]
