"""Session repositories: a process-local map and a SQLite-backed store."""
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol

from screening.models import Session

from .sqlite import get_conn


class SessionRepository(Protocol):
    def get(self, session_id: str) -> Optional[Session]: ...

    def put(self, session: Session) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def purge_idle(self, now: datetime, max_idle: timedelta) -> List[str]: ...


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class InMemorySessionRepository:
    """Keeps deep copies so callers never share live state through the store."""

    def __init__(self) -> None:
        self._items: Dict[str, Session] = {}
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[Session]:
        with self._guard:
            session = self._items.get(session_id)
            return session.model_copy(deep=True) if session else None

    def put(self, session: Session) -> None:
        with self._guard:
            self._items[session.session_id] = session.model_copy(deep=True)

    def delete(self, session_id: str) -> None:
        with self._guard:
            self._items.pop(session_id, None)

    def purge_idle(self, now: datetime, max_idle: timedelta) -> List[str]:
        cutoff = as_utc(now) - max_idle
        with self._guard:
            stale = [sid for sid, session in self._items.items() if as_utc(session.last_activity) < cutoff]
            for sid in stale:
                del self._items[sid]
        return stale

    def __len__(self) -> int:
        return len(self._items)


class SqliteSessionRepository:
    """One JSON row per session in ``screening_sessions``."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def get(self, session_id: str) -> Optional[Session]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT state_json FROM screening_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return Session.model_validate_json(row["state_json"])

    def put(self, session: Session) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT INTO screening_sessions
                   (session_id, candidate_id, requirement_id, status, last_activity, state_json)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(session_id) DO UPDATE SET
                     status = excluded.status,
                     last_activity = excluded.last_activity,
                     state_json = excluded.state_json""",
                (
                    session.session_id,
                    session.candidate_id,
                    session.requirement_id,
                    session.status,
                    as_utc(session.last_activity).isoformat(),
                    session.model_dump_json(),
                ),
            )

    def delete(self, session_id: str) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute("DELETE FROM screening_sessions WHERE session_id = ?", (session_id,))

    def purge_idle(self, now: datetime, max_idle: timedelta) -> List[str]:
        # last_activity is stored as UTC ISO text, so string order is time order.
        cutoff = (as_utc(now) - max_idle).isoformat()
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                "SELECT session_id FROM screening_sessions WHERE last_activity < ?", (cutoff,)
            ).fetchall()
            stale = [row["session_id"] for row in rows]
            conn.executemany("DELETE FROM screening_sessions WHERE session_id = ?", [(sid,) for sid in stale])
        return stale


__all__ = ["SessionRepository", "InMemorySessionRepository", "SqliteSessionRepository", "as_utc"]
