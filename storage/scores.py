"""Persistence for final screening scores."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel

from .sqlite import get_conn


class ScoreSink(Protocol):
    def record(self, candidate_id: str, overall: int, subscores: Dict[str, float], passes: bool) -> None: ...


class ScreeningScorePayload(BaseModel):
    candidate_id: str
    overall_score: int
    skills_match_score: float
    experience_relevance_score: float
    communication_score: float
    cultural_fit_score: float
    screening_passed: bool


def insert_screening_score(db_path: Optional[str] = None, **data: Any) -> int:
    """Insert a screening score row and return its primary key."""

    payload = ScreeningScorePayload(**data)
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO screening_scores
               (timestamp, candidate_id, overall_score, skills_match_score, experience_relevance_score,
                communication_score, cultural_fit_score, screening_passed)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                timestamp,
                payload.candidate_id,
                payload.overall_score,
                payload.skills_match_score,
                payload.experience_relevance_score,
                payload.communication_score,
                payload.cultural_fit_score,
                int(payload.screening_passed),
            ),
        )
        return int(cur.lastrowid)


def latest_scores(limit: int = 20, db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    with get_conn(db_path) as conn:
        rows = conn.execute(
            """SELECT timestamp, candidate_id, overall_score, screening_passed
               FROM screening_scores ORDER BY id DESC LIMIT ?""",
            (limit,),
        ).fetchall()
    return [dict(row) for row in rows]


class SqliteScoreSink:
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def record(self, candidate_id: str, overall: int, subscores: Dict[str, float], passes: bool) -> None:
        insert_screening_score(
            self._db_path,
            candidate_id=candidate_id,
            overall_score=overall,
            skills_match_score=subscores["skills_match"],
            experience_relevance_score=subscores["experience_relevance"],
            communication_score=subscores["communication"],
            cultural_fit_score=subscores["cultural_fit"],
            screening_passed=passes,
        )


__all__ = ["ScoreSink", "ScreeningScorePayload", "insert_screening_score", "latest_scores", "SqliteScoreSink"]
