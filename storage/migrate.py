"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS screening_interview_steps (
  step_id TEXT NOT NULL,
  candidate_id TEXT NOT NULL,
  requirement_id TEXT NOT NULL,
  step_order INTEGER NOT NULL,
  step_name TEXT,
  type TEXT NOT NULL DEFAULT 'static',
  focus TEXT,
  text TEXT NOT NULL,
  notes TEXT,
  PRIMARY KEY (candidate_id, requirement_id, step_id)
);
""",
    """
CREATE TABLE IF NOT EXISTS screening_sessions (
  session_id TEXT PRIMARY KEY,
  candidate_id TEXT NOT NULL,
  requirement_id TEXT NOT NULL,
  status TEXT NOT NULL,
  last_activity TEXT NOT NULL,
  state_json TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS screening_scores (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  candidate_id TEXT NOT NULL,
  overall_score INTEGER NOT NULL,
  skills_match_score REAL NOT NULL,
  experience_relevance_score REAL NOT NULL,
  communication_score REAL NOT NULL,
  cultural_fit_score REAL NOT NULL,
  screening_passed INTEGER NOT NULL
);
""",
]


def migrate(db_path: str = "data/screening.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
