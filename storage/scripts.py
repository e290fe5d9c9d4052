"""Script sources supplying the ordered interview steps for a candidate and role."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from screening.models import Step

from .sqlite import get_conn


class ScriptSource(Protocol):
    def load_steps(self, candidate_id: str, requirement_id: str) -> List[Step]: ...


def _densify(steps: Iterable[Step]) -> List[Step]:
    """Renumber by stored order so orders run 0..N-1 regardless of how they were saved."""
    ordered = sorted(steps, key=lambda step: step.order)
    return [step if step.order == index else step.model_copy(update={"order": index}) for index, step in enumerate(ordered)]


class InMemoryScriptSource:
    def __init__(self, scripts: Optional[Dict[Tuple[str, str], Sequence[Step]]] = None) -> None:
        self._scripts: Dict[Tuple[str, str], List[Step]] = {
            key: list(steps) for key, steps in (scripts or {}).items()
        }
        self.calls: List[Tuple[str, str]] = []

    def add(self, candidate_id: str, requirement_id: str, steps: Sequence[Step]) -> None:
        self._scripts[(candidate_id, requirement_id)] = list(steps)

    def load_steps(self, candidate_id: str, requirement_id: str) -> List[Step]:
        self.calls.append((candidate_id, requirement_id))
        return _densify(self._scripts.get((candidate_id, requirement_id), []))


class SqliteScriptSource:
    """Reads ``screening_interview_steps`` ordered by ``step_order``."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def load_steps(self, candidate_id: str, requirement_id: str) -> List[Step]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                """SELECT step_id, step_order, step_name, type, focus, text, notes
                   FROM screening_interview_steps
                   WHERE candidate_id = ? AND requirement_id = ?
                   ORDER BY step_order""",
                (candidate_id, requirement_id),
            ).fetchall()
        return _densify(
            Step(
                id=str(row["step_id"]),
                order=int(row["step_order"]),
                name=row["step_name"],
                type=row["type"] or "static",
                focus_tag=row["focus"],
                text=row["text"],
                notes=row["notes"],
            )
            for row in rows
        )

    def save_steps(self, candidate_id: str, requirement_id: str, steps: Sequence[Step]) -> int:
        """Replace the stored script for a candidate and role."""
        with get_conn(self._db_path) as conn:
            conn.execute(
                "DELETE FROM screening_interview_steps WHERE candidate_id = ? AND requirement_id = ?",
                (candidate_id, requirement_id),
            )
            conn.executemany(
                """INSERT INTO screening_interview_steps
                   (step_id, candidate_id, requirement_id, step_order, step_name, type, focus, text, notes)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        step.id,
                        candidate_id,
                        requirement_id,
                        step.order,
                        step.name,
                        step.type,
                        step.focus_tag,
                        step.text,
                        step.notes,
                    )
                    for step in steps
                ],
            )
        return len(steps)


__all__ = ["ScriptSource", "InMemoryScriptSource", "SqliteScriptSource"]
