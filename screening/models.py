"""Session, step and progress models for the screening engine."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StepType = Literal["static", "semi-static", "dynamic", "relational"]
Quality = Literal["none", "partial", "complete"]
SessionStatus = Literal["in_progress", "completed", "timed_out"]
StepStatus = Literal["completed", "partial", "current", "pending"]

WINDOW_COUNT = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Step(BaseModel):
    """One scripted question. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    order: int = Field(ge=0)
    type: StepType = "static"
    focus_tag: Optional[str] = None
    name: Optional[str] = None
    text: str
    notes: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or f"Step {self.order + 1}"

    @property
    def prompt(self) -> str:
        """Question text with stray surrounding quotes removed."""
        text = self.text.strip()
        if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
            text = text[1:-1].strip()
        return text


class StepResponse(BaseModel):
    has_response: bool = False
    quality: Quality = "none"
    raw_answer: Optional[str] = None
    follow_up_count: int = Field(default=0, ge=0)
    max_follow_ups: int = Field(default=1, ge=0)
    second_chance_used: bool = False
    completed: bool = False

    @property
    def follow_ups_exhausted(self) -> bool:
        return self.follow_up_count >= self.max_follow_ups


class SessionMemory(BaseModel):
    key_points: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)


class Session(BaseModel):
    """Serializable progression state for one candidate's run through the script."""

    session_id: str
    candidate_id: str
    requirement_id: str

    steps: List[Step]
    responses: Dict[str, StepResponse] = Field(default_factory=dict)

    current_step_index: int = Field(default=0, ge=0)
    context_window_index: int = Field(default=0, ge=0, le=WINDOW_COUNT - 1)

    memory: SessionMemory = Field(default_factory=SessionMemory)

    interview_complete: bool = False
    status: SessionStatus = "in_progress"

    start_time: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)

    events: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> Optional[Step]:
        if self.current_step_index >= self.total_steps:
            return None
        return self.steps[self.current_step_index]

    def response_for(self, step: Step) -> StepResponse:
        return self.responses[step.id]

    def touch(self, now: Optional[datetime] = None) -> None:
        self.last_activity = now or utcnow()


class ProgressSnapshot(BaseModel):
    total_steps: int
    completed_steps: int
    current_step: int
    current_window: int
    completion_rate: float
    steps_with_no_response: int
    steps_with_second_chance: int
    interview_complete: bool
    status: SessionStatus


class StepStatusRow(BaseModel):
    step_id: str
    name: str
    status: StepStatus


class WindowInfo(BaseModel):
    current_window: int
    total_windows: int = WINDOW_COUNT
    steps_in_window: int
    incomplete_steps: int
    window_progress: float


TurnKind = Literal[
    "ASK",
    "SECOND_CHANCE",
    "FOLLOW_UP",
    "ADVANCE",
    "INTERRUPTION",
    "COMPLETE",
    "TIMED_OUT",
]


class TurnResult(BaseModel):
    """What the caller shows the candidate after a turn."""

    kind: TurnKind
    prompt_text: str
    progress: ProgressSnapshot
    step_id: Optional[str] = None


__all__ = [
    "StepType",
    "Quality",
    "SessionStatus",
    "WINDOW_COUNT",
    "utcnow",
    "Step",
    "StepResponse",
    "SessionMemory",
    "Session",
    "ProgressSnapshot",
    "StepStatusRow",
    "WindowInfo",
    "TurnKind",
    "TurnResult",
]
