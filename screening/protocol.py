"""Time and step budget gate run before every turn."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel

if TYPE_CHECKING:
    from .models import Session

DEFAULT_MAX_DURATION_MS = 1_800_000

TIME_LIMIT_MESSAGE = "Interview time limit reached. Thank you for participating."
STEPS_DONE_MESSAGE = "All interview steps completed. Thank you!"

VetoReason = Literal["ok", "time_limit", "steps_exhausted"]


class ProtocolVerdict(BaseModel):
    allow: bool
    reason: VetoReason
    message: Optional[str] = None


def check(session: "Session", now: datetime, max_duration_ms: int = DEFAULT_MAX_DURATION_MS) -> ProtocolVerdict:
    """Decide whether the interview may continue. Reads the session, never mutates it."""

    elapsed_ms = (now - session.start_time).total_seconds() * 1000.0
    if max_duration_ms and elapsed_ms > max_duration_ms:
        return ProtocolVerdict(allow=False, reason="time_limit", message=TIME_LIMIT_MESSAGE)
    if session.current_step_index >= session.total_steps:
        return ProtocolVerdict(allow=False, reason="steps_exhausted", message=STEPS_DONE_MESSAGE)
    return ProtocolVerdict(allow=True, reason="ok")


__all__ = [
    "DEFAULT_MAX_DURATION_MS",
    "TIME_LIMIT_MESSAGE",
    "STEPS_DONE_MESSAGE",
    "ProtocolVerdict",
    "check",
]
