"""Screening interview progression engine."""
from .errors import (
    ClassifierUnavailable,
    FollowUpUnavailable,
    ResponderUnavailable,
    ScreeningError,
    ScriptEmptyError,
    SessionNotFoundError,
    ValidationError,
)
from .models import ProgressSnapshot, Session, Step, StepResponse, TurnResult

__all__ = [
    "ClassifierUnavailable",
    "FollowUpUnavailable",
    "ResponderUnavailable",
    "ScreeningError",
    "ScriptEmptyError",
    "SessionNotFoundError",
    "ValidationError",
    "ProgressSnapshot",
    "Session",
    "Step",
    "StepResponse",
    "TurnResult",
]
