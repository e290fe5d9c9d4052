"""Error taxonomy for the screening engine."""
from __future__ import annotations


class ScreeningError(Exception):
    """Base class for all screening errors."""


class ScriptEmptyError(ScreeningError):
    """No steps exist for the candidate/role pair; the session cannot start."""

    def __init__(self, candidate_id: str, requirement_id: str) -> None:
        super().__init__(f"No interview steps found for candidate={candidate_id} requirement={requirement_id}")
        self.candidate_id = candidate_id
        self.requirement_id = requirement_id


class SessionNotFoundError(ScreeningError):
    """Unknown session id; the client must restart the interview."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ValidationError(ScreeningError, ValueError):
    """Malformed or out-of-range input; nothing is partially applied."""


class CapabilityUnavailable(ScreeningError):
    """An external capability failed or timed out. Always absorbed by a fallback."""


class ClassifierUnavailable(CapabilityUnavailable):
    pass


class FollowUpUnavailable(CapabilityUnavailable):
    pass


class ResponderUnavailable(CapabilityUnavailable):
    pass


__all__ = [
    "ScreeningError",
    "ScriptEmptyError",
    "SessionNotFoundError",
    "ValidationError",
    "CapabilityUnavailable",
    "ClassifierUnavailable",
    "FollowUpUnavailable",
    "ResponderUnavailable",
]
