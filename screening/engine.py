"""Interview progression: step sequencing, follow-ups, second chances and context windows."""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from agents import follow_up as follow_up_agent
from agents import quality_classifier
from agents.persona_manager import Purpose, apply_persona
from config.settings import settings
from observability.logger import log_event

from .errors import ScriptEmptyError, ValidationError
from .models import (
    WINDOW_COUNT,
    ProgressSnapshot,
    Session,
    Step,
    StepResponse,
    StepStatusRow,
    TurnKind,
    TurnResult,
    WindowInfo,
    utcnow,
)
from .protocol import TIME_LIMIT_MESSAGE

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    max_follow_ups: int = Field(default=1, ge=0)


class EngineDeps(BaseModel):
    """Capabilities the engine calls out to. Defaults are the registry-backed agents."""

    classify: Callable[[str, Step], str] = quality_classifier.classify
    follow_up: Callable[[Step, str], str] = follow_up_agent.generate
    now: Callable[[], datetime] = utcnow


def new_session(
    *,
    session_id: str,
    candidate_id: str,
    requirement_id: str,
    steps: Sequence[Step],
    cfg: Optional[EngineConfig] = None,
    now: Optional[datetime] = None,
) -> Session:
    """Build a fresh session over an already loaded script.

    Raises:
        ScriptEmptyError: If ``steps`` is empty.
        ValidationError: If step ids repeat or orders are not dense from 0.
    """

    cfg = cfg or EngineConfig()
    if not steps:
        raise ScriptEmptyError(candidate_id, requirement_id)
    ordered = sorted(steps, key=lambda step: step.order)
    if [step.order for step in ordered] != list(range(len(ordered))):
        raise ValidationError("Step orders must be unique and dense from 0")
    if len({step.id for step in ordered}) != len(ordered):
        raise ValidationError("Step ids must be unique")

    started = now or utcnow()
    session = Session(
        session_id=session_id,
        candidate_id=candidate_id,
        requirement_id=requirement_id,
        steps=ordered,
        responses={step.id: StepResponse(max_follow_ups=cfg.max_follow_ups) for step in ordered},
        start_time=started,
        last_activity=started,
    )
    log_event("session_start", session_id, total_steps=len(ordered), candidate=candidate_id)
    return session


def first_prompt(session: Session) -> TurnResult:
    """Prompt for the step the session currently sits on, without mutating anything."""

    if session.interview_complete:
        return _result(session, _terminal_kind(session), closing_message(session))
    step = session.current_step
    return _result(session, "ASK", apply_persona(step.prompt, purpose="ask_question"), step)


def advance(
    session: Session,
    candidate_message: Optional[str],
    deps: Optional[EngineDeps] = None,
) -> TurnResult:
    """Process one candidate answer for the current step and return the next prompt."""

    if session.interview_complete:
        return _result(session, _terminal_kind(session), closing_message(session))

    deps = deps or EngineDeps()
    step = session.current_step
    response = session.response_for(step)
    message = (candidate_message or "").strip()
    session.touch(deps.now())

    if not message:
        if not response.second_chance_used:
            response.second_chance_used = True
            _record(session, "SECOND_CHANCE", step)
            return _result(session, "SECOND_CHANCE", apply_persona(step.prompt, purpose="second_chance"), step)
        _mark_completed(response)
        _record(session, "SKIPPED_UNANSWERED", step)
        return _move_on(session, "advance_unanswered")

    quality = _classify(deps, message, step)
    response.has_response = True
    response.quality = quality
    response.raw_answer = message
    _record(session, "ANSWER", step, quality=quality)

    if quality == "complete":
        _mark_completed(response)
        return _move_on(session, "advance_complete")

    if not response.follow_ups_exhausted:
        response.follow_up_count += 1
        text = _follow_up(deps, step, message)
        _record(session, "FOLLOW_UP", step, follow_up_count=response.follow_up_count)
        return _result(session, "FOLLOW_UP", text, step)

    # Marginal answers do not stall the interview once follow-ups are spent.
    _mark_completed(response)
    return _move_on(session, "advance_partial")


def time_out(session: Session, now: Optional[datetime] = None) -> TurnResult:
    """Terminate the session because its time budget ran out."""

    if not session.interview_complete:
        session.interview_complete = True
        session.status = "timed_out"
        session.touch(now)
        _record(session, "TIMED_OUT", session.current_step)
        log_event("session_timed_out", session.session_id, step_index=session.current_step_index)
    return _result(session, _terminal_kind(session), closing_message(session))


def record_memory(
    session: Session,
    *,
    key_points: Iterable[str] = (),
    strengths: Iterable[str] = (),
    concerns: Iterable[str] = (),
) -> None:
    """Append observations to the session memory. Existing entries are never rewritten."""

    if session.interview_complete:
        return
    for target, items in (
        (session.memory.key_points, key_points),
        (session.memory.strengths, strengths),
        (session.memory.concerns, concerns),
    ):
        target.extend(item.strip() for item in items if item and item.strip())


def window_size(total_steps: int) -> int:
    return max(1, math.ceil(total_steps / WINDOW_COUNT))


def window_bounds(session: Session, window_index: Optional[int] = None) -> Tuple[int, int]:
    """Half-open step index range covered by a context window."""

    index = session.context_window_index if window_index is None else window_index
    size = window_size(session.total_steps)
    start = min(index * size, session.total_steps)
    return start, min(start + size, session.total_steps)


def window_steps(session: Session, window_index: Optional[int] = None) -> List[Step]:
    start, end = window_bounds(session, window_index)
    return session.steps[start:end]


def window_info(session: Session) -> WindowInfo:
    steps = window_steps(session)
    incomplete = [step for step in steps if not session.response_for(step).completed]
    progress = ((len(steps) - len(incomplete)) / len(steps) * 100.0) if steps else 100.0
    return WindowInfo(
        current_window=session.context_window_index,
        steps_in_window=len(steps),
        incomplete_steps=len(incomplete),
        window_progress=progress,
    )


def progress(session: Session) -> ProgressSnapshot:
    responses = [session.response_for(step) for step in session.steps]
    completed = sum(1 for r in responses if r.completed)
    return ProgressSnapshot(
        total_steps=session.total_steps,
        completed_steps=completed,
        current_step=session.current_step_index,
        current_window=session.context_window_index,
        completion_rate=(completed / session.total_steps) * 100.0 if session.total_steps else 0.0,
        steps_with_no_response=sum(1 for r in responses if r.completed and not r.has_response),
        steps_with_second_chance=sum(1 for r in responses if r.second_chance_used),
        interview_complete=session.interview_complete,
        status=session.status,
    )


def steps_with_status(session: Session) -> List[StepStatusRow]:
    rows: List[StepStatusRow] = []
    for index, step in enumerate(session.steps):
        response = session.response_for(step)
        if response.completed:
            status = "completed"
        elif response.has_response:
            status = "partial"
        elif index == session.current_step_index and not session.interview_complete:
            status = "current"
        else:
            status = "pending"
        rows.append(StepStatusRow(step_id=step.id, name=step.label, status=status))
    return rows


def closing_message(session: Session) -> str:
    if session.status == "timed_out":
        return TIME_LIMIT_MESSAGE
    snap = progress(session)
    lines = [
        "Thank you for completing the screening interview!",
        "",
        (
            f"You've answered {snap.completed_steps} out of {snap.total_steps} questions "
            f"({round(snap.completion_rate)}% completion rate)."
        ),
    ]
    if snap.steps_with_no_response:
        lines.append(f"Note: {snap.steps_with_no_response} questions were not answered.")
    if snap.steps_with_second_chance:
        lines.append(f"Note: {snap.steps_with_second_chance} questions required a second attempt.")
    lines.extend(["", "We'll review your responses and get back to you with next steps. Have a great day!"])
    return "\n".join(lines)


def _classify(deps: EngineDeps, message: str, step: Step) -> str:
    """Injected classifiers get the same fallback as the registry-backed one."""
    try:
        quality = deps.classify(message, step)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Classifier failed step=%s, using heuristic: %s", step.id, exc)
        quality = None
    if quality in ("partial", "complete"):
        return quality
    return quality_classifier.heuristic_quality(message, settings.QUALITY_MIN_CHARS)


def _follow_up(deps: EngineDeps, step: Step, message: str) -> str:
    try:
        text = deps.follow_up(step, message)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Follow-up generator failed step=%s: %s", step.id, exc)
        text = None
    if isinstance(text, str) and text.strip():
        return text.strip()
    return follow_up_agent.fallback_follow_up(step)


def _mark_completed(response: StepResponse) -> None:
    response.completed = True


def _move_on(session: Session, purpose: Purpose) -> TurnResult:
    session.current_step_index += 1
    finished_window = _refresh_window(session)

    if session.current_step_index >= session.total_steps:
        session.interview_complete = True
        session.status = "completed"
        snap = progress(session)
        log_event(
            "session_complete",
            session.session_id,
            completed=snap.completed_steps,
            total=snap.total_steps,
        )
        return _result(session, "COMPLETE", closing_message(session))

    step = session.current_step
    text = apply_persona(step.prompt, purpose=purpose)
    if finished_window is not None:
        transition = apply_persona(str(finished_window + 1), purpose="section_transition")
        text = f"{transition}\n\n{text}"
    return _result(session, "ADVANCE", text, step)


def _refresh_window(session: Session) -> Optional[int]:
    """Advance past fully completed windows; returns the last window closed, if any."""

    closed: Optional[int] = None
    while session.context_window_index < WINDOW_COUNT - 1 and all(
        session.response_for(step).completed for step in window_steps(session)
    ):
        closed = session.context_window_index
        session.context_window_index += 1
        log_event("window_advance", session.session_id, window=session.context_window_index)
    return closed


def _terminal_kind(session: Session) -> TurnKind:
    return "TIMED_OUT" if session.status == "timed_out" else "COMPLETE"


def _record(session: Session, kind: str, step: Optional[Step], **fields: object) -> None:
    event = {"type": kind, "step_id": step.id if step else None, "step_index": session.current_step_index}
    event.update(fields)
    session.events.append(event)


def _result(session: Session, kind: TurnKind, text: str, step: Optional[Step] = None) -> TurnResult:
    return TurnResult(
        kind=kind,
        prompt_text=text,
        progress=progress(session),
        step_id=step.id if step else None,
    )


__all__ = [
    "EngineConfig",
    "EngineDeps",
    "new_session",
    "first_prompt",
    "advance",
    "time_out",
    "record_memory",
    "window_size",
    "window_bounds",
    "window_steps",
    "window_info",
    "progress",
    "steps_with_status",
    "closing_message",
]
