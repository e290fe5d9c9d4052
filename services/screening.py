"""Screening service: one entry point per candidate turn."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel

from config.settings import settings
from observability.logger import log_event
from observability.tracing import span
from screening import engine, interruption, protocol, scoring
from screening.engine import EngineConfig, EngineDeps
from screening.errors import SessionNotFoundError
from screening.models import ProgressSnapshot, Session, StepStatusRow, TurnResult, WindowInfo
from storage.scores import ScoreSink
from storage.scripts import ScriptSource
from storage.sessions import SessionRepository

from .sessions import SessionLocks

logger = logging.getLogger(__name__)


class StartResult(BaseModel):
    session_id: str
    turn: TurnResult


class ScreeningService:
    """Serialises turns per session and wires the enforcer, interruption handler and engine."""

    def __init__(
        self,
        *,
        repository: SessionRepository,
        script_source: ScriptSource,
        score_sink: Optional[ScoreSink] = None,
        deps: Optional[EngineDeps] = None,
        engine_cfg: Optional[EngineConfig] = None,
        responder: Optional[Callable[[str], str]] = None,
        max_duration_ms: Optional[int] = None,
    ) -> None:
        self._repo = repository
        self._source = script_source
        self._sink = score_sink
        self._deps = deps or EngineDeps()
        self._engine_cfg = engine_cfg or EngineConfig(max_follow_ups=settings.MAX_FOLLOW_UPS)
        self._responder = responder
        self._max_duration_ms = max_duration_ms if max_duration_ms is not None else settings.MAX_DURATION_MS
        self._locks = SessionLocks()

    def start(self, candidate_id: str, requirement_id: str) -> StartResult:
        """Load the script once and open a session on its first step.

        Raises:
            ScriptEmptyError: If the script source has no steps for the pair.
        """

        steps = self._source.load_steps(candidate_id, requirement_id)
        session_id = f"screening_{candidate_id}_{requirement_id}_{uuid4().hex[:12]}"
        session = engine.new_session(
            session_id=session_id,
            candidate_id=candidate_id,
            requirement_id=requirement_id,
            steps=steps,
            cfg=self._engine_cfg,
            now=self._deps.now(),
        )
        self._repo.put(session)
        return StartResult(session_id=session_id, turn=engine.first_prompt(session))

    def turn(self, session_id: str, message: Optional[str]) -> TurnResult:
        """Process one candidate message and persist the outcome.

        Raises:
            SessionNotFoundError: If ``session_id`` is unknown.
        """

        with self._locks.lock_for(session_id):
            session = self._load_locked(session_id)
            now = self._deps.now()
            log_event("turn.start", session_id, step_index=session.current_step_index)

            with span(session, "protocol"):
                verdict = protocol.check(session, now, self._max_duration_ms)
            if not verdict.allow:
                result = self._veto(session, verdict, now)
            elif interruption.is_interruption(message):
                with span(session, "interruption"):
                    result = self._interrupt(session, message or "", now)
            else:
                with span(session, "engine"):
                    result = engine.advance(session, message, self._deps)

            self._repo.put(session)
            log_event(
                "turn.end",
                session_id,
                decision=result.kind,
                step_index=session.current_step_index,
                window=session.context_window_index,
            )
            return result

    def progress(self, session_id: str) -> ProgressSnapshot:
        return engine.progress(self._load(session_id))

    def steps_with_status(self, session_id: str) -> List[StepStatusRow]:
        return engine.steps_with_status(self._load(session_id))

    def window_info(self, session_id: str) -> WindowInfo:
        return engine.window_info(self._load(session_id))

    def remember(
        self,
        session_id: str,
        *,
        key_points: Iterable[str] = (),
        strengths: Iterable[str] = (),
        concerns: Iterable[str] = (),
    ) -> None:
        with self._locks.lock_for(session_id):
            session = self._load_locked(session_id)
            engine.record_memory(session, key_points=key_points, strengths=strengths, concerns=concerns)
            self._repo.put(session)

    def finish(self, session_id: str, subscores: Mapping[str, Any]) -> scoring.ScreeningScore:
        """Score the session's candidate and hand the result to the score sink.

        Raises:
            SessionNotFoundError: If ``session_id`` is unknown.
            ValidationError: If any subscore is missing or outside [0, 100].
        """

        session = self._load(session_id)
        result = scoring.score(subscores, pass_threshold=settings.PASS_THRESHOLD)
        log_event("score", session_id, overall=result.overall, passes=result.passes)
        self._record_score(session, result)
        return result

    def delete(self, session_id: str) -> None:
        with self._locks.lock_for(session_id):
            self._repo.delete(session_id)
        self._locks.discard(session_id)

    def purge_idle(self, now: Optional[datetime] = None, max_idle: Optional[timedelta] = None) -> int:
        """Drop sessions idle longer than ``max_idle`` (default from settings)."""

        idle = max_idle or timedelta(hours=settings.SESSION_IDLE_HOURS)
        removed = self._repo.purge_idle(now or self._deps.now(), idle)
        for session_id in removed:
            self._locks.discard(session_id)
        if removed:
            logger.info("Purged %d idle screening sessions", len(removed))
        return len(removed)

    def _load(self, session_id: str) -> Session:
        session = self._repo.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _load_locked(self, session_id: str) -> Session:
        try:
            return self._load(session_id)
        except SessionNotFoundError:
            self._locks.discard(session_id)
            raise

    def _veto(self, session: Session, verdict: protocol.ProtocolVerdict, now: datetime) -> TurnResult:
        log_event("protocol_veto", session.session_id, reason=verdict.reason)
        if verdict.reason == "time_limit":
            return engine.time_out(session, now)
        return TurnResult(
            kind="COMPLETE",
            prompt_text=verdict.message or protocol.STEPS_DONE_MESSAGE,
            progress=engine.progress(session),
        )

    def _interrupt(self, session: Session, message: str, now: datetime) -> TurnResult:
        step = session.current_step
        answer = interruption.handle(message, self._responder)
        session.touch(now)
        session.events.append({"type": "INTERRUPTION", "step_id": step.id, "step_index": session.current_step_index})
        log_event("interruption", session.session_id, step_index=session.current_step_index)
        return TurnResult(
            kind="INTERRUPTION",
            prompt_text=interruption.compose(answer, step),
            progress=engine.progress(session),
            step_id=step.id,
        )

    def _record_score(self, session: Session, result: scoring.ScreeningScore) -> None:
        if self._sink is None:
            return
        try:
            self._sink.record(session.candidate_id, result.overall, result.breakdown.model_dump(), result.passes)
        except Exception as exc:  # noqa: BLE001
            logger.error("Score sink failed for candidate=%s: %s", session.candidate_id, exc)
            log_event("score_sink_failed", session.session_id, reason=str(exc))
            return
        log_event("score_recorded", session.session_id, overall=result.overall, passes=result.passes)


__all__ = ["ScreeningService", "StartResult"]
