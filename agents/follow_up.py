"""Follow-up prompt generation for partially answered steps."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from agents.capability import invoke
from agents.persona_manager import apply_persona
from agents.types import FollowUpOut
from config.registry import FOLLOW_UP_KEY
from config.settings import settings
from screening.errors import FollowUpUnavailable
from screening.models import Step

logger = logging.getLogger(__name__)


def fallback_follow_up(step: Step) -> str:
    return apply_persona(step.label.lower(), purpose="follow_up")


def generate(step: Step, answer_text: str, *, timeout_s: Optional[float] = None) -> str:
    """Ask for more detail on the same step; falls back to a templated prompt."""

    try:
        raw = invoke(
            FOLLOW_UP_KEY,
            error_cls=FollowUpUnavailable,
            timeout_s=timeout_s,
            system_prompt_path="prompts/follow_up.txt",
            inputs={
                "interviewer": settings.INTERVIEWER_NAME,
                "step_name": step.label,
                "question": step.prompt,
                "response": answer_text,
            },
        )
        try:
            return FollowUpOut.model_validate(raw).question_text.strip()
        except ValidationError as exc:
            raise FollowUpUnavailable("follow-up failed schema validation") from exc
    except FollowUpUnavailable as exc:
        logger.info("Follow-up fallback step=%s reason=%s", step.id, exc)
        return fallback_follow_up(step)


__all__ = ["generate", "fallback_follow_up"]
