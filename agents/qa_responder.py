"""Short answers to off-script candidate questions."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from agents.capability import invoke
from agents.types import AnswerOut
from config.registry import RESPONDER_KEY
from config.settings import settings
from screening.errors import ResponderUnavailable

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "That's a great question! I'll answer it as best I can."


def answer(question: str, *, timeout_s: Optional[float] = None) -> str:
    """Answer a candidate question briefly, or acknowledge it when the responder is down."""

    try:
        raw = invoke(
            RESPONDER_KEY,
            error_cls=ResponderUnavailable,
            timeout_s=timeout_s,
            system_prompt_path="prompts/qa_responder.txt",
            inputs={
                "interviewer": settings.INTERVIEWER_NAME,
                "question": question.strip(),
                "max_words": 50,
            },
        )
        try:
            return AnswerOut.model_validate(raw).answer.strip()
        except ValidationError as exc:
            raise ResponderUnavailable("responder answer failed schema validation") from exc
    except ResponderUnavailable as exc:
        logger.info("Q&A responder fallback reason=%s", exc)
        return FALLBACK_ANSWER


__all__ = ["answer", "FALLBACK_ANSWER"]
