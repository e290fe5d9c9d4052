"""Off-script candidate questions answered as a side channel."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from agents import qa_responder
from agents.persona_manager import apply_persona

from .models import Step

logger = logging.getLogger(__name__)


def is_interruption(text: Optional[str]) -> bool:
    """True iff the trimmed message ends with a question mark."""
    return bool(text) and text.strip().endswith("?")


def handle(text: str, responder: Optional[Callable[[str], str]] = None) -> str:
    """Answer the candidate's question; never raises for responder failures.

    A responder that raises, or returns anything other than non-blank text,
    resolves to the fallback acknowledgement.
    """

    try:
        answer = (responder or qa_responder.answer)(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Q&A responder failed, using fallback: %s", exc)
        return qa_responder.FALLBACK_ANSWER
    if not isinstance(answer, str) or not answer.strip():
        logger.warning("Q&A responder returned no usable answer: %r", answer)
        return qa_responder.FALLBACK_ANSWER
    return answer.strip()


def compose(answer_text: str, current_step: Step) -> str:
    """Answer, then the transition phrase and the unchanged current question."""
    return f"{answer_text}\n\n{apply_persona(current_step.prompt, purpose='resume')}"


__all__ = ["is_interruption", "handle", "compose"]
