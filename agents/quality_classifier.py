"""Answer quality classifier with a deterministic offline fallback."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from agents.capability import invoke
from agents.types import QualityLabel, QualityVerdict
from config.registry import QUALITY_KEY
from config.settings import settings
from screening.errors import ClassifierUnavailable
from screening.models import Step

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHARS = 50


def heuristic_quality(answer_text: str, min_chars: int = DEFAULT_MIN_CHARS) -> QualityLabel:
    """``complete`` iff the trimmed answer is longer than ``min_chars`` characters."""
    return "complete" if len((answer_text or "").strip()) > min_chars else "partial"


def _ask_model(answer_text: str, step: Step, timeout_s: Optional[float]) -> QualityLabel:
    raw = invoke(
        QUALITY_KEY,
        error_cls=ClassifierUnavailable,
        timeout_s=timeout_s,
        system_prompt_path="prompts/quality_classifier.txt",
        inputs={
            "question": step.prompt,
            "step_name": step.label,
            "focus": step.focus_tag,
            "response": answer_text,
        },
    )
    try:
        return QualityVerdict.model_validate(raw).quality
    except ValidationError as exc:
        raise ClassifierUnavailable("quality verdict failed schema validation") from exc


def classify(answer_text: str, step: Step, *, timeout_s: Optional[float] = None) -> QualityLabel:
    """Classify an answer against its step as ``partial`` or ``complete``.

    Never raises for capability problems: any failure resolves to the heuristic.
    """

    try:
        quality = _ask_model(answer_text, step, timeout_s)
    except ClassifierUnavailable as exc:
        quality = heuristic_quality(answer_text, settings.QUALITY_MIN_CHARS)
        logger.info("Quality classifier fallback step=%s quality=%s reason=%s", step.id, quality, exc)
        return quality
    logger.info("Quality classifier step=%s quality=%s", step.id, quality)
    return quality


__all__ = ["classify", "heuristic_quality", "DEFAULT_MIN_CHARS"]
