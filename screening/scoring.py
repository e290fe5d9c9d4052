"""Weighted completion score and pass/fail decision."""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping

from pydantic import BaseModel

from .errors import ValidationError

WEIGHTS: Dict[str, float] = {
    "skills_match": 0.35,
    "experience_relevance": 0.30,
    "communication": 0.20,
    "cultural_fit": 0.15,
}

PASS_THRESHOLD = 70

_ALIASES = {
    "skillsMatch": "skills_match",
    "experienceRelevance": "experience_relevance",
    "culturalFit": "cultural_fit",
}


class Subscores(BaseModel):
    skills_match: float
    experience_relevance: float
    communication: float
    cultural_fit: float


class ScreeningScore(BaseModel):
    overall: int
    passes: bool
    breakdown: Subscores


def _round_half_up(value: float) -> int:
    # Small epsilon absorbs binary float error, e.g. 0.35 * 50 + ... landing on x.4999999.
    return int(math.floor(value + 0.5 + 1e-9))


def validate_subscores(raw: Mapping[str, Any]) -> Subscores:
    """Normalise keys and check every subscore is a number in [0, 100].

    Raises:
        ValidationError: On a missing, unknown, non-numeric or out-of-range subscore.
    """

    values: Dict[str, float] = {}
    for key, value in raw.items():
        name = _ALIASES.get(key, key)
        if name not in WEIGHTS:
            raise ValidationError(f"Unknown subscore '{key}'")
        if name in values:
            raise ValidationError(f"Subscore '{name}' given more than once")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            raise ValidationError(f"Subscore '{key}' must be a number")
        if not 0 <= value <= 100:
            raise ValidationError(f"Subscore '{key}' out of range [0, 100]: {value}")
        values[name] = float(value)
    missing = sorted(set(WEIGHTS) - set(values))
    if missing:
        raise ValidationError(f"Missing subscores: {', '.join(missing)}")
    return Subscores(**values)


def score(subscores: Mapping[str, Any] | Subscores, pass_threshold: int = PASS_THRESHOLD) -> ScreeningScore:
    """Weighted overall score in 0..100; passes when it reaches ``pass_threshold``."""

    raw = subscores.model_dump() if isinstance(subscores, Subscores) else subscores
    parsed = validate_subscores(raw)
    dumped = parsed.model_dump()
    total = sum(WEIGHTS[name] * dumped[name] for name in WEIGHTS)
    overall = _round_half_up(total)
    return ScreeningScore(overall=overall, passes=overall >= pass_threshold, breakdown=parsed)


__all__ = ["WEIGHTS", "PASS_THRESHOLD", "Subscores", "ScreeningScore", "validate_subscores", "score"]
