"""Validated output schemas for the LLM-backed capabilities."""
from typing import Literal

from pydantic import BaseModel, Field

QualityLabel = Literal["partial", "complete"]


class QualityVerdict(BaseModel):
    quality: QualityLabel

    @classmethod
    def from_raw_content(cls, content: str) -> "QualityVerdict":
        """Accept a bare ``COMPLETE`` / ``PARTIAL`` reply."""
        label = content.strip().strip('."\'').upper()
        if label not in {"COMPLETE", "PARTIAL"}:
            raise ValueError(f"Unrecognised quality label: {content[:40]!r}")
        return cls(quality=label.lower())


class FollowUpOut(BaseModel):
    question_text: str = Field(min_length=1, max_length=600)


class AnswerOut(BaseModel):
    answer: str = Field(min_length=1, max_length=600)
