"""Interviewer phrasing for user-facing prompts."""
from __future__ import annotations

from typing import Literal

Purpose = Literal[
    "ask_question",
    "second_chance",
    "follow_up",
    "advance_complete",
    "advance_partial",
    "advance_unanswered",
    "resume",
    "section_transition",
]

TEMPLATES: dict[Purpose, str] = {
    "ask_question": "{core}",
    "second_chance": "Take your time with this one. {core}",
    "follow_up": "Thank you for sharing that. Could you tell me more specifically about {core}?",
    "advance_complete": "Thank you for that answer. Now let's move to the next question: {core}",
    "advance_partial": "Thank you for your response. Let's continue with the next question: {core}",
    "advance_unanswered": (
        "I understand this topic might not be familiar to you. Let's move on to the next question: {core}"
    ),
    "resume": "Now, let's continue with the interview. {core}",
    "section_transition": (
        "Great! We've completed section {core} of 3. "
        "Let's move on to the next section where we'll explore different aspects of your experience."
    ),
}


def apply_persona(text: str, *, purpose: Purpose = "ask_question") -> str:
    """Wrap ``text`` in the interviewer phrasing for ``purpose``."""

    template = TEMPLATES.get(purpose, "{core}")
    return template.replace("{core}", (text or "").strip()).strip()


__all__ = ["apply_persona", "Purpose", "TEMPLATES"]
