from datetime import timedelta

import pytest

from conftest import T0, make_steps
from screening import engine
from screening.engine import EngineConfig, EngineDeps
from screening.errors import ScriptEmptyError, ValidationError
from screening.models import Step
from screening.protocol import TIME_LIMIT_MESSAGE


def _deps(quality: str = "complete", follow_up_text: str = "Could you be more specific?") -> EngineDeps:
    return EngineDeps(
        classify=lambda answer, step: quality,
        follow_up=lambda step, answer: follow_up_text,
        now=lambda: T0 + timedelta(minutes=1),
    )


def _session(count: int = 6, max_follow_ups: int = 1):
    return engine.new_session(
        session_id="sess-1",
        candidate_id="c1",
        requirement_id="r1",
        steps=make_steps(count),
        cfg=EngineConfig(max_follow_ups=max_follow_ups),
        now=T0,
    )


def test_empty_script_fails_creation():
    with pytest.raises(ScriptEmptyError):
        engine.new_session(session_id="s", candidate_id="c", requirement_id="r", steps=[])


def test_non_dense_orders_rejected():
    steps = [Step(id="a", order=0, text="A?"), Step(id="b", order=2, text="B?")]
    with pytest.raises(ValidationError):
        engine.new_session(session_id="s", candidate_id="c", requirement_id="r", steps=steps)


def test_first_prompt_is_first_step_without_mutation():
    session = _session()
    result = engine.first_prompt(session)
    assert result.kind == "ASK"
    assert result.prompt_text == "Question 1?"
    assert session.current_step_index == 0
    assert session.events == []


def test_complete_answer_advances():
    session = _session()
    result = engine.advance(session, "A thorough answer", _deps("complete"))

    response = session.responses["s1"]
    assert response.completed and response.has_response
    assert response.quality == "complete"
    assert response.raw_answer == "A thorough answer"
    assert session.current_step_index == 1
    assert result.kind == "ADVANCE"
    assert result.prompt_text.startswith("Thank you for that answer.")
    assert result.prompt_text.endswith("Question 2?")


def test_partial_answer_gets_one_follow_up_then_advances():
    session = _session()
    first = engine.advance(session, "Some.", _deps("partial", "Which tools did you use?"))
    assert first.kind == "FOLLOW_UP"
    assert first.prompt_text == "Which tools did you use?"
    assert session.current_step_index == 0
    assert session.responses["s1"].follow_up_count == 1
    assert not session.responses["s1"].completed

    second = engine.advance(session, "Still short.", _deps("partial"))
    assert second.kind == "ADVANCE"
    assert second.prompt_text.startswith("Thank you for your response.")
    assert session.current_step_index == 1
    response = session.responses["s1"]
    assert response.completed
    assert response.quality == "partial"
    assert response.follow_up_count == 1


def test_zero_follow_up_budget_advances_immediately():
    session = _session(max_follow_ups=0)
    result = engine.advance(session, "Meh.", _deps("partial"))
    assert result.kind == "ADVANCE"
    assert session.responses["s1"].follow_up_count == 0


def test_second_chance_then_skip():
    session = _session()
    first = engine.advance(session, "", _deps())
    assert first.kind == "SECOND_CHANCE"
    assert "Question 1?" in first.prompt_text
    assert session.responses["s1"].second_chance_used
    assert session.current_step_index == 0

    second = engine.advance(session, "   ", _deps())
    response = session.responses["s1"]
    assert response.completed
    assert not response.has_response
    assert session.current_step_index == 1
    assert second.prompt_text.startswith("I understand this topic might not be familiar to you.")


def test_second_chance_after_follow_up_keeps_recorded_answer():
    session = _session()
    engine.advance(session, "Short.", _deps("partial"))
    engine.advance(session, None, _deps())
    engine.advance(session, None, _deps())
    response = session.responses["s1"]
    assert response.completed
    assert response.has_response
    assert response.raw_answer == "Short."
    assert session.current_step_index == 1


def test_quoted_step_text_is_unquoted_in_prompt():
    steps = [Step(id="q", order=0, text='"Tell me about yourself."')]
    session = engine.new_session(session_id="s", candidate_id="c", requirement_id="r", steps=steps)
    assert engine.first_prompt(session).prompt_text == "Tell me about yourself."


def test_window_advances_after_each_third():
    session = _session(count=12)
    assert engine.window_size(12) == 4
    for _ in range(3):
        engine.advance(session, "answer", _deps())
    assert session.context_window_index == 0

    result = engine.advance(session, "answer", _deps())
    assert session.context_window_index == 1
    assert result.prompt_text.startswith("Great! We've completed section 1 of 3.")
    assert result.prompt_text.endswith("Question 5?")

    for _ in range(4):
        engine.advance(session, "answer", _deps())
    assert session.context_window_index == 2

    for _ in range(4):
        engine.advance(session, "answer", _deps())
    assert session.context_window_index == 2


def test_window_does_not_move_while_step_pending():
    session = _session(count=3)
    engine.advance(session, "x", _deps("partial"))
    assert session.context_window_index == 0
    engine.advance(session, "y", _deps("partial"))
    assert session.context_window_index == 1


def test_completion_and_idempotent_closing():
    session = _session(count=2)
    engine.advance(session, "first", _deps())
    result = engine.advance(session, "second", _deps())

    assert result.kind == "COMPLETE"
    assert session.interview_complete
    assert session.status == "completed"
    assert "You've answered 2 out of 2 questions (100% completion rate)." in result.prompt_text

    snapshot = session.model_copy(deep=True)
    again = engine.advance(session, "anything else", _deps())
    assert again.kind == "COMPLETE"
    assert again.prompt_text == result.prompt_text
    assert session.responses == snapshot.responses
    assert session.current_step_index == snapshot.current_step_index


def test_closing_message_notes_unanswered_and_second_attempts():
    session = _session(count=2)
    engine.advance(session, "", _deps())
    engine.advance(session, "", _deps())
    result = engine.advance(session, "answer", _deps())
    assert "Note: 1 questions were not answered." in result.prompt_text
    assert "Note: 1 questions required a second attempt." in result.prompt_text


def test_time_out_is_terminal():
    session = _session()
    result = engine.time_out(session, T0 + timedelta(hours=1))
    assert result.kind == "TIMED_OUT"
    assert result.prompt_text == TIME_LIMIT_MESSAGE
    assert session.interview_complete and session.status == "timed_out"

    again = engine.advance(session, "late answer", _deps())
    assert again.kind == "TIMED_OUT"
    assert session.current_step_index == 0
    assert not session.responses["s1"].has_response


def test_progress_and_status_rows():
    session = _session(count=4)
    engine.advance(session, "good", _deps("complete"))
    engine.advance(session, "meh", _deps("partial"))

    snap = engine.progress(session)
    assert snap.total_steps == 4
    assert snap.completed_steps == 1
    assert snap.completion_rate == pytest.approx(25.0)
    assert snap.current_step == 1

    statuses = [row.status for row in engine.steps_with_status(session)]
    assert statuses == ["completed", "partial", "pending", "pending"]

    info = engine.window_info(session)
    assert info.current_window == 1
    assert info.steps_in_window == 2
    assert info.incomplete_steps == 1
    assert info.window_progress == pytest.approx(50.0)


def test_memory_is_append_only():
    session = _session()
    engine.record_memory(session, key_points=["Led migration"], strengths=["Ownership"])
    engine.record_memory(session, key_points=["Mentors juniors", "  "], concerns=["No on-call experience"])
    assert session.memory.key_points == ["Led migration", "Mentors juniors"]
    assert session.memory.strengths == ["Ownership"]
    assert session.memory.concerns == ["No on-call experience"]


def test_default_deps_use_heuristic_when_capabilities_unbound():
    session = _session()
    engine.advance(session, "Too short", EngineDeps(now=lambda: T0))
    assert session.responses["s1"].quality == "partial"
    assert session.responses["s1"].follow_up_count == 1


def test_raising_classifier_falls_back_to_heuristic():
    def boom(answer, step):
        raise RuntimeError("classifier exploded")

    session = _session()
    deps = EngineDeps(classify=boom, follow_up=lambda step, answer: "More?", now=lambda: T0)
    engine.advance(session, "x" * 60, deps)
    assert session.responses["s1"].quality == "complete"
    assert session.current_step_index == 1


def test_unknown_classifier_label_falls_back_to_heuristic():
    session = _session()
    deps = EngineDeps(classify=lambda answer, step: "EXCELLENT", follow_up=lambda step, answer: "More?", now=lambda: T0)
    result = engine.advance(session, "Brief.", deps)
    assert session.responses["s1"].quality == "partial"
    assert result.kind == "FOLLOW_UP"


def test_broken_follow_up_generator_uses_template():
    def boom(step, answer):
        raise TimeoutError("slow model")

    session = _session()
    first = engine.advance(session, "Brief.", EngineDeps(classify=lambda a, s: "partial", follow_up=boom, now=lambda: T0))
    assert first.prompt_text == "Thank you for sharing that. Could you tell me more specifically about topic 1?"

    other = _session()
    second = engine.advance(other, "Brief.", EngineDeps(classify=lambda a, s: "partial", follow_up=lambda s, a: None, now=lambda: T0))
    assert second.prompt_text == first.prompt_text
