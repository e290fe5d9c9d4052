from agents.qa_responder import FALLBACK_ANSWER
from config.registry import RESPONDER_KEY, bind_model
from screening import interruption
from screening.models import Step

STEP = Step(id="s3", order=2, text="Describe a production incident you handled.")


def test_detects_trailing_question_mark():
    assert interruption.is_interruption("What is the salary range?")
    assert interruption.is_interruption("  Is this remote?   ")
    assert not interruption.is_interruption("I handled a database outage.")
    assert not interruption.is_interruption("Why? Because the cache was cold.")
    assert not interruption.is_interruption("")
    assert not interruption.is_interruption(None)


def test_handle_falls_back_when_responder_unbound():
    assert interruption.handle("Is this remote?") == FALLBACK_ANSWER


def test_handle_uses_bound_responder():
    bind_model(RESPONDER_KEY, lambda **kwargs: {"answer": "Yes, fully remote."})
    assert interruption.handle("Is this remote?") == "Yes, fully remote."


def test_handle_with_injected_responder():
    assert interruption.handle("Team size?", responder=lambda q: "Six engineers.") == "Six engineers."


def test_compose_resumes_unchanged_step():
    text = interruption.compose("Six engineers.", STEP)
    assert text.startswith("Six engineers.")
    assert "Now, let's continue with the interview." in text
    assert text.endswith(STEP.text)


def test_handle_absorbs_raising_responder():
    def boom(question):
        raise ConnectionError("responder down")

    assert interruption.handle("What is the salary range?", responder=boom) == FALLBACK_ANSWER


def test_handle_rejects_unusable_answers():
    assert interruption.handle("Why?", responder=lambda q: None) == FALLBACK_ANSWER
    assert interruption.handle("Why?", responder=lambda q: "   ") == FALLBACK_ANSWER
    assert interruption.handle("Why?", responder=lambda q: {"answer": "x"}) == FALLBACK_ANSWER
