from agents import follow_up, qa_responder
from config.registry import FOLLOW_UP_KEY, RESPONDER_KEY, bind_model
from screening.models import Step

STEP = Step(id="s2", order=1, name="Incident Response", text="Walk me through an outage you handled.")


def test_follow_up_fallback_mentions_step():
    text = follow_up.generate(STEP, "We fixed it.")
    assert text == "Thank you for sharing that. Could you tell me more specifically about incident response?"


def test_follow_up_uses_model(fake_models):
    assert follow_up.generate(STEP, "We fixed it.") == "Which part of Incident Response did you own?"


def test_follow_up_empty_text_falls_back():
    bind_model(FOLLOW_UP_KEY, lambda **_: {"question_text": ""})
    assert follow_up.generate(STEP, "ok") == follow_up.fallback_follow_up(STEP)


def test_responder_fallback_and_model(fake_models):
    assert qa_responder.answer("What is the salary range?").startswith("The range is shared")

    def boom(**_):
        raise TimeoutError("slow")

    bind_model(RESPONDER_KEY, boom)
    assert qa_responder.answer("What is the salary range?") == qa_responder.FALLBACK_ANSWER
