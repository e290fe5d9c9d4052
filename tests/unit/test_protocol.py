from datetime import timedelta

from conftest import T0, make_steps
from screening import engine, protocol


def _session(count: int = 5):
    return engine.new_session(
        session_id="sess-p", candidate_id="c", requirement_id="r", steps=make_steps(count), now=T0
    )


def test_allows_within_budget():
    verdict = protocol.check(_session(), T0 + timedelta(minutes=29))
    assert verdict.allow
    assert verdict.reason == "ok"
    assert verdict.message is None


def test_time_limit_vetoes_regardless_of_remaining_steps():
    session = _session()
    before = session.model_dump()
    verdict = protocol.check(session, T0 + timedelta(milliseconds=1_800_001))
    assert not verdict.allow
    assert verdict.reason == "time_limit"
    assert verdict.message == protocol.TIME_LIMIT_MESSAGE
    assert session.model_dump() == before


def test_exactly_at_limit_still_allowed():
    verdict = protocol.check(_session(), T0 + timedelta(milliseconds=1_800_000))
    assert verdict.allow


def test_steps_exhausted_vetoes():
    session = _session(count=1)
    session.current_step_index = 1
    verdict = protocol.check(session, T0)
    assert not verdict.allow
    assert verdict.reason == "steps_exhausted"
    assert verdict.message == protocol.STEPS_DONE_MESSAGE


def test_custom_duration():
    verdict = protocol.check(_session(), T0 + timedelta(seconds=61), max_duration_ms=60_000)
    assert verdict.reason == "time_limit"
