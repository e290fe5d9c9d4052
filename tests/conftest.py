import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import FOLLOW_UP_KEY, QUALITY_KEY, RESPONDER_KEY, bind_model, unbind_model
from screening.models import Step

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

LONG_ANSWER = (
    "I led the migration of our billing service to event sourcing, owned the rollout plan "
    "and cut reconciliation errors by forty percent."
)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def unbound_capabilities():
    for key in (QUALITY_KEY, FOLLOW_UP_KEY, RESPONDER_KEY):
        unbind_model(key)
    yield
    for key in (QUALITY_KEY, FOLLOW_UP_KEY, RESPONDER_KEY):
        unbind_model(key)


@pytest.fixture
def fake_models():
    bind_model(QUALITY_KEY, lambda **kwargs: {"quality": "complete" if len(kwargs["inputs"]["response"]) > 20 else "partial"})
    bind_model(FOLLOW_UP_KEY, lambda **kwargs: {"question_text": f"Which part of {kwargs['inputs']['step_name']} did you own?"})
    bind_model(RESPONDER_KEY, lambda **_: {"answer": "The range is shared by the recruiter after this call."})
    return True


def make_steps(count: int) -> list[Step]:
    return [
        Step(id=f"s{index + 1}", order=index, name=f"Topic {index + 1}", text=f"Question {index + 1}?")
        for index in range(count)
    ]


@pytest.fixture
def steps12():
    return make_steps(12)
