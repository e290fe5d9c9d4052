import pytest

from screening import scoring
from screening.errors import ValidationError


def test_weighted_overall_passes():
    result = scoring.score(
        {"skillsMatch": 80, "experienceRelevance": 70, "communication": 90, "culturalFit": 100}
    )
    assert result.overall == 82
    assert result.passes is True
    assert result.breakdown.cultural_fit == 100


def test_snake_case_keys_and_failing_score():
    result = scoring.score(
        {"skills_match": 60, "experience_relevance": 60, "communication": 70, "cultural_fit": 50}
    )
    # 21 + 18 + 14 + 7.5 = 60.5
    assert result.overall == 61
    assert result.passes is False


def test_threshold_is_inclusive():
    result = scoring.score({"skills_match": 70, "experience_relevance": 70, "communication": 70, "cultural_fit": 70})
    assert result.overall == 70
    assert result.passes


def test_half_rounds_up():
    # 0.35*70 + 0.30*70 + 0.20*70 + 0.15*0 = 59.5
    result = scoring.score({"skills_match": 70, "experience_relevance": 70, "communication": 70, "cultural_fit": 0})
    assert result.overall == 60


@pytest.mark.parametrize(
    "bad",
    [
        {"skills_match": 101, "experience_relevance": 70, "communication": 70, "cultural_fit": 70},
        {"skills_match": -1, "experience_relevance": 70, "communication": 70, "cultural_fit": 70},
        {"skills_match": 70, "experience_relevance": 70, "communication": 70},
        {"skills_match": 70, "experience_relevance": 70, "communication": 70, "cultural_fit": "high"},
        {"skills_match": 70, "experience_relevance": 70, "communication": 70, "cultural_fit": 70, "charm": 5},
    ],
)
def test_invalid_subscores_rejected(bad):
    with pytest.raises(ValidationError):
        scoring.score(bad)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        scoring.validate_subscores({"skills_match": 200})


def test_same_subscore_under_both_names_rejected():
    both = {
        "skills_match": 90,
        "skillsMatch": 10,
        "experience_relevance": 70,
        "communication": 70,
        "cultural_fit": 70,
    }
    with pytest.raises(ValidationError, match="skills_match"):
        scoring.score(both)
