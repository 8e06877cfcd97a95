import pytest
from pydantic import ValidationError

from app.schemas.score import MAX_TRANSPLANTS, DistributionOut, ScoreBreakdown, ScoreRequest


def test_request_accepts_camel_case_and_coerces_metrics():
    request = ScoreRequest.model_validate(
        {"centerCode": "casf", "numTransplants": "12.5", "offerAcceptRate": "abc", "graftSurvival": None}
    )
    assert request.center_code == "casf"
    assert request.num_transplants == 13
    assert request.offer_accept_rate == 0.0
    assert request.graft_survival == 0.0


def test_request_clamps_negative_volume_and_drops_non_text_codes():
    request = ScoreRequest.model_validate({"center_code": 1234, "num_transplants": -5})
    assert request.center_code is None
    assert request.num_transplants == 0


def test_distribution_requires_aligned_bins():
    with pytest.raises(ValidationError):
        DistributionOut(bins=["1", "2"], freqs=[100])


def _breakdown(**overrides):
    values = dict(
        transplant_target=110.0,
        current_transplants=100,
        distance_from_target=10.0,
        acceptance_percentile=50,
        graft_survival_percentile=50,
        benchmark_acceptance_rate=1.0,
        benchmark_graft_survival=None,
        center_offer_accept_rate=None,
        center_graft_survival=None,
        center_transplants=None,
        achievement_score=30,
        efficiency_score=15,
        efficiency_achievement_component=15,
        efficiency_improvement_component=0,
        quality_score=16,
        total_score=61,
    )
    values.update(overrides)
    return ScoreBreakdown(**values)


def test_breakdown_total_must_match_subscores():
    assert _breakdown().total_score == 61
    with pytest.raises(ValidationError):
        _breakdown(total_score=60)


def test_breakdown_enforces_component_bounds():
    with pytest.raises(ValidationError):
        _breakdown(achievement_score=61, total_score=92)


def test_request_clamps_volume_to_ceiling():
    assert ScoreRequest.model_validate({"num_transplants": 1e305}).num_transplants == MAX_TRANSPLANTS
    assert ScoreRequest.model_validate({"num_transplants": 10**400}).num_transplants == 0
