"""
Tests for the stacking ensemble scorer and its sub-scores.
"""

import pytest

from safeguard.ai.ensemble import (
    calculate_ensemble_score, environment_score, fatigue_score,
    ppe_score, shift_score, trend_score
)
from safeguard.ai.rule_scorer import calculate_rule_score
from safeguard.schemas.scoring import ScoringMethod, Severity
from safeguard.schemas.vision import DustLevel, LightingLevel

from tests.conftest import NOW, dangerous_vision, make_vision


def test_shift_scores():
    assert [shift_score(s) for s in ("morning", "afternoon", "night")] == [100, 85, 65]


@pytest.mark.parametrize("overrides, expected", [
    ({}, 100),  # GOOD lighting bonus is clamped away
    ({"lighting_level": LightingLevel.OK, "dust_level": DustLevel.LOW}, 92),
    ({"dust_level": DustLevel.HIGH, "lighting_level": LightingLevel.LOW}, 70),
    ({"dust_level": DustLevel.EXTREME, "lighting_level": LightingLevel.LOW,
      "detected_hazards": ["a", "b", "c", "d", "e", "f"]}, 30),
    ({"dust_level": DustLevel.EXTREME, "lighting_level": LightingLevel.GOOD}, 67),
])
def test_environment_score(overrides, expected):
    assert environment_score(make_vision(**overrides)) == pytest.approx(expected)


def test_ppe_score():
    assert ppe_score(make_vision()) == 100
    assert ppe_score(make_vision(has_mask=False)) == 70
    assert ppe_score(make_vision(has_mask=False, has_helmet=False)) == 40


def test_fatigue_score():
    assert fatigue_score(0.0) == 100
    assert fatigue_score(0.5) == pytest.approx(70)
    assert fatigue_score(1.0) == pytest.approx(40)


@pytest.mark.parametrize("previous, expected", [
    (95, 100), (86, 92), (85, 92), (75, 80), (74, 68), (65, 68), (64, 55), (10, 55),
])
def test_trend_score_steps(previous, expected):
    assert trend_score(previous, 85) == expected


def test_perfect_input(perfect_vision, worker_context):
    result = calculate_ensemble_score(perfect_vision, worker_context, "morning", now=NOW)
    # rule 100, ppe 100, env 100, fatigue ~92.7, trend 92
    assert result.score == 98
    assert result.risk_factors == []
    assert result.sub_scores["rule"] == 100
    assert result.confidence == pytest.approx(0.925)


def test_rule_component_uses_estimated_fatigue_not_vision_signal(worker_context):
    # A strong visual signal alone is diluted by the estimator
    vision = make_vision(fatigue_score=0.9)
    result = calculate_ensemble_score(vision, worker_context, "morning", now=NOW)
    assert result.fatigue_level < 0.5
    assert result.sub_scores["rule"] == 100
    assert "HIGH_FATIGUE" not in [f.type for f in result.risk_factors]


def test_composite_factors_are_emitted(worker_context):
    result = calculate_ensemble_score(dangerous_vision(), worker_context, "night", previous_score=50, now=NOW)
    composite = {f.type: f for f in result.risk_factors if f.type in {
        "PPE_NON_COMPLIANCE", "ENVIRONMENTAL_EXPOSURE", "FATIGUE_RISK", "HEALTH_TREND_DECLINE"}}
    
    assert composite["PPE_NON_COMPLIANCE"].severity == Severity.HIGH
    assert composite["PPE_NON_COMPLIANCE"].weight == pytest.approx(0.6)
    assert composite["ENVIRONMENTAL_EXPOSURE"].severity == Severity.HIGH
    assert composite["HEALTH_TREND_DECLINE"].severity == Severity.HIGH
    assert all(f.source == ScoringMethod.ENSEMBLE for f in result.risk_factors)
    assert 0 <= result.score <= 100


def test_medium_tier_composite_factor(worker_context):
    result = calculate_ensemble_score(make_vision(has_mask=False), worker_context, "morning", now=NOW)
    ppe = [f for f in result.risk_factors if f.type == "PPE_NON_COMPLIANCE"]
    assert len(ppe) == 1
    assert ppe[0].severity == Severity.MEDIUM
    assert ppe[0].weight == pytest.approx(0.3)


def test_weights_are_configuration(perfect_vision, worker_context):
    vision = make_vision(has_helmet=False, dust_level=DustLevel.HIGH)
    rule_only = calculate_ensemble_score(
        vision, worker_context, "afternoon", weights={"rule": 1.0}, now=NOW
    )
    expected = calculate_rule_score(vision, worker_context, "afternoon", previous_score=85)
    assert rule_only.score == expected.score


def test_empty_weights_are_not_replaced_by_defaults(perfect_vision, worker_context):
    result = calculate_ensemble_score(perfect_vision, worker_context, "morning", weights={}, now=NOW)
    assert result.score == 0


def test_ensemble_is_deterministic(worker_context):
    vision = dangerous_vision()
    first = calculate_ensemble_score(vision, worker_context, "afternoon", previous_score=70, now=NOW)
    second = calculate_ensemble_score(vision, worker_context, "afternoon", previous_score=70, now=NOW)
    assert first == second


def test_score_always_clamped(worker_context):
    for vision in (make_vision(), dangerous_vision()):
        for shift in ("morning", "afternoon", "night"):
            for previous in (0, 50, 100):
                result = calculate_ensemble_score(vision, worker_context, shift, previous_score=previous, now=NOW)
                assert 0 <= result.score <= 100
                assert 0.0 <= result.fatigue_level <= 1.0
