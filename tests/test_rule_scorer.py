"""
Tests for the deduction-based rule scorer.
"""

import pytest

from safeguard.ai.rule_scorer import calculate_rule_score
from safeguard.schemas.scoring import ScoringMethod, Severity
from safeguard.schemas.vision import DustLevel, LightingLevel

from tests.conftest import dangerous_vision, make_vision


def factor_types(result):
    return [f.type for f in result.risk_factors]


def test_perfect_input_scores_100_without_factors(perfect_vision, worker_context):
    result = calculate_rule_score(perfect_vision, worker_context, "morning")
    assert result.score == 100
    assert result.risk_factors == []


def test_missing_mask_deducts_30(worker_context):
    result = calculate_rule_score(make_vision(has_mask=False), worker_context, "morning")
    assert result.score == 70
    assert factor_types(result) == ["NO_MASK"]
    factor = result.risk_factors[0]
    assert factor.severity == Severity.HIGH
    assert factor.weight == pytest.approx(0.35)
    assert factor.confidence == pytest.approx(0.95)
    assert factor.source == ScoringMethod.RULE_ENGINE


def test_missing_helmet_deducts_25(worker_context):
    result = calculate_rule_score(make_vision(has_helmet=False), worker_context, "morning")
    assert result.score == 75
    assert factor_types(result) == ["NO_HELMET"]


def test_ppe_outside_mandatory_list_is_not_penalized(worker_context):
    vision = make_vision(has_mask=False, has_helmet=False)
    result = calculate_rule_score(vision, worker_context, "morning", mandatory_ppe=["helmet"])
    assert result.score == 75
    assert factor_types(result) == ["NO_HELMET"]


@pytest.mark.parametrize("dust, expected_score, expected_type, severity", [
    (DustLevel.EXTREME, 80, "DUST_LEVEL_EXTREME", Severity.HIGH),
    (DustLevel.HIGH, 90, "DUST_LEVEL_ELEVATED", Severity.MEDIUM),
    (DustLevel.LOW, 100, None, None),
])
def test_dust_deductions(worker_context, dust, expected_score, expected_type, severity):
    result = calculate_rule_score(make_vision(dust_level=dust), worker_context, "morning")
    assert result.score == expected_score
    if expected_type is None:
        assert result.risk_factors == []
    else:
        assert factor_types(result) == [expected_type]
        assert result.risk_factors[0].severity == severity


def test_poor_lighting_deducts_10(worker_context):
    result = calculate_rule_score(make_vision(lighting_level=LightingLevel.LOW), worker_context, "morning")
    assert result.score == 90
    assert factor_types(result) == ["POOR_LIGHTING"]


def test_hazard_deduction_is_capped_but_every_hazard_is_a_factor(worker_context):
    hazards = ["fire", "wet_floor", "chemical_spill", "exposed_wire", "falling_objects"]
    result = calculate_rule_score(make_vision(detected_hazards=hazards), worker_context, "morning")
    assert result.score == 80
    assert factor_types(result) == [f"HAZARD_{h.upper()}" for h in hazards]
    assert all(f.weight == pytest.approx(0.05) for f in result.risk_factors)


@pytest.mark.parametrize("fatigue, expected_score, expected_type", [
    (0.8, 85, "HIGH_FATIGUE"),
    (0.6, 92, "MODERATE_FATIGUE"),
    (0.7, 92, "MODERATE_FATIGUE"),
    (0.5, 100, None),
])
def test_fatigue_deductions(worker_context, fatigue, expected_score, expected_type):
    result = calculate_rule_score(make_vision(fatigue_score=fatigue), worker_context, "morning")
    assert result.score == expected_score
    assert factor_types(result) == ([expected_type] if expected_type else [])


def test_night_shift_penalty(perfect_vision, worker_context):
    morning = calculate_rule_score(perfect_vision, worker_context, "morning")
    night = calculate_rule_score(perfect_vision, worker_context, "night")
    assert night.score == morning.score - 5
    assert factor_types(night) == ["NIGHT_SHIFT"]


def test_low_previous_score_penalty(perfect_vision, worker_context):
    assert calculate_rule_score(perfect_vision, worker_context, "morning", previous_score=59).score == 95
    assert calculate_rule_score(perfect_vision, worker_context, "morning", previous_score=60).score == 100


def test_chronic_condition_penalty(perfect_vision, worker_context):
    worker = worker_context.model_copy(update={"conditions": ["asthma", "hypertension"]})
    result = calculate_rule_score(perfect_vision, worker, "morning")
    assert result.score == 95
    assert factor_types(result) == ["CHRONIC_CONDITION"]


def test_extreme_scenario_clamps_to_zero(worker_context):
    result = calculate_rule_score(dangerous_vision(), worker_context, "night", previous_score=30)
    assert result.score == 0
    assert len(result.risk_factors) == 9


def test_rule_score_is_deterministic(worker_context):
    vision = dangerous_vision()
    first = calculate_rule_score(vision, worker_context, "afternoon", previous_score=50)
    second = calculate_rule_score(vision, worker_context, "afternoon", previous_score=50)
    assert first == second
