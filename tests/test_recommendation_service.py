"""
Tests for post check-in safety recommendations.
"""

from safeguard.ai.scoring import build_score_result
from safeguard.schemas.scoring import ScoringMethod
from safeguard.schemas.vision import DustLevel, LightingLevel
from safeguard.services.recommendation_service import RULES, generate_recommendations

from tests.conftest import dangerous_vision, make_vision

PRIORITY = {rule.message: rule.priority for rule in RULES}


def _result(score):
    return build_score_result(score, [], ScoringMethod.RULE_ENGINE, 1.0, "rules-test")


def _matching(result, vision, worker, shift):
    return [rule for rule in RULES if rule.condition(result, vision, worker, shift)]


def test_capped_at_five_and_most_urgent_first(worker_context):
    worker = worker_context.model_copy(update={"conditions": ["asthma"]})
    result = _result(30)
    vision = dangerous_vision()
    assert len(_matching(result, vision, worker, "night")) > 5
    
    messages = generate_recommendations(result, vision, worker, "night")
    
    assert len(messages) == 5
    assert all(PRIORITY[m] == 1 for m in messages)


def test_priority_ordering_across_tiers(worker_context):
    worker = worker_context.model_copy(update={"conditions": ["asthma"]})
    vision = make_vision(
        has_helmet=False,
        fatigue_score=0.9,
        dust_level=DustLevel.HIGH,
        lighting_level=LightingLevel.LOW,
    )
    
    messages = generate_recommendations(_result(30), vision, worker, "night")
    priorities = [PRIORITY[m] for m in messages]
    
    assert len(messages) == 5
    assert priorities == sorted(priorities)
    assert priorities[:2] == [1, 1]
    assert messages[0].startswith("Immediately put on your hard hat")
    assert messages[1].startswith("Critical health risk score")
    # Lower-priority matches are cut first
    assert not any("Night shift" in m for m in messages)


def test_max_count_is_respected(worker_context):
    messages = generate_recommendations(_result(30), dangerous_vision(), worker_context, "night", max_count=2)
    assert len(messages) == 2


def test_safe_checkin_gets_reinforcement_only(perfect_vision, worker_context):
    messages = generate_recommendations(_result(98), perfect_vision, worker_context, "morning")
    assert messages == [
        "Excellent PPE compliance and health indicators. Keep up the great safety habits!"
    ]
