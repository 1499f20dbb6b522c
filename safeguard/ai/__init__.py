"""
Scoring package initialization.
"""

from safeguard.ai.rule_scorer import calculate_rule_score
from safeguard.ai.fatigue import estimate_fatigue
from safeguard.ai.ensemble import calculate_ensemble_score
from safeguard.ai.scoring import score_to_risk_level, build_score_result

__all__ = [
    "calculate_rule_score",
    "estimate_fatigue",
    "calculate_ensemble_score",
    "score_to_risk_level",
    "build_score_result",
]
