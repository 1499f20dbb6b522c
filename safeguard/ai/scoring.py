"""
Shared scoring helpers: clamping, risk-level mapping and result assembly.
"""

import math
from typing import Iterable, List, Optional

from safeguard.config import settings
from safeguard.schemas.scoring import RiskFactor, RiskLevel, ScoreResult, ScoringMethod

# Lower bound (inclusive) of each risk level, checked top-down
RISK_LEVEL_THRESHOLDS = (
    (80, RiskLevel.LOW),
    (60, RiskLevel.MEDIUM),
    (40, RiskLevel.HIGH),
)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive scores."""
    return int(math.floor(value + 0.5))


def score_to_risk_level(score: float) -> RiskLevel:
    """
    Map a health score to its risk level.
    
    >=80 LOW, >=60 MEDIUM, >=40 HIGH, otherwise CRITICAL.
    """
    for lower_bound, level in RISK_LEVEL_THRESHOLDS:
        if score >= lower_bound:
            return level
    return RiskLevel.CRITICAL


def rank_risk_factors(factors: Iterable[RiskFactor], limit: Optional[int] = None) -> List[RiskFactor]:
    """Sort factors by weight descending and keep the top `limit`."""
    limit = settings.MAX_RISK_FACTORS if limit is None else limit
    # sorted() is stable, equal weights keep emission order
    return sorted(factors, key=lambda f: f.weight, reverse=True)[:limit]


def build_score_result(
    score: float,
    risk_factors: Iterable[RiskFactor],
    scoring_method: ScoringMethod,
    confidence: float,
    model_version: str,
) -> ScoreResult:
    """
    Normalize any tier's output into a ScoreResult.
    
    The score is rounded and clamped, the risk level is derived from it
    and never set independently, and factors are ranked and truncated.
    """
    health_score = int(clamp(round_half_up(score), 0, 100))
    return ScoreResult(
        health_score=health_score,
        risk_level=score_to_risk_level(health_score),
        risk_factors=rank_risk_factors(risk_factors),
        scoring_method=scoring_method,
        confidence=confidence,
        model_version=model_version,
    )
