"""
Stacking ensemble scorer.

Not a trained model: a fixed linear combination of the rule engine score
and four rule-derived sub-scores (PPE, environment, fatigue, trend). The
weights live in settings.ENSEMBLE_WEIGHTS.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence
import logging

import numpy as np

from safeguard.ai.fatigue import estimate_fatigue
from safeguard.ai.rule_scorer import calculate_rule_score
from safeguard.ai.scoring import clamp
from safeguard.config import settings
from safeguard.schemas.scoring import (
    RiskFactor, ScoringMethod, Severity, ShiftType, WorkerContext
)
from safeguard.schemas.vision import DustLevel, LightingLevel, VisionObservation

logger = logging.getLogger(__name__)

SHIFT_SCORES = {
    ShiftType.MORNING: 100.0,
    ShiftType.AFTERNOON: 85.0,
    ShiftType.NIGHT: 65.0,
}

DUST_PENALTIES = {
    DustLevel.NONE: 0.0,
    DustLevel.LOW: 8.0,
    DustLevel.HIGH: 20.0,
    DustLevel.EXTREME: 35.0,
}

# Negative penalty is a bonus
LIGHTING_PENALTIES = {
    LightingLevel.LOW: 10.0,
    LightingLevel.OK: 0.0,
    LightingLevel.GOOD: -2.0,
}

HAZARD_PENALTY_EACH = 5.0
HAZARD_PENALTY_MAX = 25.0
PPE_PENALTY = 30.0
FATIGUE_SCALE = 60.0

# (delta lower bound, score), delta = previous score - baseline
TREND_STEPS = (
    (10, 100.0),
    (0, 92.0),
    (-10, 80.0),
    (-20, 68.0),
)
TREND_FLOOR = 55.0

# Factor type -> (sub-score key, emit at or below, HIGH at or below)
COMPOSITE_FACTORS = {
    "PPE_NON_COMPLIANCE": ("ppe", 70.0, 40.0),
    "ENVIRONMENTAL_EXPOSURE": ("env", 75.0, 50.0),
    "FATIGUE_RISK": ("fatigue", 70.0, 50.0),
    "HEALTH_TREND_DECLINE": ("trend", 70.0, 55.0),
}

COMBINED_KEYS = ("rule", "ppe", "env", "fatigue", "trend", "shift")


@dataclass
class EnsembleScore:
    """Ensemble output before normalization."""
    score: int
    fatigue_level: float
    sub_scores: Dict[str, float]
    confidence: float
    risk_factors: List[RiskFactor] = field(default_factory=list)


def shift_score(shift_type: ShiftType) -> float:
    return SHIFT_SCORES[ShiftType(shift_type)]


def environment_score(vision: VisionObservation) -> float:
    env = vision.environment
    hazard_penalty = min(len(env.detected_hazards) * HAZARD_PENALTY_EACH, HAZARD_PENALTY_MAX)
    score = 100.0 - DUST_PENALTIES[env.dust_level] - LIGHTING_PENALTIES[env.lighting_level] - hazard_penalty
    return clamp(score, 0.0, 100.0)


def ppe_score(vision: VisionObservation) -> float:
    score = 100.0
    if not vision.face.has_helmet:
        score -= PPE_PENALTY
    if not vision.face.has_mask:
        score -= PPE_PENALTY
    return clamp(score, 0.0, 100.0)


def fatigue_score(fatigue_level: float) -> float:
    return clamp(100.0 - fatigue_level * FATIGUE_SCALE, 0.0, 100.0)


def trend_score(previous_score: float, baseline_score: float) -> float:
    """Stepped score for how the previous check-in compares to the baseline."""
    delta = previous_score - baseline_score
    for lower_bound, score in TREND_STEPS:
        if delta >= lower_bound:
            return score
    return TREND_FLOOR


def _composite_factors(sub_scores: Dict[str, float], vision: VisionObservation) -> List[RiskFactor]:
    confidences = {
        "ppe": vision.face.confidence,
        "env": vision.environment.image_clarity,
    }
    factors = []
    for factor_type, (key, emit_at, high_at) in COMPOSITE_FACTORS.items():
        value = sub_scores[key]
        if value > emit_at:
            continue
        factors.append(RiskFactor(
            type=factor_type,
            severity=Severity.HIGH if value <= high_at else Severity.MEDIUM,
            weight=round((100.0 - value) / 100.0, 3),
            confidence=confidences.get(key),
            source=ScoringMethod.ENSEMBLE,
        ))
    return factors


def calculate_ensemble_score(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float] = None,
    mandatory_ppe: Optional[Sequence[str]] = None,
    weights: Optional[Dict[str, float]] = None,
    now: Optional[datetime] = None,
) -> EnsembleScore:
    """
    Score a check-in with the stacking ensemble.
    
    The rule engine is re-run with the visual fatigue signal replaced by
    the estimated fatigue level, then blended with the sub-scores.
    """
    if weights is None:
        weights = settings.ENSEMBLE_WEIGHTS
    if previous_score is None:
        previous_score = worker.baseline_score
    
    fatigue_level = estimate_fatigue(
        worker, shift_type, previous_score, vision.face.fatigue_score, now=now
    )
    
    adjusted_face = vision.face.model_copy(update={"fatigue_score": fatigue_level})
    adjusted_vision = vision.model_copy(update={"face": adjusted_face})
    rule = calculate_rule_score(
        adjusted_vision,
        worker,
        shift_type,
        previous_score=previous_score,
        mandatory_ppe=mandatory_ppe,
        source=ScoringMethod.ENSEMBLE,
    )
    
    sub_scores = {
        "rule": float(rule.score),
        "ppe": ppe_score(vision),
        "env": environment_score(vision),
        "fatigue": fatigue_score(fatigue_level),
        "trend": trend_score(previous_score, worker.baseline_score),
        "shift": shift_score(shift_type),
    }
    
    values = np.array([sub_scores[k] for k in COMBINED_KEYS], dtype=np.float64)
    coefficients = np.array([weights.get(k, 0.0) for k in COMBINED_KEYS], dtype=np.float64)
    combined = float(np.dot(values, coefficients))
    score = int(np.clip(np.floor(combined + 0.5), 0, 100))
    
    confidence = round((vision.face.confidence + vision.environment.image_clarity) / 2.0, 3)
    factors = rule.risk_factors + _composite_factors(sub_scores, vision)
    
    logger.debug(
        f"Ensemble score {score} (rule={rule.score}, fatigue_level={fatigue_level}, "
        f"sub_scores={sub_scores})"
    )
    
    return EnsembleScore(
        score=score,
        fatigue_level=fatigue_level,
        sub_scores=sub_scores,
        confidence=confidence,
        risk_factors=factors,
    )
