"""
Deterministic deduction-based scorer.

Starts every check-in at 100 and subtracts fixed deductions, emitting one
risk factor per deduction. Has no I/O and no failure mode, it is the
scorer of last resort.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from safeguard.ai.scoring import clamp
from safeguard.schemas.scoring import (
    RiskFactor, ScoringMethod, Severity, ShiftType, WorkerContext
)
from safeguard.schemas.vision import DustLevel, LightingLevel, VisionObservation

logger = logging.getLogger(__name__)

DEFAULT_MANDATORY_PPE = ("helmet", "mask")

# Points deducted from 100
DEDUCTIONS = {
    "NO_MASK": 30,
    "NO_HELMET": 25,
    "DUST_EXTREME": 20,
    "DUST_HIGH": 10,
    "POOR_LIGHTING": 10,
    "HAZARD_EACH": 5,
    "HAZARD_MAX": 20,
    "FATIGUE_HIGH": 15,
    "FATIGUE_MED": 8,
    "NIGHT_SHIFT": 5,
    "PREVIOUS_SCORE_LOW": 5,
    "CHRONIC_CONDITION": 5,
}

FATIGUE_HIGH_THRESHOLD = 0.7
FATIGUE_MED_THRESHOLD = 0.5
PREVIOUS_SCORE_LOW_THRESHOLD = 60


@dataclass
class RuleScore:
    """Raw rule engine output before normalization."""
    score: int
    risk_factors: List[RiskFactor] = field(default_factory=list)


def calculate_rule_score(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float] = None,
    mandatory_ppe: Optional[Sequence[str]] = None,
    source: ScoringMethod = ScoringMethod.RULE_ENGINE,
) -> RuleScore:
    """
    Score a check-in with fixed deductions.
    
    Args:
        vision: Face and environment observations.
        worker: Worker health profile snapshot.
        shift_type: Shift of this check-in.
        previous_score: Score of the worker's previous check-in, if any.
        mandatory_ppe: PPE items that must be worn (default helmet and mask).
        source: Provenance tag stamped on every emitted factor.
        
    Returns:
        RuleScore with the score clamped to [0, 100].
    """
    required = set(DEFAULT_MANDATORY_PPE if mandatory_ppe is None else mandatory_ppe)
    face = vision.face
    env = vision.environment
    
    score = 100
    factors: List[RiskFactor] = []
    
    def deduct(points, factor_type, severity, weight, confidence=None):
        nonlocal score
        score -= points
        factors.append(RiskFactor(
            type=factor_type,
            severity=severity,
            weight=weight,
            confidence=confidence,
            source=source,
        ))
    
    # PPE
    if "mask" in required and not face.has_mask:
        deduct(DEDUCTIONS["NO_MASK"], "NO_MASK", Severity.HIGH, 0.35, face.confidence)
    if "helmet" in required and not face.has_helmet:
        deduct(DEDUCTIONS["NO_HELMET"], "NO_HELMET", Severity.HIGH, 0.30, face.confidence)
    
    # Environment
    if env.dust_level == DustLevel.EXTREME:
        deduct(DEDUCTIONS["DUST_EXTREME"], "DUST_LEVEL_EXTREME", Severity.HIGH, 0.20)
    elif env.dust_level == DustLevel.HIGH:
        deduct(DEDUCTIONS["DUST_HIGH"], "DUST_LEVEL_ELEVATED", Severity.MEDIUM, 0.10)
    
    if env.lighting_level == LightingLevel.LOW:
        deduct(DEDUCTIONS["POOR_LIGHTING"], "POOR_LIGHTING", Severity.MEDIUM, 0.10)
    
    # Every hazard gets a factor, only the deduction is capped
    hazard_deduction = min(len(env.detected_hazards) * DEDUCTIONS["HAZARD_EACH"], DEDUCTIONS["HAZARD_MAX"])
    if hazard_deduction > 0:
        score -= hazard_deduction
        for hazard in env.detected_hazards:
            factors.append(RiskFactor(
                type=f"HAZARD_{hazard.upper()}",
                severity=Severity.MEDIUM,
                weight=0.05,
                source=source,
            ))
    
    # Fatigue
    if face.fatigue_score > FATIGUE_HIGH_THRESHOLD:
        deduct(DEDUCTIONS["FATIGUE_HIGH"], "HIGH_FATIGUE", Severity.HIGH, 0.15, face.fatigue_score)
    elif face.fatigue_score > FATIGUE_MED_THRESHOLD:
        deduct(DEDUCTIONS["FATIGUE_MED"], "MODERATE_FATIGUE", Severity.MEDIUM, 0.08, face.fatigue_score)
    
    # Context
    if shift_type == ShiftType.NIGHT:
        deduct(DEDUCTIONS["NIGHT_SHIFT"], "NIGHT_SHIFT", Severity.LOW, 0.05)
    
    if previous_score is not None and previous_score < PREVIOUS_SCORE_LOW_THRESHOLD:
        deduct(DEDUCTIONS["PREVIOUS_SCORE_LOW"], "PREVIOUS_SCORE_LOW", Severity.LOW, 0.05)
    
    if worker.conditions:
        deduct(DEDUCTIONS["CHRONIC_CONDITION"], "CHRONIC_CONDITION", Severity.LOW, 0.05)
    
    final_score = int(clamp(score, 0, 100))
    logger.debug(f"Rule score {final_score} with {len(factors)} factors")
    return RuleScore(score=final_score, risk_factors=factors)
