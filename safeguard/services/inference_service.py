"""
Inference orchestration over the scoring fallback chain.

    ensemble (always computed first, kept as the ready fallback)
      -> remote model (single bounded call, wins when well-formed)
    ensemble raising -> bare rule engine on the raw vision signal

Whatever tier answers, the caller gets one ScoreResult shape tagged with
its scoring_method. Remote unavailability never fails a check-in.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from safeguard.ai.ensemble import calculate_ensemble_score
from safeguard.ai.fatigue import estimate_fatigue
from safeguard.ai.rule_scorer import calculate_rule_score
from safeguard.ai.scoring import build_score_result, clamp
from safeguard.config import settings
from safeguard.schemas.scoring import (
    RemoteFeatures, RemoteScoreResponse, RiskFactor, ScoreResult,
    ScoringMethod, ShiftType, WorkerContext
)
from safeguard.schemas.vision import DustLevel, LightingLevel, VisionObservation
from safeguard.services.remote_model_client import get_remote_client

logger = logging.getLogger(__name__)

DUST_CODES = {DustLevel.NONE: 0, DustLevel.LOW: 1, DustLevel.HIGH: 2, DustLevel.EXTREME: 3}
LIGHTING_CODES = {LightingLevel.LOW: 0, LightingLevel.OK: 1, LightingLevel.GOOD: 2}
SHIFT_CODES = {ShiftType.MORNING: 0, ShiftType.AFTERNOON: 1, ShiftType.NIGHT: 2}

RULE_ENGINE_CONFIDENCE = 1.0


def build_remote_features(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: float,
    fatigue_level: float,
) -> RemoteFeatures:
    """Flatten a check-in into the remote model's numeric feature record."""
    return RemoteFeatures(
        age=vision.face.estimated_age,
        fatigue_score=fatigue_level,
        has_mask=int(vision.face.has_mask),
        has_helmet=int(vision.face.has_helmet),
        dust_level=DUST_CODES[vision.environment.dust_level],
        lighting_level=LIGHTING_CODES[vision.environment.lighting_level],
        hazard_count=len(vision.environment.detected_hazards),
        shift_type=SHIFT_CODES[ShiftType(shift_type)],
        previous_score=previous_score,
        chronic_conditions=len(worker.conditions),
        baseline_score=worker.baseline_score,
    )


def _rule_engine_result(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float],
    mandatory_ppe: Optional[Sequence[str]],
) -> ScoreResult:
    rule = calculate_rule_score(
        vision, worker, shift_type,
        previous_score=previous_score,
        mandatory_ppe=mandatory_ppe,
    )
    return build_score_result(
        rule.score,
        rule.risk_factors,
        ScoringMethod.RULE_ENGINE,
        RULE_ENGINE_CONFIDENCE,
        settings.RULES_MODEL_VERSION,
    )


def _remote_result(output: RemoteScoreResponse) -> ScoreResult:
    factors = [
        RiskFactor(
            type=f.type,
            severity=f.severity,
            weight=f.weight,
            source=ScoringMethod.REMOTE_MODEL,
        )
        for f in output.risk_factors
    ]
    return build_score_result(
        clamp(output.health_score, 0.0, 100.0),
        factors,
        ScoringMethod.REMOTE_MODEL,
        output.confidence,
        output.model_version,
    )


async def run_inference(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float] = None,
    remote_client=None,
    mandatory_ppe: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> ScoreResult:
    """
    Score a check-in through the fallback chain.
    
    Args:
        vision: Face and environment observations (required).
        worker: Worker health profile snapshot (required).
        shift_type: Shift of this check-in.
        previous_score: Previous check-in score, baseline when absent.
        remote_client: Object with an async `score(RemoteFeatures)` method,
            or None to skip the remote tier.
        mandatory_ppe: PPE items that must be worn.
        now: Reference time for fatigue recency.
        
    Returns:
        ScoreResult tagged with the tier that produced it. Never raises
        for well-formed input.
    """
    if vision is None or worker is None:
        raise ValueError("vision observation and worker context are required")
    
    mandatory_ppe = settings.MANDATORY_PPE if mandatory_ppe is None else mandatory_ppe
    effective_previous = worker.baseline_score if previous_score is None else previous_score
    
    try:
        ensemble = calculate_ensemble_score(
            vision, worker, shift_type,
            previous_score=effective_previous,
            mandatory_ppe=mandatory_ppe,
            now=now,
        )
        fallback = build_score_result(
            ensemble.score,
            ensemble.risk_factors,
            ScoringMethod.ENSEMBLE,
            ensemble.confidence,
            settings.ENSEMBLE_MODEL_VERSION,
        )
        fatigue_level = ensemble.fatigue_level
    except Exception:
        logger.exception(
            f"Ensemble scoring failed for worker {worker.worker_id} - falling back to rule engine"
        )
        # Raw, unadjusted vision fatigue signal
        fallback = _rule_engine_result(vision, worker, shift_type, effective_previous, mandatory_ppe)
        fatigue_level = vision.face.fatigue_score
    
    if remote_client is None:
        return fallback
    
    try:
        features = build_remote_features(
            vision, worker, shift_type, effective_previous, fatigue_level
        )
        output = await remote_client.score(features)
        result = _remote_result(output)
    except Exception as e:
        logger.warning(
            f"Remote model unavailable for worker {worker.worker_id} - "
            f"using {fallback.scoring_method.value}: {e}"
        )
        return fallback
    
    logger.debug(
        f"Remote model scored worker {worker.worker_id}: "
        f"{result.health_score} (confidence={result.confidence})"
    )
    return result


async def score_checkin(
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float] = None,
) -> ScoreResult:
    """Score with the shared remote client when one is configured."""
    client = get_remote_client()
    return await run_inference(
        vision, worker, shift_type,
        previous_score=previous_score,
        remote_client=client if client.enabled else None,
    )
