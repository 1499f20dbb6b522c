"""
Safety recommendations shown to the worker after a check-in.
"""

from dataclasses import dataclass
from typing import Callable, List

from safeguard.schemas.scoring import ScoreResult, ShiftType, WorkerContext
from safeguard.schemas.vision import DustLevel, LightingLevel, VisionObservation


@dataclass(frozen=True)
class RecommendationRule:
    """A message shown when its condition holds. Lower priority shows first."""
    condition: Callable[[ScoreResult, VisionObservation, WorkerContext, ShiftType], bool]
    message: str
    priority: int


RULES = [
    # PPE
    RecommendationRule(
        lambda r, v, w, s: not v.face.has_helmet,
        "Immediately put on your hard hat before entering the work zone.", 1),
    RecommendationRule(
        lambda r, v, w, s: not v.face.has_mask,
        "Wear your respirator / face mask - dust and particulate levels require full PPE.", 1),
    
    # Fatigue
    RecommendationRule(
        lambda r, v, w, s: v.face.fatigue_score > 0.7,
        "High fatigue detected. Take a 15-minute break and inform your supervisor before continuing.", 2),
    RecommendationRule(
        lambda r, v, w, s: 0.5 < v.face.fatigue_score <= 0.7,
        "Signs of fatigue detected. Schedule a short rest break within the next hour.", 3),
    
    # Environment
    RecommendationRule(
        lambda r, v, w, s: v.environment.dust_level == DustLevel.EXTREME,
        "Extreme dust levels present. Evacuate area immediately and report to safety officer.", 1),
    RecommendationRule(
        lambda r, v, w, s: v.environment.dust_level == DustLevel.HIGH,
        "Elevated dust levels detected. Ensure full respiratory protection is worn.", 2),
    RecommendationRule(
        lambda r, v, w, s: v.environment.lighting_level == LightingLevel.LOW,
        "Poor lighting conditions. Use a headlamp or request additional lighting equipment.", 2),
    RecommendationRule(
        lambda r, v, w, s: "fire" in v.environment.detected_hazards,
        "Fire or flame detected in environment. Activate fire alarm and evacuate immediately.", 1),
    RecommendationRule(
        lambda r, v, w, s: "wet_floor" in v.environment.detected_hazards,
        "Wet floor hazard detected. Walk carefully and use anti-slip footwear.", 2),
    RecommendationRule(
        lambda r, v, w, s: "chemical_spill" in v.environment.detected_hazards,
        "Potential chemical spill detected. Do not touch - alert hazmat team immediately.", 1),
    
    # Shift
    RecommendationRule(
        lambda r, v, w, s: s == ShiftType.NIGHT,
        "Night shift: Stay hydrated and take scheduled breaks to maintain alertness.", 4),
    
    # Score bands
    RecommendationRule(
        lambda r, v, w, s: r.health_score < 40,
        "Critical health risk score. Do not operate heavy machinery - contact your supervisor now.", 1),
    RecommendationRule(
        lambda r, v, w, s: 40 <= r.health_score < 60,
        "Elevated risk detected. Limit exposure to hazardous areas until risk factors are addressed.", 2),
    RecommendationRule(
        lambda r, v, w, s: 60 <= r.health_score < 80,
        "Moderate risk level. Follow standard safety protocols and monitor your condition.", 3),
    
    # Chronic conditions
    RecommendationRule(
        lambda r, v, w, s: "asthma" in w.conditions,
        "Asthma alert: Elevated dust levels may trigger symptoms. Keep inhaler accessible.", 2),
    RecommendationRule(
        lambda r, v, w, s: "hypertension" in w.conditions,
        "Hypertension alert: Monitor blood pressure if working in high-stress conditions.", 3),
    RecommendationRule(
        lambda r, v, w, s: "heart_condition" in w.conditions,
        "Cardiac alert: Avoid heavy lifting and extreme temperatures. Alert supervisor if chest discomfort occurs.", 2),
    
    # Positive reinforcement
    RecommendationRule(
        lambda r, v, w, s: r.health_score >= 80 and v.face.has_helmet and v.face.has_mask,
        "Excellent PPE compliance and health indicators. Keep up the great safety habits!", 5),
]


def generate_recommendations(
    result: ScoreResult,
    vision: VisionObservation,
    worker: WorkerContext,
    shift_type: ShiftType,
    max_count: int = 5,
) -> List[str]:
    """Matching messages, highest priority first, at most max_count."""
    matched = [rule for rule in RULES if rule.condition(result, vision, worker, shift_type)]
    matched.sort(key=lambda rule: rule.priority)
    return [rule.message for rule in matched[:max_count]]
