"""
Fatigue level estimation.

Fuses contextual signals (shift, score trend, chronic conditions, time
since last check-in) with the weak visual fatigue signal into a single
level in [0, 1]. The visual signal alone is too noisy to act on, so it
carries the smallest weight.
"""

from datetime import datetime, timezone
from typing import Optional

from safeguard.ai.scoring import clamp
from safeguard.schemas.scoring import ShiftType, WorkerContext

SHIFT_SIGNAL = {
    ShiftType.MORNING: 0.2,
    ShiftType.AFTERNOON: 0.5,
    ShiftType.NIGHT: 1.0,
}

SIGNAL_WEIGHTS = {
    "shift": 0.30,
    "trend": 0.25,
    "chronic": 0.20,
    "recency": 0.15,
    "vision": 0.10,
}

TREND_SPAN = 30.0             # Score drop that saturates the trend signal
CHRONIC_STEP = 0.25           # Per recorded condition
RECENCY_SPAN_HOURS = 48.0     # Gap that saturates the recency signal
NO_PRIOR_CHECKIN_SIGNAL = 0.35


def as_naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def estimate_fatigue(
    worker: WorkerContext,
    shift_type: ShiftType,
    previous_score: Optional[float],
    vision_fatigue: float,
    now: Optional[datetime] = None,
) -> float:
    """
    Estimate a normalized fatigue level.
    
    Args:
        worker: Worker health profile snapshot.
        shift_type: Shift of this check-in.
        previous_score: Previous check-in score; the baseline is used when absent.
        vision_fatigue: Raw visual fatigue signal in [0, 1].
        now: Reference time for the recency signal (defaults to utcnow).
        
    Returns:
        Fatigue level rounded to 3 decimals, in [0, 1].
    """
    if previous_score is None:
        previous_score = worker.baseline_score
    
    shift_signal = SHIFT_SIGNAL.get(ShiftType(shift_type), SHIFT_SIGNAL[ShiftType.MORNING])
    trend_signal = clamp((worker.baseline_score - previous_score) / TREND_SPAN, 0.0, 1.0)
    chronic_signal = clamp(len(worker.conditions) * CHRONIC_STEP, 0.0, 1.0)
    
    if worker.last_checkin is None:
        recency_signal = NO_PRIOR_CHECKIN_SIGNAL
    else:
        now = as_naive_utc(now or datetime.utcnow())
        hours = (now - as_naive_utc(worker.last_checkin)).total_seconds() / 3600.0
        recency_signal = clamp(hours / RECENCY_SPAN_HOURS, 0.0, 1.0)
    
    level = (
        shift_signal * SIGNAL_WEIGHTS["shift"]
        + trend_signal * SIGNAL_WEIGHTS["trend"]
        + chronic_signal * SIGNAL_WEIGHTS["chronic"]
        + recency_signal * SIGNAL_WEIGHTS["recency"]
        + clamp(vision_fatigue, 0.0, 1.0) * SIGNAL_WEIGHTS["vision"]
    )
    return round(clamp(level, 0.0, 1.0), 3)
