"""
Scoring schemas: worker context, risk factors, score results and the
remote scoring model contract.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from enum import Enum


class ShiftType(str, Enum):
    """Shift the check-in belongs to."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"


class RiskLevel(str, Enum):
    """Four-tier risk classification derived from the health score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Severity(str, Enum):
    """Risk factor severity."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ScoringMethod(str, Enum):
    """Which tier of the fallback chain produced a score."""
    REMOTE_MODEL = "remote_model"
    ENSEMBLE = "ensemble"
    RULE_ENGINE = "rule_engine"


class WorkerContext(BaseModel):
    """Read-only snapshot of the worker's health profile for one check-in."""
    worker_id: Optional[str] = None
    baseline_score: float = Field(default=85.0, ge=0.0, le=100.0)
    conditions: List[str] = []
    shift: ShiftType = ShiftType.MORNING
    last_checkin: Optional[datetime] = None
    streak_days_low_risk: int = Field(default=0, ge=0)
    
    class Config:
        from_attributes = True
        frozen = True


class RiskFactor(BaseModel):
    """A weighted reason contributing to a score reduction."""
    type: str
    severity: Severity
    weight: float = Field(ge=0.0, allow_inf_nan=False)
    confidence: Optional[float] = None
    source: ScoringMethod


class ScoreResult(BaseModel):
    """Final scoring outcome for a check-in. Immutable once built."""
    health_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    risk_factors: List[RiskFactor] = []
    scoring_method: ScoringMethod
    confidence: float
    model_version: str
    
    class Config:
        frozen = True


class RemoteFeatures(BaseModel):
    """Flat numeric feature record sent to the remote scoring model."""
    age: float
    fatigue_score: float = Field(serialization_alias="fatigueScore")
    has_mask: int = Field(serialization_alias="hasMask")
    has_helmet: int = Field(serialization_alias="hasHelmet")
    dust_level: int = Field(serialization_alias="dustLevel")          # 0=NONE .. 3=EXTREME
    lighting_level: int = Field(serialization_alias="lightingLevel")  # 0=LOW, 1=OK, 2=GOOD
    hazard_count: int = Field(serialization_alias="hazardCount")
    shift_type: int = Field(serialization_alias="shiftType")          # 0=morning, 1=afternoon, 2=night
    previous_score: float = Field(serialization_alias="previousScore")
    chronic_conditions: int = Field(serialization_alias="chronicConditions")
    baseline_score: float = Field(serialization_alias="baselineScore")


class RemoteRiskFactor(BaseModel):
    """Risk factor as returned by the remote model."""
    type: str
    severity: Severity
    weight: float = Field(ge=0.0, allow_inf_nan=False)


class RemoteScoreResponse(BaseModel):
    """Response payload of the remote scoring model."""
    health_score: float = Field(alias="healthScore", allow_inf_nan=False)
    risk_factors: List[RemoteRiskFactor] = Field(default=[], alias="riskFactors")
    confidence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    model_version: str = Field(default="ml-v1", alias="modelVersion")
    
    class Config:
        populate_by_name = True
