"""
Check-in schemas for API request/response validation.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

from safeguard.schemas.scoring import RiskFactor, ShiftType
from safeguard.schemas.vision import VisionObservation


class Location(BaseModel):
    """Where the check-in happened."""
    lat: float
    lng: float


class CheckinRequest(BaseModel):
    """Schema for submitting a check-in with its vision observation."""
    worker_id: str
    shift_type: ShiftType
    vision: VisionObservation
    location: Optional[Location] = None


class PPEStatus(BaseModel):
    has_helmet: bool
    has_mask: bool


class EnvironmentStatus(BaseModel):
    dust_level: str
    lighting_level: str
    detected_hazards: List[str] = []


class CheckinResponse(BaseModel):
    """Schema for a completed check-in."""
    checkin_id: int
    worker_id: str
    health_score: int
    risk_level: str
    scoring_method: str
    risk_factors: List[RiskFactor] = []
    recommendations: List[str] = []
    alert_triggered: bool = False
    alert_id: Optional[int] = None
    notifications_sent: List[str] = []
    ppe_status: PPEStatus
    environment_status: EnvironmentStatus
    created_at: datetime
