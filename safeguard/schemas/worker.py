"""
Worker schemas for API request/response validation.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from safeguard.schemas.scoring import ShiftType


class WorkerCreate(BaseModel):
    """Schema for registering a worker."""
    worker_id: str = Field(min_length=1, max_length=64)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    device_tokens: List[str] = []
    department: str = ""
    site: str = ""
    shift: ShiftType = ShiftType.MORNING
    baseline_score: float = Field(default=85.0, ge=0.0, le=100.0)
    conditions: List[str] = []


class WorkerResponse(BaseModel):
    """Schema for worker responses."""
    id: int
    worker_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    department: str = ""
    site: str = ""
    shift: str
    baseline_score: float
    conditions: List[str] = []
    last_checkin: Optional[datetime] = None
    current_risk_level: Optional[str] = None
    streak_days_low_risk: int = 0
    created_at: datetime
    
    class Config:
        from_attributes = True
