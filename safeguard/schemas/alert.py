"""
Alert schemas for API request/response validation.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class AlertResponse(BaseModel):
    """Schema for alert responses."""
    id: int
    worker_id: int
    checkin_id: Optional[int] = None
    severity: str
    type: str
    message: str
    risk_factor_types: List[str] = []
    site: str = ""
    status: str
    notifications_sent: List[str] = []
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    
    class Config:
        from_attributes = True


class AlertListResponse(BaseModel):
    """Schema for alert list."""
    items: List[AlertResponse]
    total: int


class AlertResolveRequest(BaseModel):
    """Schema for resolving an alert."""
    resolved_by: str
