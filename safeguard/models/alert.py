"""
Alert model for HIGH and CRITICAL check-ins.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from safeguard.database import Base


class AlertStatus(str, enum.Enum):
    """Alert lifecycle status. RESOLVED is terminal."""
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class AlertType(str, enum.Enum):
    """Alert categories, each throttled independently."""
    HEALTH_RISK = "HEALTH_RISK"
    PPE_VIOLATION = "PPE_VIOLATION"
    ENVIRONMENT_HAZARD = "ENVIRONMENT_HAZARD"
    FATIGUE = "FATIGUE"


class NotificationChannel(str, enum.Enum):
    """Channels an alert can be delivered through."""
    IN_APP = "in-app"
    PUSH = "push"
    SMS = "sms"
    EMAIL = "email"


class Alert(Base):
    """
    Model for raised alerts.
    
    Each alert is:
    - Created OPEN, at most once per (worker, type) per cooldown window
    - Stamped with the channels its notifications reached
    - Resolved later by a person
    """
    
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_worker_type_created", "worker_id", "type", "created_at"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    checkin_id = Column(Integer, nullable=True)
    
    severity = Column(String(20), nullable=False)
    type = Column(String(50), nullable=False, default=AlertType.HEALTH_RISK.value)
    message = Column(Text, nullable=False)
    risk_factor_types = Column(JSON, default=list)
    site = Column(String(200), default="")
    
    status = Column(String(20), default=AlertStatus.OPEN.value)
    notifications_sent = Column(JSON, default=list)
    
    resolved_by = Column(String(200), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    worker = relationship("Worker", back_populates="alerts")
    
    def __repr__(self):
        return f"<Alert {self.id}: {self.severity} {self.type} worker={self.worker_id}>"
