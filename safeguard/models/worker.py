"""
Worker model holding contact details and the cached health profile.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from safeguard.database import Base


class Worker(Base):
    """
    Model for a site worker.
    
    The health profile columns (baseline, conditions, last check-in,
    cached risk level, low-risk streak) are read as a snapshot at the
    start of every check-in and updated once scoring is done.
    """
    
    __tablename__ = "workers"
    
    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(String(64), unique=True, nullable=False, index=True)
    
    # Contact
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=True)
    phone = Column(String(32), nullable=True)
    device_tokens = Column(JSON, default=list)
    
    # Assignment
    department = Column(String(100), default="")
    site = Column(String(200), default="")
    shift = Column(String(20), default="morning")
    
    # Health profile
    baseline_score = Column(Float, default=85.0)
    conditions = Column(JSON, default=list)  # e.g. ["asthma", "hypertension"]
    last_checkin = Column(DateTime, nullable=True)
    current_risk_level = Column(String(20), nullable=True)
    streak_days_low_risk = Column(Integer, default=0)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    health_records = relationship("HealthRecord", back_populates="worker", cascade="all, delete-orphan")
    alerts = relationship("Alert", back_populates="worker", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Worker {self.worker_id}: {self.name}>"
