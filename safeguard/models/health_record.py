"""
HealthRecord model, one row per completed check-in.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from safeguard.database import Base


class HealthRecord(Base):
    """
    Model for a scored check-in.
    
    Stores the vision observation as received, the final score result
    and the recommendations shown to the worker. Never rescored.
    """
    
    __tablename__ = "health_records"
    
    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    
    shift_type = Column(String(20), nullable=False)
    site = Column(String(200), default="")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    
    # Inputs
    vision_analysis = Column(JSON, nullable=False)
    previous_score = Column(Float, nullable=True)
    
    # Score result
    health_score = Column(Integer, nullable=False)
    risk_level = Column(String(20), nullable=False)
    risk_factors = Column(JSON, default=list)
    scoring_method = Column(String(32), nullable=False)
    model_confidence = Column(Float)
    model_version = Column(String(64))
    
    recommendations = Column(JSON, default=list)
    
    # Alert linkage
    alert_sent = Column(Boolean, default=False)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="SET NULL"), nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    # Relationships
    worker = relationship("Worker", back_populates="health_records")
    
    def __repr__(self):
        return f"<HealthRecord {self.id}: worker={self.worker_id} score={self.health_score}>"
