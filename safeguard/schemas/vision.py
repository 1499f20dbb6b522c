"""
Vision observation schemas.

These records are produced by the external image-analysis step and are
consumed read-only by the scoring pipeline.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List
from enum import Enum


class DustLevel(str, Enum):
    """Airborne dust level seen in the environment image."""
    NONE = "NONE"
    LOW = "LOW"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class LightingLevel(str, Enum):
    """Lighting quality seen in the environment image."""
    LOW = "LOW"
    OK = "OK"
    GOOD = "GOOD"


class FaceObservation(BaseModel):
    """PPE and fatigue signals from the face image."""
    has_mask: bool
    has_helmet: bool
    fatigue_score: float = Field(ge=0.0, le=1.0)  # Raw, weak visual signal
    estimated_age: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)


class EnvironmentObservation(BaseModel):
    """Conditions observed in the environment image."""
    dust_level: DustLevel
    lighting_level: LightingLevel
    detected_hazards: List[str] = []
    safety_equipment_visible: bool = True
    image_clarity: float = Field(default=1.0, ge=0.0, le=1.0)
    
    @field_validator("detected_hazards")
    @classmethod
    def _unique_hazards(cls, value: List[str]) -> List[str]:
        # Hazard tags form a set, keep first-seen order for stable factor output
        seen = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class VisionObservation(BaseModel):
    """Face and environment observations for one check-in."""
    face: FaceObservation
    environment: EnvironmentObservation
