"""
Models package initialization.
"""

from safeguard.models.worker import Worker
from safeguard.models.health_record import HealthRecord
from safeguard.models.alert import Alert

__all__ = ["Worker", "HealthRecord", "Alert"]
