"""
Services package initialization.
"""

from safeguard.services.checkin_service import process_checkin
from safeguard.services.inference_service import run_inference
from safeguard.services.alert_service import raise_alert
from safeguard.services.notification_service import dispatch_alert_notifications

__all__ = ["process_checkin", "run_inference", "raise_alert", "dispatch_alert_notifications"]
