"""
Routers package initialization.
"""

from safeguard.routers import workers, checkins, alerts

__all__ = ["workers", "checkins", "alerts"]
