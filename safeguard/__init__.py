"""
SafeGuard check-in risk scoring and alert dispatch.
"""

__version__ = "1.0.0"
