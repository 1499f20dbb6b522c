"""
Application configuration settings.
"""

from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    APP_NAME: str = "SafeGuard"
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./safeguard.db"
    
    # Remote scoring model
    # Leave REMOTE_MODEL_ENDPOINT unset to score with the local ensemble only
    REMOTE_MODEL_ENDPOINT: Optional[str] = None
    REMOTE_MODEL_API_KEY: str = ""
    REMOTE_MODEL_TIMEOUT_SECONDS: float = 5.0  # Hard ceiling, exceeded = fallback
    
    # Scoring
    MANDATORY_PPE: List[str] = ["helmet", "mask"]
    MAX_RISK_FACTORS: int = 5
    RULES_MODEL_VERSION: str = "rules-v1.0.0"
    ENSEMBLE_MODEL_VERSION: str = "stacking-ensemble-v1.0.0"
    
    # Fixed linear combination of sub-scores (not learned parameters).
    # "shift" is reported in the breakdown but carries no weight by default,
    # the shift already feeds the fatigue level.
    ENSEMBLE_WEIGHTS: Dict[str, float] = {
        "rule": 0.35,
        "ppe": 0.25,
        "env": 0.20,
        "fatigue": 0.12,
        "trend": 0.08,
        "shift": 0.0,
    }
    
    # Alerts
    ALERT_COOLDOWN_MINUTES: float = 30.0
    ADMIN_ALERT_EMAILS: List[str] = []
    
    # Notifications
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0
    PUSH_GATEWAY_URL: str = ""
    PUSH_GATEWAY_KEY: str = ""
    SMS_GATEWAY_URL: str = ""
    SMS_GATEWAY_KEY: str = ""
    SMS_SENDER: str = "+15550001234"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_FROM: str = ""
    SMTP_TIMEOUT: int = 12
    DEV_MAIL_DIR: str = ""  # Optional local file outbox instead of SMTP
    
    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
