"""
Alert throttling, composition and resolution.

The cooldown check is a plain read of the newest alert for
(worker, alert type) followed by an insert. Two check-ins for the same
worker racing through the read before either insert commits can both
create an alert; the commit right after the insert keeps that window
short but does not close it. Closing it needs a conditional write, e.g.
a unique in-flight throttle key per (worker, type, window).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safeguard.config import settings
from safeguard.models.alert import Alert, AlertStatus, AlertType
from safeguard.models.worker import Worker
from safeguard.schemas.scoring import RiskFactor, RiskLevel

logger = logging.getLogger(__name__)

ALERTING_LEVELS = {RiskLevel.HIGH, RiskLevel.CRITICAL}

ALERT_TEMPLATES = {
    RiskLevel.CRITICAL: "CRITICAL: Immediate action required. Worker flagged for {factor}.",
    RiskLevel.HIGH: "HIGH RISK: Worker flagged for {factor}. Supervisor attention needed.",
}
DEFAULT_TEMPLATE = "Risk detected: {factor}"
NO_FACTOR_TEXT = "multiple risk factors"


class AlertNotFoundError(Exception):
    """Raised when an alert id does not exist."""


class AlertAlreadyResolvedError(Exception):
    """Raised when resolving an alert that is already RESOLVED."""


@dataclass
class AlertOutcome:
    """Result of an alert attempt."""
    alert_created: bool
    alert: Optional[Alert] = None
    throttled: bool = False


def should_throttle(
    last_alert_time: Optional[datetime],
    cooldown_minutes: Optional[float] = None,
    now: Optional[datetime] = None,
) -> bool:
    """True when the last alert of this type is younger than the cooldown."""
    if last_alert_time is None:
        return False
    cooldown_minutes = settings.ALERT_COOLDOWN_MINUTES if cooldown_minutes is None else cooldown_minutes
    now = now or datetime.utcnow()
    return now - last_alert_time < timedelta(minutes=cooldown_minutes)


def build_alert_message(risk_level: RiskLevel, risk_factors: Sequence[RiskFactor]) -> str:
    """Compose the alert text from the severity and the heaviest factor."""
    if risk_factors:
        top = max(risk_factors, key=lambda f: f.weight)
        factor_text = top.type.replace("_", " ").lower()
    else:
        factor_text = NO_FACTOR_TEXT
    template = ALERT_TEMPLATES.get(RiskLevel(risk_level), DEFAULT_TEMPLATE)
    return template.format(factor=factor_text)


async def get_last_alert_time(
    db: AsyncSession,
    worker_id: int,
    alert_type: AlertType,
) -> Optional[datetime]:
    """Timestamp of the newest alert of this type for the worker, if any."""
    result = await db.execute(
        select(Alert.created_at)
        .where(Alert.worker_id == worker_id, Alert.type == AlertType(alert_type).value)
        .order_by(Alert.created_at.desc(), Alert.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def raise_alert(
    db: AsyncSession,
    risk_level: RiskLevel,
    risk_factors: Sequence[RiskFactor],
    worker: Worker,
    site: Optional[str] = None,
    checkin_id: Optional[int] = None,
    alert_type: AlertType = AlertType.HEALTH_RISK,
    cooldown_minutes: Optional[float] = None,
    now: Optional[datetime] = None,
) -> AlertOutcome:
    """
    Create an OPEN alert unless the level is too low or the type is cooling down.
    
    Args:
        db: Database session.
        risk_level: Final risk level of the check-in.
        risk_factors: Ranked factors of the check-in.
        worker: Worker the check-in belongs to.
        site: Site name, worker's site when omitted.
        checkin_id: Health record that triggered the alert.
        alert_type: Alert category, throttled independently.
        cooldown_minutes: Override for settings.ALERT_COOLDOWN_MINUTES.
        now: Reference time for the cooldown and the created_at stamp.
        
    Returns:
        AlertOutcome; alert_created is False for non-alerting levels and
        for throttled candidates.
    """
    risk_level = RiskLevel(risk_level)
    if risk_level not in ALERTING_LEVELS:
        return AlertOutcome(alert_created=False)
    
    now = now or datetime.utcnow()
    last_alert_time = await get_last_alert_time(db, worker.id, alert_type)
    if should_throttle(last_alert_time, cooldown_minutes, now=now):
        logger.debug(
            f"Alert throttled for worker {worker.worker_id} ({AlertType(alert_type).value}) - "
            f"last alert at {last_alert_time.isoformat()}, cooldown active"
        )
        return AlertOutcome(alert_created=False, throttled=True)
    
    alert = Alert(
        worker_id=worker.id,
        checkin_id=checkin_id,
        severity=risk_level.value,
        type=AlertType(alert_type).value,
        message=build_alert_message(risk_level, risk_factors),
        risk_factor_types=[f.type for f in risk_factors],
        site=site if site is not None else (worker.site or ""),
        status=AlertStatus.OPEN.value,
        notifications_sent=[],
        created_at=now,
    )
    db.add(alert)
    await db.commit()
    await db.refresh(alert)
    
    logger.info(f"Alert {alert.id} created for worker {worker.worker_id}: {alert.severity} {alert.type}")
    return AlertOutcome(alert_created=True, alert=alert)


async def record_notifications(db: AsyncSession, alert: Alert, channels: List[str]) -> Alert:
    """Attach the confirmed notification channels to the alert."""
    alert.notifications_sent = list(channels)
    await db.commit()
    return alert


async def resolve_alert(
    db: AsyncSession,
    alert_id: int,
    resolved_by: str,
    now: Optional[datetime] = None,
) -> Alert:
    """
    Resolve an OPEN alert. Resolution is terminal.
    
    Raises:
        AlertNotFoundError: Unknown alert id.
        AlertAlreadyResolvedError: Alert was already resolved.
    """
    result = await db.execute(select(Alert).where(Alert.id == alert_id))
    alert = result.scalar_one_or_none()
    if alert is None:
        raise AlertNotFoundError(f"Alert {alert_id} not found")
    if alert.status == AlertStatus.RESOLVED.value:
        raise AlertAlreadyResolvedError(f"Alert {alert_id} is already resolved")
    
    alert.status = AlertStatus.RESOLVED.value
    alert.resolved_by = resolved_by
    alert.resolved_at = now or datetime.utcnow()
    await db.commit()
    
    logger.info(f"Alert {alert_id} resolved by {resolved_by}")
    return alert
