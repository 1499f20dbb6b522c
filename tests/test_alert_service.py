"""
Tests for alert throttling, composition and resolution.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, func

from safeguard.models.alert import Alert, AlertStatus, AlertType
from safeguard.schemas.scoring import RiskFactor, RiskLevel, ScoringMethod, Severity
from safeguard.services.alert_service import (
    AlertAlreadyResolvedError, AlertNotFoundError, build_alert_message,
    get_last_alert_time, raise_alert, resolve_alert, should_throttle
)

from tests.conftest import NOW


def factors():
    return [
        RiskFactor(type="NO_MASK", severity=Severity.HIGH, weight=0.35, source=ScoringMethod.ENSEMBLE),
        RiskFactor(type="DUST_LEVEL_EXTREME", severity=Severity.HIGH, weight=0.2, source=ScoringMethod.ENSEMBLE),
    ]


async def count_alerts(db, worker):
    result = await db.execute(select(func.count()).select_from(Alert).where(Alert.worker_id == worker.id))
    return result.scalar()


def test_should_throttle():
    assert should_throttle(None, 30, now=NOW) is False
    assert should_throttle(NOW - timedelta(minutes=29), 30, now=NOW) is True
    assert should_throttle(NOW - timedelta(minutes=30), 30, now=NOW) is False
    assert should_throttle(NOW - timedelta(hours=2), 30, now=NOW) is False


def test_alert_message_uses_heaviest_factor():
    reversed_factors = list(reversed(factors()))
    assert build_alert_message(RiskLevel.CRITICAL, reversed_factors) == \
        "CRITICAL: Immediate action required. Worker flagged for no mask."
    assert build_alert_message(RiskLevel.HIGH, factors()) == \
        "HIGH RISK: Worker flagged for no mask. Supervisor attention needed."
    assert build_alert_message(RiskLevel.HIGH, []) == \
        "HIGH RISK: Worker flagged for multiple risk factors. Supervisor attention needed."


@pytest.mark.parametrize("level", [RiskLevel.LOW, RiskLevel.MEDIUM])
async def test_low_levels_never_alert(db_session, worker, level):
    outcome = await raise_alert(db_session, level, factors(), worker, now=NOW)
    assert outcome.alert_created is False
    assert outcome.throttled is False
    assert await count_alerts(db_session, worker) == 0


async def test_alert_created_open_with_metadata(db_session, worker):
    outcome = await raise_alert(db_session, RiskLevel.CRITICAL, factors(), worker, checkin_id=7, now=NOW)
    
    assert outcome.alert_created is True
    alert = outcome.alert
    assert alert.id is not None
    assert alert.status == AlertStatus.OPEN.value
    assert alert.severity == "CRITICAL"
    assert alert.type == AlertType.HEALTH_RISK.value
    assert alert.risk_factor_types == ["NO_MASK", "DUST_LEVEL_EXTREME"]
    assert alert.site == "Site A"
    assert alert.checkin_id == 7
    assert alert.notifications_sent == []
    assert await get_last_alert_time(db_session, worker.id, AlertType.HEALTH_RISK) == NOW


async def test_second_candidate_within_cooldown_is_throttled(db_session, worker):
    first = await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW)
    second = await raise_alert(
        db_session, RiskLevel.CRITICAL, factors(), worker, now=NOW + timedelta(minutes=10)
    )
    
    assert first.alert_created is True
    assert second.alert_created is False
    assert second.throttled is True
    assert await count_alerts(db_session, worker) == 1


async def test_candidate_after_cooldown_creates_new_alert(db_session, worker):
    await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW)
    later = await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW + timedelta(minutes=31))
    assert later.alert_created is True
    assert await count_alerts(db_session, worker) == 2


async def test_cooldown_is_per_alert_type(db_session, worker):
    await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW)
    other = await raise_alert(
        db_session, RiskLevel.HIGH, factors(), worker,
        alert_type=AlertType.PPE_VIOLATION, now=NOW + timedelta(minutes=1),
    )
    assert other.alert_created is True


async def test_configured_cooldown_override(db_session, worker):
    await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW)
    outcome = await raise_alert(
        db_session, RiskLevel.HIGH, factors(), worker, cooldown_minutes=5, now=NOW + timedelta(minutes=6)
    )
    assert outcome.alert_created is True


async def test_resolve_alert_is_terminal(db_session, worker):
    outcome = await raise_alert(db_session, RiskLevel.HIGH, factors(), worker, now=NOW)
    
    resolved = await resolve_alert(db_session, outcome.alert.id, "supervisor@site", now=NOW)
    assert resolved.status == AlertStatus.RESOLVED.value
    assert resolved.resolved_by == "supervisor@site"
    assert resolved.resolved_at == NOW
    
    with pytest.raises(AlertAlreadyResolvedError):
        await resolve_alert(db_session, outcome.alert.id, "someone-else")


async def test_resolve_unknown_alert(db_session):
    with pytest.raises(AlertNotFoundError):
        await resolve_alert(db_session, 999, "supervisor")
