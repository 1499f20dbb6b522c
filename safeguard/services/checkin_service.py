"""
Check-in processing service.

Runs one check-in end to end:
    worker snapshot -> inference -> recommendations -> health record
    -> worker profile update -> alert throttle/builder -> notifications

The health record and worker profile are committed before any alert
work starts, so a notification failure or a caller timeout afterwards
never loses the scored check-in.
"""

import logging
import time
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safeguard.models import Worker, HealthRecord
from safeguard.models.alert import AlertType
from safeguard.schemas.checkin import (
    CheckinRequest, CheckinResponse, EnvironmentStatus, PPEStatus
)
from safeguard.schemas.scoring import RiskLevel, WorkerContext
from safeguard.services.alert_service import raise_alert, record_notifications
from safeguard.services.inference_service import run_inference
from safeguard.services.notification_service import dispatch_alert_notifications
from safeguard.services.recommendation_service import generate_recommendations
from safeguard.services.remote_model_client import get_remote_client

logger = logging.getLogger(__name__)


class WorkerNotFoundError(Exception):
    """Raised when a check-in references an unknown worker."""


async def get_worker(db: AsyncSession, worker_id: str) -> Worker:
    """Load a worker by its external id."""
    result = await db.execute(select(Worker).where(Worker.worker_id == worker_id))
    worker = result.scalar_one_or_none()
    if worker is None:
        raise WorkerNotFoundError(f"Worker {worker_id} not found")
    return worker


async def get_previous_score(db: AsyncSession, worker: Worker) -> float:
    """Score of the worker's latest check-in, or the baseline for a first check-in."""
    result = await db.execute(
        select(HealthRecord.health_score)
        .where(HealthRecord.worker_id == worker.id)
        .order_by(HealthRecord.created_at.desc(), HealthRecord.id.desc())
        .limit(1)
    )
    previous = result.scalar_one_or_none()
    return float(previous) if previous is not None else float(worker.baseline_score)


async def process_checkin(
    db: AsyncSession,
    request: CheckinRequest,
    remote_client=None,
    gateway=None,
    now: Optional[datetime] = None,
) -> CheckinResponse:
    """
    Score a check-in, persist it and raise/dispatch an alert when needed.
    
    Args:
        db: Database session.
        request: Validated check-in request.
        remote_client: Remote scoring client; the shared client is used
            when omitted and an endpoint is configured.
        gateway: Notification gateway; the shared gateway when omitted.
        now: Reference time (defaults to utcnow).
        
    Raises:
        WorkerNotFoundError: Unknown worker id.
    """
    started = time.monotonic()
    now = now or datetime.utcnow()
    logger.info(f"Check-in started for worker {request.worker_id}")
    
    worker = await get_worker(db, request.worker_id)
    context = WorkerContext.model_validate(worker)
    previous_score = await get_previous_score(db, worker)
    
    if remote_client is None:
        shared = get_remote_client()
        remote_client = shared if shared.enabled else None
    
    result = await run_inference(
        request.vision,
        context,
        request.shift_type,
        previous_score=previous_score,
        remote_client=remote_client,
        now=now,
    )
    recommendations = generate_recommendations(result, request.vision, context, request.shift_type)
    
    record = HealthRecord(
        worker_id=worker.id,
        shift_type=request.shift_type.value,
        site=worker.site or "",
        latitude=request.location.lat if request.location else None,
        longitude=request.location.lng if request.location else None,
        vision_analysis=request.vision.model_dump(mode="json"),
        previous_score=previous_score,
        health_score=result.health_score,
        risk_level=result.risk_level.value,
        risk_factors=[f.model_dump(mode="json") for f in result.risk_factors],
        scoring_method=result.scoring_method.value,
        model_confidence=result.confidence,
        model_version=result.model_version,
        recommendations=recommendations,
        alert_sent=False,
        created_at=now,
    )
    db.add(record)
    
    # Update cached health profile
    worker.last_checkin = now
    worker.current_risk_level = result.risk_level.value
    if result.risk_level == RiskLevel.LOW:
        worker.streak_days_low_risk = (worker.streak_days_low_risk or 0) + 1
    else:
        worker.streak_days_low_risk = 0
    
    await db.commit()
    await db.refresh(record)
    
    outcome = await raise_alert(
        db,
        result.risk_level,
        result.risk_factors,
        worker,
        checkin_id=record.id,
        alert_type=AlertType.HEALTH_RISK,
        now=now,
    )
    
    channels = []
    if outcome.alert_created:
        alert = outcome.alert
        channels = await dispatch_alert_notifications(worker, alert, gateway=gateway)
        await record_notifications(db, alert, channels)
        record.alert_sent = True
        record.alert_id = alert.id
        await db.commit()
        logger.info(f"Alert {alert.id} dispatched via {channels} ({result.risk_level.value})")
    
    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"Check-in completed for worker {request.worker_id}: score={result.health_score} "
        f"risk={result.risk_level.value} method={result.scoring_method.value} duration={duration_ms}ms"
    )
    
    return CheckinResponse(
        checkin_id=record.id,
        worker_id=worker.worker_id,
        health_score=result.health_score,
        risk_level=result.risk_level.value,
        scoring_method=result.scoring_method.value,
        risk_factors=result.risk_factors,
        recommendations=recommendations,
        alert_triggered=outcome.alert_created,
        alert_id=outcome.alert.id if outcome.alert_created else None,
        notifications_sent=channels,
        ppe_status=PPEStatus(
            has_helmet=request.vision.face.has_helmet,
            has_mask=request.vision.face.has_mask,
        ),
        environment_status=EnvironmentStatus(
            dust_level=request.vision.environment.dust_level.value,
            lighting_level=request.vision.environment.lighting_level.value,
            detected_hazards=request.vision.environment.detected_hazards,
        ),
        created_at=record.created_at,
    )
