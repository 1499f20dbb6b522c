"""
Check-in endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from safeguard.database import get_db
from safeguard.models.health_record import HealthRecord
from safeguard.schemas.checkin import CheckinRequest, CheckinResponse
from safeguard.services.checkin_service import process_checkin, WorkerNotFoundError

router = APIRouter()


@router.post("", response_model=CheckinResponse, status_code=201)
async def submit_checkin(
    checkin: CheckinRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Score a check-in.
    
    Always returns a risk classification for a known worker; the remote
    model being down only changes `scoring_method`. HIGH and CRITICAL
    results raise an alert unless one of the same type is cooling down.
    """
    try:
        return await process_checkin(db, checkin)
    except WorkerNotFoundError:
        raise HTTPException(status_code=404, detail="Worker not found")


@router.get("/{checkin_id}")
async def get_checkin(
    checkin_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get the stored health record of a check-in."""
    result = await db.execute(
        select(HealthRecord).where(HealthRecord.id == checkin_id)
    )
    record = result.scalar_one_or_none()
    
    if not record:
        raise HTTPException(status_code=404, detail="Check-in not found")
    
    return {
        "id": record.id,
        "worker_id": record.worker_id,
        "shift_type": record.shift_type,
        "site": record.site,
        "health_score": record.health_score,
        "risk_level": record.risk_level,
        "risk_factors": record.risk_factors,
        "scoring_method": record.scoring_method,
        "model_confidence": record.model_confidence,
        "model_version": record.model_version,
        "vision_analysis": record.vision_analysis,
        "recommendations": record.recommendations,
        "alert_sent": record.alert_sent,
        "alert_id": record.alert_id,
        "created_at": record.created_at,
    }
