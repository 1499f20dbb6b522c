"""
Alert listing and resolution endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from typing import Optional

from safeguard.database import get_db
from safeguard.models.alert import Alert
from safeguard.models.worker import Worker
from safeguard.schemas.alert import AlertResponse, AlertListResponse, AlertResolveRequest
from safeguard.services.alert_service import (
    resolve_alert, AlertNotFoundError, AlertAlreadyResolvedError
)

router = APIRouter()


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    worker_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    db: AsyncSession = Depends(get_db)
):
    """
    List alerts, newest first.
    
    Filters:
    - worker_id: external worker id
    - status: OPEN or RESOLVED
    """
    conditions = []
    if worker_id:
        conditions.append(Worker.worker_id == worker_id)
    if status:
        conditions.append(Alert.status == status.upper())
    
    query = select(Alert).join(Worker)
    count_query = select(func.count()).select_from(Alert).join(Worker)
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    
    total = (await db.execute(count_query)).scalar()
    result = await db.execute(
        query.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit)
    )
    
    return AlertListResponse(
        items=[AlertResponse.model_validate(a) for a in result.scalars().all()],
        total=total
    )


@router.post("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve(
    alert_id: int,
    body: AlertResolveRequest,
    db: AsyncSession = Depends(get_db)
):
    """Resolve an OPEN alert. Resolved alerts cannot be reopened."""
    try:
        alert = await resolve_alert(db, alert_id, body.resolved_by)
    except AlertNotFoundError:
        raise HTTPException(status_code=404, detail="Alert not found")
    except AlertAlreadyResolvedError:
        raise HTTPException(status_code=409, detail="Alert already resolved")
    
    return AlertResponse.model_validate(alert)
