"""
Worker registration and lookup endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from safeguard.database import get_db
from safeguard.models.worker import Worker
from safeguard.schemas.worker import WorkerCreate, WorkerResponse
from safeguard.services.checkin_service import get_worker, WorkerNotFoundError

router = APIRouter()


@router.post("", response_model=WorkerResponse, status_code=201)
async def create_worker(
    worker_data: WorkerCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a worker with contact details and a health profile."""
    existing = await db.execute(
        select(Worker).where(Worker.worker_id == worker_data.worker_id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Worker already exists")
    
    worker = Worker(**worker_data.model_dump(mode="json"))
    db.add(worker)
    await db.commit()
    await db.refresh(worker)
    
    return WorkerResponse.model_validate(worker)


@router.get("/{worker_id}", response_model=WorkerResponse)
async def read_worker(
    worker_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a worker and their cached risk level."""
    try:
        worker = await get_worker(db, worker_id)
    except WorkerNotFoundError:
        raise HTTPException(status_code=404, detail="Worker not found")
    
    return WorkerResponse.model_validate(worker)
