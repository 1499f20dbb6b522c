"""
Shared fixtures: vision observations, worker snapshots, an in-memory database.
"""

from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from safeguard.database import Base
from safeguard.models import Worker
from safeguard.schemas.scoring import WorkerContext
from safeguard.schemas.vision import (
    DustLevel, EnvironmentObservation, FaceObservation, LightingLevel, VisionObservation
)

NOW = datetime(2026, 3, 2, 8, 0, 0)


def make_vision(**overrides) -> VisionObservation:
    """Perfect-input observation; keyword overrides go to face or environment."""
    face = {
        "has_mask": True,
        "has_helmet": True,
        "fatigue_score": 0.1,
        "estimated_age": 30,
        "confidence": 0.95,
    }
    environment = {
        "dust_level": DustLevel.NONE,
        "lighting_level": LightingLevel.GOOD,
        "detected_hazards": [],
        "safety_equipment_visible": True,
        "image_clarity": 0.9,
    }
    for key, value in overrides.items():
        if key in face:
            face[key] = value
        elif key in environment:
            environment[key] = value
        else:
            raise KeyError(key)
    return VisionObservation(
        face=FaceObservation(**face),
        environment=EnvironmentObservation(**environment),
    )


def dangerous_vision() -> VisionObservation:
    return make_vision(
        has_mask=False,
        has_helmet=False,
        fatigue_score=0.9,
        dust_level=DustLevel.EXTREME,
        lighting_level=LightingLevel.LOW,
        detected_hazards=["fire", "chemical_spill"],
        safety_equipment_visible=False,
    )


@pytest.fixture
def perfect_vision():
    return make_vision()


@pytest.fixture
def worker_context():
    return WorkerContext(
        worker_id="worker_001",
        baseline_score=85,
        conditions=[],
        shift="morning",
        last_checkin=None,
        streak_days_low_risk=3,
    )


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    
    await engine.dispose()


@pytest_asyncio.fixture
async def worker(db_session):
    worker = Worker(
        worker_id="worker_001",
        name="Test Worker",
        email="test@safe.example",
        phone="+15550000001",
        device_tokens=["device-token-1"],
        department="Mining",
        site="Site A",
        shift="morning",
        baseline_score=85.0,
        conditions=[],
        streak_days_low_risk=3,
    )
    db_session.add(worker)
    await db_session.commit()
    await db_session.refresh(worker)
    return worker
