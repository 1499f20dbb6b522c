"""
SafeGuard Check-in Risk Service
Main FastAPI Application Entry Point
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from safeguard.database import init_db
from safeguard.routers import workers, checkins, alerts
from safeguard.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    await init_db()
    
    yield
    
    # Shutdown (cleanup if needed)


app = FastAPI(
    title="SafeGuard Check-in Risk Service",
    description="Shift check-in risk scoring with layered inference fallback and alert dispatch",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(workers.router, prefix="/api/workers", tags=["Workers"])
app.include_router(checkins.router, prefix="/api/checkins", tags=["Check-ins"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "running",
        "message": "SafeGuard Check-in Risk Service API",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected",
        "remote_model": "configured" if settings.REMOTE_MODEL_ENDPOINT else "disabled"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
