"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from sqlalchemy import text

from app.api.deps import DatabaseDep
from app.core.config import settings
from app.services.scheduler import scheduler_service

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema.

    Attributes:
        status: Overall health status.
        database: Database connection status.
        scheduler: Whether the audit refresh scheduler is running.
        dataforseo_configured: Whether audit refreshes can reach DataForSEO.
        timestamp: Current server time in ISO format.
    """

    status: str
    database: str
    scheduler: str
    dataforseo_configured: bool
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DatabaseDep) -> HealthResponse:
    """Check database connectivity and audit refresh readiness.

    Raises:
        HTTPException: If database is unreachable.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}",
        )

    return HealthResponse(
        status="healthy",
        database="connected",
        scheduler="running" if scheduler_service.scheduler.running else "stopped",
        dataforseo_configured=settings.has_dataforseo_credentials,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe endpoint."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(db: DatabaseDep) -> dict:
    """Readiness probe: the database must answer.

    Raises:
        HTTPException: If not ready to accept traffic.
    """
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception:
        raise HTTPException(status_code=503, detail="Not ready")
