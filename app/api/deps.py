"""FastAPI dependencies for route handlers."""

import logging
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.services.ahrefs_service import AhrefsService
from app.services.audit_service import AuditRefreshService, build_audit_refresh_service
from app.services.bron_service import BronService
from app.services.dataforseo_service import DataForSEOService

logger = logging.getLogger(__name__)

# Type alias for database session dependency
DatabaseDep = Annotated[AsyncSession, Depends(get_db)]


async def get_audit_refresh_service() -> AsyncGenerator[Optional[AuditRefreshService], None]:
    """Provide a refresh service, or None when DataForSEO is not configured."""
    try:
        service = build_audit_refresh_service()
    except ValueError as e:
        logger.error(f"[AuditRefresh] Missing DataForSEO credentials: {e}")
        yield None
        return

    try:
        yield service
    finally:
        await service.aclose()


AuditRefreshDep = Annotated[Optional[AuditRefreshService], Depends(get_audit_refresh_service)]


def get_ahrefs_service() -> Optional[AhrefsService]:
    """Provide the Ahrefs client, or None when no API key is set."""
    try:
        return AhrefsService()
    except ValueError as e:
        logger.error(f"[Ahrefs] {e}")
        return None


async def get_dataforseo_service() -> AsyncGenerator[Optional[DataForSEOService], None]:
    """Provide the DataForSEO client, or None when credentials are missing."""
    try:
        service = DataForSEOService()
    except ValueError as e:
        logger.error(f"[DataForSEO] {e}")
        yield None
        return

    try:
        yield service
    finally:
        await service.aclose()


def get_bron_service() -> Optional[BronService]:
    """Provide the BRON feed client, or None when credentials are missing."""
    try:
        return BronService()
    except ValueError as e:
        logger.error(f"[BRON] {e}")
        return None


AhrefsDep = Annotated[Optional[AhrefsService], Depends(get_ahrefs_service)]
DataForSEODep = Annotated[Optional[DataForSEOService], Depends(get_dataforseo_service)]
BronDep = Annotated[Optional[BronService], Depends(get_bron_service)]
