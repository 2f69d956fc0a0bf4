"""Audit refresh and audit read endpoints."""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AuditRefreshDep, DatabaseDep
from app.models.audit_history import AuditHistory
from app.models.saved_audit import SavedAudit
from app.schemas.audit import (
    AuditHistoryItem,
    AuditHistoryResponse,
    AuditRunRequest,
    AuditRunResponse,
    CaseStudySummary,
    ClaimRequest,
    SavedAuditListResponse,
    SavedAuditResponse,
)
from app.services.audit_trends import calculate_improvement, summarize_changes

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/auto-seo-audit",
    response_model=AuditRunResponse,
    openapi_extra={
        "requestBody": {
            "required": False,
            "content": {
                "application/json": {"schema": AuditRunRequest.model_json_schema()},
            },
        }
    },
)
async def run_auto_seo_audit(http_request: Request, service: AuditRefreshDep):
    """Refresh audit metrics for one domain or for stale audits.

    A body with ``domain`` audits that domain and upserts it. An empty or
    unparsable body (scheduled invocation) refreshes up to the configured
    number of stale audits.

    Args:
        http_request: Raw request; the optional ``{domain, mode}`` body is
            read from it.
        service: Refresh service, None when credentials are missing.

    Returns:
        AuditRunResponse with per-domain results.
    """
    request = await _read_run_request(http_request)

    if service is None:
        return JSONResponse(
            status_code=500,
            content={"error": "Missing DataForSEO credentials"},
        )

    if request.domain:
        return await service.refresh_domain(request.domain)

    if request.mode == "single":
        return JSONResponse(status_code=400, content={"error": "Domain is required"})

    try:
        return await service.refresh_stale()
    except SQLAlchemyError as e:
        logger.error(f"[AuditRefresh] Error fetching stale audits: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch stale audits"},
        )


@router.get("/audits", response_model=SavedAuditListResponse)
async def list_audits(
    db: DatabaseDep,
    category: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> SavedAuditListResponse:
    """List saved audits newest first with their progress since baseline.

    Args:
        db: Database session.
        category: Optional category filter.
        limit: Page size.
        offset: Page offset.

    Returns:
        SavedAuditListResponse with baseline and improvement per audit.
    """
    if category is not None and category not in SavedAudit.VALID_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")

    query = select(SavedAudit)
    count_query = select(func.count()).select_from(SavedAudit)
    if category is not None:
        query = query.where(SavedAudit.category == category)
        count_query = count_query.where(SavedAudit.category == category)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(
        query.order_by(SavedAudit.created_at.desc()).limit(limit).offset(offset)
    )
    audits = result.scalars().all()
    baselines = await _first_snapshots(db, [audit.domain for audit in audits])

    summaries: List[CaseStudySummary] = []
    for audit in audits:
        baseline = baselines.get(audit.domain)
        initial_dr = baseline.domain_rating if baseline else None
        initial_traffic = baseline.organic_traffic if baseline else None
        summaries.append(
            CaseStudySummary(
                **SavedAuditResponse.model_validate(audit).model_dump(),
                initial_domain_rating=initial_dr,
                initial_organic_traffic=initial_traffic,
                domain_rating_improvement=calculate_improvement(audit.domain_rating, initial_dr),
                organic_traffic_improvement=calculate_improvement(
                    audit.organic_traffic, initial_traffic
                ),
            )
        )

    return SavedAuditListResponse(audits=summaries, total=total)


@router.get("/audits/{slug}", response_model=SavedAuditResponse)
async def get_audit(slug: str, db: DatabaseDep) -> SavedAuditResponse:
    """Get one saved audit by slug.

    Raises:
        HTTPException: If the audit does not exist.
    """
    audit = await _get_audit_or_404(db, slug)
    return SavedAuditResponse.model_validate(audit)


@router.get("/audits/{slug}/history", response_model=AuditHistoryResponse)
async def get_audit_history(slug: str, db: DatabaseDep) -> AuditHistoryResponse:
    """Get all history snapshots of an audit, oldest first.

    The change summary compares the first snapshot with the audit's
    current metrics.

    Raises:
        HTTPException: If the audit does not exist.
    """
    audit = await _get_audit_or_404(db, slug)

    result = await db.execute(
        select(AuditHistory)
        .where(AuditHistory.domain == audit.domain)
        .order_by(AuditHistory.snapshot_at.asc())
    )
    snapshots = result.scalars().all()
    baseline = snapshots[0] if snapshots else None

    return AuditHistoryResponse(
        slug=audit.slug,
        domain=audit.domain,
        snapshots=[AuditHistoryItem.model_validate(s) for s in snapshots],
        total=len(snapshots),
        baseline_at=baseline.snapshot_at if baseline else None,
        changes=summarize_changes(baseline, audit),
    )


@router.post("/audits/{slug}/claim", response_model=SavedAuditResponse)
async def claim_audit(
    slug: str,
    request: ClaimRequest,
    db: DatabaseDep,
) -> SavedAuditResponse:
    """Claim an audit by attaching the submitter's email.

    Raises:
        HTTPException: 404 if the audit does not exist, 409 if it is
            already claimed.
    """
    audit = await _get_audit_or_404(db, slug)
    if audit.is_claimed:
        raise HTTPException(status_code=409, detail="Audit already claimed")

    audit.submitter_email = request.email
    await db.commit()
    await db.refresh(audit)
    return SavedAuditResponse.model_validate(audit)


async def _get_audit_or_404(db: AsyncSession, slug: str) -> SavedAudit:
    """Load an audit by slug or raise 404."""
    result = await db.execute(select(SavedAudit).where(SavedAudit.slug == slug))
    audit = result.scalar_one_or_none()
    if not audit:
        raise HTTPException(status_code=404, detail="Audit not found")
    return audit


async def _first_snapshots(db: AsyncSession, domains: List[str]) -> Dict[str, AuditHistory]:
    """Return the earliest history snapshot per domain in one query."""
    if not domains:
        return {}

    first_seen = (
        select(
            AuditHistory.domain.label("domain"),
            func.min(AuditHistory.snapshot_at).label("first_at"),
        )
        .where(AuditHistory.domain.in_(domains))
        .group_by(AuditHistory.domain)
        .subquery()
    )
    result = await db.execute(
        select(AuditHistory)
        .join(
            first_seen,
            and_(
                AuditHistory.domain == first_seen.c.domain,
                AuditHistory.snapshot_at == first_seen.c.first_at,
            ),
        )
        .order_by(AuditHistory.id)
    )

    baselines: Dict[str, AuditHistory] = {}
    for snapshot in result.scalars():
        baselines.setdefault(snapshot.domain, snapshot)
    return baselines


async def _read_run_request(http_request: Request) -> AuditRunRequest:
    """Parse the optional refresh body.

    A missing, non-JSON or non-object body counts as an empty one.

    Raises:
        RequestValidationError: If the body is an object with invalid fields.
    """
    try:
        payload = await http_request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}

    try:
        return AuditRunRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=payload)
