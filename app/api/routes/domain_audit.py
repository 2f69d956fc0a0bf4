"""Ahrefs domain audit endpoint."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.deps import AhrefsDep
from app.schemas.domain_audit import DomainAuditRequest, DomainAuditResponse
from app.services.domains import clean_domain

router = APIRouter()


@router.post("/domain-audit", response_model=DomainAuditResponse)
async def domain_audit(request: DomainAuditRequest, service: AhrefsDep):
    """Fetch Ahrefs metrics for a domain.

    A missing API key or an upstream failure is reported in
    ``ahrefsError`` with a 200 status so the page can still render.

    Args:
        request: Body with the domain to audit.
        service: Ahrefs client, None when no API key is configured.

    Returns:
        DomainAuditResponse with metrics or an error message.
    """
    try:
        domain = clean_domain(request.domain or "")
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Domain is required"})

    if service is None:
        return DomainAuditResponse(ahrefs=None, ahrefsError="Ahrefs API key not configured")

    return await service.audit_domain(domain)
