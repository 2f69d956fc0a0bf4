"""API route definitions."""

from fastapi import APIRouter

from app.api.routes import audits, bron, dataforseo, domain_audit, health

router = APIRouter()

# Include all route modules
router.include_router(health.router, tags=["health"])
router.include_router(audits.router, tags=["audits"])
router.include_router(domain_audit.router, tags=["domain-audit"])
router.include_router(dataforseo.router, tags=["dataforseo"])
router.include_router(bron.router, tags=["bron"])
