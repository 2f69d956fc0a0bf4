"""Business logic services for the SEO audit backend."""

from app.services.ahrefs_service import AhrefsService
from app.services.audit_service import (
    AuditMetricsFetcher,
    AuditRefreshService,
    build_audit_refresh_service,
)
from app.services.audit_trends import calculate_improvement, summarize_changes
from app.services.bron_service import BronService
from app.services.dataforseo_service import DataForSEOError, DataForSEOService
from app.services.domains import clean_domain, slugify_domain

__all__ = [
    "AhrefsService",
    "AuditMetricsFetcher",
    "AuditRefreshService",
    "BronService",
    "DataForSEOError",
    "DataForSEOService",
    "build_audit_refresh_service",
    "calculate_improvement",
    "clean_domain",
    "slugify_domain",
    "summarize_changes",
]
