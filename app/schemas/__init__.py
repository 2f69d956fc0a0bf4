"""Pydantic schemas for API request/response validation."""

from app.schemas.audit import (
    AuditHistoryItem,
    AuditHistoryResponse,
    AuditMetrics,
    AuditResult,
    AuditRunRequest,
    AuditRunResponse,
    CaseStudySummary,
    ClaimRequest,
    MetricChange,
    SavedAuditListResponse,
    SavedAuditResponse,
)
from app.schemas.domain_audit import AhrefsMetrics, DomainAuditRequest, DomainAuditResponse
from app.schemas.proxy import BronRequest, DataForSEORequest

__all__ = [
    "AuditMetrics",
    "AuditRunRequest",
    "AuditResult",
    "AuditRunResponse",
    "SavedAuditResponse",
    "CaseStudySummary",
    "SavedAuditListResponse",
    "AuditHistoryItem",
    "AuditHistoryResponse",
    "MetricChange",
    "ClaimRequest",
    "DomainAuditRequest",
    "DomainAuditResponse",
    "AhrefsMetrics",
    "DataForSEORequest",
    "BronRequest",
]
