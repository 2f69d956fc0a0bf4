"""Pydantic schemas for audit refresh and audit read endpoints."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuditMetrics(BaseModel):
    """Normalized SEO metric bundle for one domain.

    Every field is independently nullable: a metric whose upstream
    source failed is left as None.
    """

    domain_rating: Optional[int] = None
    organic_traffic: Optional[int] = None
    organic_keywords: Optional[int] = None
    backlinks: Optional[int] = None
    referring_domains: Optional[int] = None
    traffic_value: Optional[int] = None
    rank_score: Optional[int] = None


class AuditRunRequest(BaseModel):
    """Request body for the audit refresh endpoint.

    Attributes:
        domain: Domain to audit. Absent means a scheduled batch run.
        mode: Optional explicit mode, ``single`` or ``batch``.
    """

    domain: Optional[str] = Field(default=None, max_length=2048)
    mode: Optional[str] = None

    @field_validator("domain")
    @classmethod
    def blank_domain_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty domain string as absent."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        """Validate the mode value."""
        if v is not None and v not in {"single", "batch"}:
            raise ValueError("mode must be 'single' or 'batch'")
        return v


class AuditResult(BaseModel):
    """Outcome of auditing one domain."""

    domain: str
    success: bool
    error: Optional[str] = None
    metrics: Optional[AuditMetrics] = None


class AuditRunResponse(BaseModel):
    """Response of a single-domain or batch refresh run."""

    success: bool = True
    processed: int
    results: List[AuditResult]


class SavedAuditResponse(BaseModel):
    """A saved audit with its current metric snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    domain: str
    slug: str
    category: str
    site_title: Optional[str] = None
    site_description: Optional[str] = None
    favicon_url: Optional[str] = None
    domain_rating: Optional[int] = None
    organic_traffic: Optional[int] = None
    organic_keywords: Optional[int] = None
    backlinks: Optional[int] = None
    referring_domains: Optional[int] = None
    traffic_value: Optional[int] = None
    rank_score: Optional[int] = None
    is_claimed: bool = False
    created_at: datetime
    updated_at: datetime


class CaseStudySummary(SavedAuditResponse):
    """A saved audit with its baseline and improvement percentages."""

    initial_domain_rating: Optional[int] = None
    initial_organic_traffic: Optional[int] = None
    domain_rating_improvement: Optional[int] = None
    organic_traffic_improvement: Optional[int] = None


class SavedAuditListResponse(BaseModel):
    """Response containing a page of saved audits."""

    audits: List[CaseStudySummary]
    total: int


class AuditHistoryItem(BaseModel):
    """A single history snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    domain: str
    domain_rating: Optional[int] = None
    organic_traffic: Optional[int] = None
    organic_keywords: Optional[int] = None
    backlinks: Optional[int] = None
    referring_domains: Optional[int] = None
    traffic_value: Optional[int] = None
    rank_score: Optional[int] = None
    snapshot_at: datetime
    source: str


class MetricChange(BaseModel):
    """Baseline vs current value of one metric."""

    baseline: Optional[int] = None
    current: Optional[int] = None
    absolute: Optional[int] = None
    percent: Optional[int] = None


class AuditHistoryResponse(BaseModel):
    """History series for one audit plus a baseline comparison."""

    slug: str
    domain: str
    snapshots: List[AuditHistoryItem]
    total: int
    baseline_at: Optional[datetime] = None
    changes: Dict[str, MetricChange]


class ClaimRequest(BaseModel):
    """Request body for claiming an audit."""

    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email shape check."""
        v = v.strip().lower()
        local, _, host = v.partition("@")
        if not local or "." not in host:
            raise ValueError("Invalid email address")
        return v
