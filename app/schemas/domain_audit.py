"""Pydantic schemas for the Ahrefs domain audit endpoint."""

from typing import Optional

from pydantic import BaseModel


class DomainAuditRequest(BaseModel):
    """Request body for an Ahrefs domain audit."""

    domain: Optional[str] = None


class AhrefsMetrics(BaseModel):
    """Ahrefs metrics in the shape the audit pages expect."""

    domainRating: float
    backlinks: int
    referringDomains: int
    organicTraffic: float
    organicKeywords: int


class DomainAuditResponse(BaseModel):
    """Ahrefs result or the reason it is missing."""

    ahrefs: Optional[AhrefsMetrics] = None
    ahrefsError: Optional[str] = None
