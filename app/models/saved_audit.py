"""SavedAudit model holding the current SEO metric snapshot for a domain."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.audit_history import AuditHistory


METRIC_FIELDS = (
    "domain_rating",
    "organic_traffic",
    "organic_keywords",
    "backlinks",
    "referring_domains",
    "traffic_value",
    "rank_score",
)


class SavedAudit(Base):
    """The current-state SEO record for one tracked domain.

    Rows are created on the first audit request for a domain and updated
    in place on every refresh. They are never hard-deleted.

    Attributes:
        id: Unique identifier (UUID).
        domain: Cleaned domain name (e.g. ``example.com``).
        slug: URL-safe key derived from the domain, unique.
        category: Business category used by the case-study listing.
        domain_rating: 0-100 authority score.
        organic_traffic: Estimated monthly organic visits.
        organic_keywords: Number of ranking organic keywords.
        backlinks: Total backlinks.
        referring_domains: Unique referring domains.
        traffic_value: Estimated value of organic traffic.
        rank_score: Raw upstream rank value.
        submitter_email: Email of whoever claimed the audit, if any.
        created_at: When the audit was first saved.
        updated_at: When metrics were last refreshed.
    """

    __tablename__ = "saved_audits"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    category: Mapped[str] = mapped_column(
        String(32),
        default="other",
        server_default="other",
        nullable=False,
    )

    # Website profile info
    site_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    site_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    favicon_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Current metric snapshot
    domain_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    organic_traffic: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    organic_keywords: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    backlinks: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    referring_domains: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    traffic_value: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    rank_score: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    submitter_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    history: Mapped[List["AuditHistory"]] = relationship(
        "AuditHistory",
        back_populates="audit",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_saved_audits_domain", "domain"),
        Index("ix_saved_audits_category", "category"),
        Index("ix_saved_audits_updated_at", "updated_at"),
    )

    # Valid category values
    VALID_CATEGORIES = {
        "ecommerce",
        "saas",
        "local_business",
        "blog_media",
        "professional_services",
        "healthcare",
        "finance",
        "education",
        "real_estate",
        "hospitality",
        "nonprofit",
        "technology",
        "other",
    }

    def __repr__(self) -> str:
        """String representation of the saved audit."""
        return f"<SavedAudit(slug={self.slug}, domain={self.domain})>"

    @property
    def is_claimed(self) -> bool:
        """Check if someone has claimed this audit."""
        return bool(self.submitter_email)

    def metrics(self) -> Dict[str, Optional[int]]:
        """Return the current metric snapshot as a dict."""
        return {field: getattr(self, field) for field in METRIC_FIELDS}

    def apply_metrics(self, metrics: Dict[str, Any], refreshed_at: datetime) -> None:
        """Overwrite the current metric snapshot and bump updated_at."""
        for field in METRIC_FIELDS:
            setattr(self, field, metrics.get(field))
        self.updated_at = refreshed_at
