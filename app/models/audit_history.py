"""AuditHistory model for point-in-time metric snapshots."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.saved_audit import SavedAudit


class AuditHistory(Base):
    """An append-only copy of an audit's metrics at one point in time.

    audit_id is nullable so a snapshot can still be recorded when the
    parent lookup misses.

    Attributes:
        id: Unique identifier (UUID).
        audit_id: Reference to the saved audit.
        domain: Domain the snapshot belongs to.
        snapshot_at: When the metrics were captured.
        source: ``manual`` for single-domain refreshes, ``auto`` for batch.
    """

    __tablename__ = "audit_history"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    audit_id: Mapped[Optional[UUID]] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("saved_audits.id", ondelete="CASCADE"),
        nullable=True,
    )
    domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    domain_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    organic_traffic: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    organic_keywords: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    backlinks: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    referring_domains: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    traffic_value: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    rank_score: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    snapshot_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    source: Mapped[str] = mapped_column(
        String(20),
        default="auto",
        server_default="auto",
        nullable=False,
    )

    # Relationships
    audit: Mapped[Optional["SavedAudit"]] = relationship(
        "SavedAudit",
        back_populates="history",
    )

    __table_args__ = (
        Index("ix_audit_history_audit_id_snapshot_at", "audit_id", "snapshot_at"),
        Index("ix_audit_history_domain", "domain"),
    )

    SOURCE_MANUAL = "manual"
    SOURCE_AUTO = "auto"

    VALID_SOURCES = {SOURCE_MANUAL, SOURCE_AUTO}

    def __repr__(self) -> str:
        """String representation of the snapshot."""
        return (
            f"<AuditHistory(domain={self.domain}, snapshot_at={self.snapshot_at}, "
            f"source={self.source})>"
        )
