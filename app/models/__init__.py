"""SQLAlchemy ORM models for the SEO audit backend."""

from app.models.audit_history import AuditHistory
from app.models.saved_audit import METRIC_FIELDS, SavedAudit

__all__ = [
    "AuditHistory",
    "METRIC_FIELDS",
    "SavedAudit",
]
