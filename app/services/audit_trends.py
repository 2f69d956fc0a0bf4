"""Derived metric calculations for audit history and case studies."""

import math
from typing import Dict, Optional

from app.models.audit_history import AuditHistory
from app.models.saved_audit import METRIC_FIELDS, SavedAudit
from app.schemas.audit import MetricChange


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def calculate_improvement(
    current: Optional[int],
    initial: Optional[int],
) -> Optional[int]:
    """Percentage change from initial to current, rounded.

    Returns None when either value is missing or zero.
    """
    if not current or not initial:
        return None
    return round_half_up((current - initial) / initial * 100)


def summarize_changes(
    baseline: Optional[AuditHistory],
    audit: SavedAudit,
) -> Dict[str, MetricChange]:
    """Compare the earliest snapshot with the audit's current metrics.

    Args:
        baseline: The first history snapshot, or None if there is none.
        audit: The saved audit holding the current snapshot.

    Returns:
        Mapping of metric name to its baseline/current comparison.
    """
    changes: Dict[str, MetricChange] = {}
    for field in METRIC_FIELDS:
        initial = getattr(baseline, field) if baseline is not None else None
        current = getattr(audit, field)
        absolute = None
        if initial is not None and current is not None:
            absolute = current - initial
        changes[field] = MetricChange(
            baseline=initial,
            current=current,
            absolute=absolute,
            percent=calculate_improvement(current, initial),
        )
    return changes
