"""
Activity log service.

record_activity() adds an audit row to the caller's open transaction so the
log entry commits or rolls back together with the change it describes.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulpit_scheduler.models.activity import ActivityLog, ACTIVITY_KINDS
from pulpit_scheduler.services.exceptions import ValidationError
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)


@dataclass
class ActivityPage:
    """One page of the activity log."""

    items: Sequence[ActivityLog]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


def record_activity(
    session: Session,
    kind: str,
    description: str,
    actor_id: Optional[str] = None,
    service_id: Optional[UUID] = None,
    details: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """
    Add an activity row to the session without committing.

    Args:
        session: Database session (inside the caller's unit of work)
        kind: One of ACTIVITY_KINDS
        description: Human-readable summary
        actor_id: Identity-provider user id, if known
        service_id: Service the change touched
        details: Extra structured data

    Returns:
        The pending ActivityLog row
    """
    if kind not in ACTIVITY_KINDS:
        raise ValueError(f"Unknown activity kind: {kind}")

    entry = ActivityLog(
        actor_id=actor_id,
        kind=kind,
        description=description,
        service_id=service_id,
        details=details or {},
    )
    session.add(entry)
    return entry


@returns_result("list_activity")
def list_activity(
    session: Session,
    page: int = 1,
    limit: int = 20,
    kind: Optional[str] = None,
) -> ActivityPage:
    """
    Page through the activity log, newest first.

    Args:
        session: Database session
        page: 1-based page number
        limit: Page size
        kind: Only this kind of activity
    """
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive", page=page, limit=limit)
    if kind is not None and kind not in ACTIVITY_KINDS:
        raise ValidationError(f"Unknown activity kind: {kind}", kind=kind)

    conditions = []
    if kind:
        conditions.append(ActivityLog.kind == kind)

    total = session.scalar(select(func.count(ActivityLog.id)).where(*conditions)) or 0

    stmt = (
        select(ActivityLog)
        .where(*conditions)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return ActivityPage(
        items=list(session.scalars(stmt).all()),
        total=total,
        page=page,
        limit=limit,
    )
