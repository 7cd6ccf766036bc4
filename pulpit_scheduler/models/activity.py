"""
ActivityLog model.

Audit trail of changes made through the core operations.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pulpit_scheduler.models.base import BaseModel, get_json_type


ACTIVITY_KINDS = (
    "month_generated",
    "service_created",
    "service_updated",
    "assignment_changed",
    "reading_saved",
    "reading_deleted",
    "playlist_changed",
)


class ActivityLog(BaseModel):
    """A single audited change."""

    __tablename__ = "activity_log"

    actor_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="User id from the identity provider (NULL for system actions)"
    )

    kind: Mapped[str] = mapped_column(String(40), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    service_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("services.id", ondelete="SET NULL"),
        nullable=True,
    )

    details: Mapped[dict] = mapped_column(
        get_json_type(),
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        Index("idx_activity_kind", "kind"),
        Index("idx_activity_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(kind='{self.kind}', actor={self.actor_id})>"
