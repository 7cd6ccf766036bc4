"""
Service and MonthGeneration models.

Entities:
- Service: A single dated occurrence of a gathering, with its role assignments
- MonthGeneration: Marker row written when a month is generated
"""

import uuid
from datetime import date, datetime, time
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulpit_scheduler.models.base import Base, BaseModel

if TYPE_CHECKING:
    from pulpit_scheduler.models.reference import Person, ServiceType
    from pulpit_scheduler.models.readings import Reading
    from pulpit_scheduler.models.playlist import PlaylistEntry


SERVICE_STATUSES = ("planned", "done", "cancelled")

# Assignment role -> column holding the assignee
ROLE_COLUMNS = {
    "intro": "intro_user_id",
    "teaching": "teaching_user_id",
    "finalization": "finalization_user_id",
    "testimonies": "testimonies_user_id",
}
ASSIGNMENT_ROLES = tuple(ROLE_COLUMNS)


class Service(BaseModel):
    """
    A dated service.

    Created by the month generator or manually; role fields are edited by
    the assignment store. Services are never deleted by the core.

    Times are local wall-clock times in the configured civil timezone.
    """

    __tablename__ = "services"

    service_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Calendar date of the service"
    )

    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="Scheduled start time (after any holiday shift)"
    )

    end_time: Mapped[Optional[time]] = mapped_column(
        Time,
        nullable=True,
    )

    service_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_types.id"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="planned",
        doc="'planned', 'done' or 'cancelled'"
    )

    is_holiday: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="A holiday of any kind falls on this date"
    )

    holiday_adjusted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Start time was moved earlier for a workday holiday"
    )

    # Role assignments
    intro_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("people.id"), nullable=True
    )
    teaching_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("people.id"), nullable=True
    )
    finalization_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("people.id"), nullable=True
    )
    testimonies_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("people.id"), nullable=True
    )

    # Metadata
    observations: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Free-text notes for the service"
    )

    early_start_time: Mapped[Optional[time]] = mapped_column(
        Time,
        nullable=True,
        doc="Manual override of the start time"
    )

    # Relationships
    service_type: Mapped["ServiceType"] = relationship("ServiceType")

    intro_user: Mapped[Optional["Person"]] = relationship(
        "Person", foreign_keys=[intro_user_id]
    )
    teaching_user: Mapped[Optional["Person"]] = relationship(
        "Person", foreign_keys=[teaching_user_id]
    )
    finalization_user: Mapped[Optional["Person"]] = relationship(
        "Person", foreign_keys=[finalization_user_id]
    )
    testimonies_user: Mapped[Optional["Person"]] = relationship(
        "Person", foreign_keys=[testimonies_user_id]
    )

    readings: Mapped[list["Reading"]] = relationship(
        "Reading",
        back_populates="service",
        foreign_keys="Reading.service_id",
        cascade="all, delete-orphan",
    )

    playlist_entries: Mapped[list["PlaylistEntry"]] = relationship(
        "PlaylistEntry",
        back_populates="service",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_service_date", "service_date"),
        Index("idx_service_date_type", "service_date", "service_type_id"),
        Index("idx_service_intro", "intro_user_id"),
        Index("idx_service_teaching", "teaching_user_id"),
        Index("idx_service_finalization", "finalization_user_id"),
        Index("idx_service_testimonies", "testimonies_user_id"),
    )

    @property
    def effective_start_time(self) -> time:
        """Start time with the early-start override applied."""
        return self.early_start_time or self.start_time

    def assignee_id(self, role: str) -> Optional[uuid.UUID]:
        """Person holding ``role`` on this service."""
        return getattr(self, ROLE_COLUMNS[role])

    def assignments(self) -> dict[str, Optional[uuid.UUID]]:
        """All four role fields keyed by role name."""
        return {role: getattr(self, column) for role, column in ROLE_COLUMNS.items()}

    def __repr__(self) -> str:
        return f"<Service(date={self.service_date}, start={self.start_time})>"


class MonthGeneration(Base):
    """
    One row per generated month.

    The composite primary key makes a second, concurrent generation of the
    same month fail at commit time even if both passed the existing-services
    check.
    """

    __tablename__ = "month_generations"

    year: Mapped[int] = mapped_column(Integer, primary_key=True)

    month: Mapped[int] = mapped_column(Integer, primary_key=True)

    services_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    generated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<MonthGeneration({self.year}-{self.month:02d}, created={self.services_created})>"
