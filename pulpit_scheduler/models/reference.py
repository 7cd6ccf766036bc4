"""
Reference data models.

Entities:
- ServiceType: Category of service and the roles/features it supports
- WeeklyRule: Day-of-week recurrence that the month generator expands
- HolidayException: Dated holiday that may shift service start times
- Person: Member of the congregation who can hold a role or read
- MusicItem: Hymn or chorus in the songbook catalog

These rows are edited by administrators; the generator only reads them.
"""

import uuid
from datetime import date, time
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulpit_scheduler.models.base import BaseModel, get_json_type

# Holiday kinds. Only WORKDAY_HOLIDAY triggers the start-time shift.
HOLIDAY_NATIONAL = "national"
HOLIDAY_REGIONAL = "regional"
HOLIDAY_LOCAL = "local"
WORKDAY_HOLIDAY = "workday_holiday"
HOLIDAY_KINDS = (HOLIDAY_NATIONAL, HOLIDAY_REGIONAL, HOLIDAY_LOCAL, WORKDAY_HOLIDAY)

# Music categories, in rendering order
HYMN = "hymn"
CHORUS = "chorus"
MUSIC_CATEGORIES = (HYMN, CHORUS)


class ServiceType(BaseModel):
    """
    A category of service (e.g. Bible study, praise, teaching).

    Capability flags tell the presentation layer which roles and sections
    apply. The assignment store does not enforce them.
    """

    __tablename__ = "service_types"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        doc="Display name"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Optional description"
    )

    color: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        default="#3B82F6",
        doc="Hex color code for calendar display"
    )

    has_teaching: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_testimonies: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_intro_reading: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    has_final_reading: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    has_music: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    sort_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Position in type pickers"
    )

    weekly_rules: Mapped[list["WeeklyRule"]] = relationship(
        "WeeklyRule",
        back_populates="service_type",
    )

    def supported_roles(self) -> list[str]:
        """Assignment roles this type of service uses."""
        roles = []
        if self.has_intro_reading:
            roles.append("intro")
        if self.has_teaching:
            roles.append("teaching")
        if self.has_final_reading:
            roles.append("finalization")
        if self.has_testimonies:
            roles.append("testimonies")
        return roles

    def __repr__(self) -> str:
        return f"<ServiceType(name='{self.name}')>"


class WeeklyRule(BaseModel):
    """
    Recurrence rule: on this day of week, hold this type of service.

    day_of_week uses 0 = Sunday through 6 = Saturday. At most one rule
    exists per day; saving a rule for a day replaces the previous one.
    """

    __tablename__ = "weekly_rules"

    day_of_week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Day of week, 0 = Sunday ... 6 = Saturday"
    )

    service_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_types.id"),
        nullable=False,
    )

    default_start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="Local start time for generated services"
    )

    holiday_adjustable: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether a workday holiday moves this service earlier"
    )

    service_type: Mapped["ServiceType"] = relationship(
        "ServiceType",
        back_populates="weekly_rules",
    )

    __table_args__ = (
        UniqueConstraint("day_of_week", name="uq_weekly_rule_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_rule_day_range"),
    )

    def __repr__(self) -> str:
        return f"<WeeklyRule(day={self.day_of_week}, start={self.default_start_time})>"


class HolidayException(BaseModel):
    """A holiday on a specific date. One holiday row per date."""

    __tablename__ = "holidays"

    holiday_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        unique=True,
    )

    kind: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        doc="'national', 'regional', 'local' or 'workday_holiday'"
    )

    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        Index("idx_holiday_kind_date", "kind", "holiday_date"),
    )

    @property
    def is_workday_holiday(self) -> bool:
        return self.kind == WORKDAY_HOLIDAY

    def __repr__(self) -> str:
        return f"<HolidayException(date={self.holiday_date}, kind='{self.kind}')>"


class Person(BaseModel):
    """A member who can be assigned to service roles or read scripture."""

    __tablename__ = "people"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)

    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )

    pulpit: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Eligible for pulpit roles"
    )

    availability: Mapped[Optional[dict]] = mapped_column(
        get_json_type(),
        nullable=True,
        doc="Weekly template and dated exceptions by role; NULL means always available"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    __table_args__ = (
        Index("idx_person_pulpit", "pulpit"),
    )

    def __repr__(self) -> str:
        return f"<Person(name='{self.full_name}')>"


class MusicItem(BaseModel):
    """A hymn or chorus from the songbook."""

    __tablename__ = "music_items"

    category: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        doc="'hymn' or 'chorus'"
    )

    number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    duration_seconds: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    __table_args__ = (
        UniqueConstraint("category", "number", name="uq_music_item_number"),
        CheckConstraint("category IN ('hymn', 'chorus')", name="ck_music_item_category"),
    )

    def __repr__(self) -> str:
        return f"<MusicItem({self.category} #{self.number} '{self.title}')>"
