"""
Holiday registry.

Read side used by the month generator (which dates are holidays, and
which of them are workday holidays) plus the administrator's create/delete.
"""

import logging
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import HolidayException, HOLIDAY_KINDS, WORKDAY_HOLIDAY
from pulpit_scheduler.services.exceptions import ConflictError, NotFoundError, ValidationError
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)


def holidays_between(session: Session, start: date, end: date) -> Sequence[HolidayException]:
    """
    Get all holidays within a date range.

    Args:
        session: Database session
        start: First date (inclusive)
        end: Last date (inclusive)

    Returns:
        Holidays ordered by date
    """
    stmt = (
        select(HolidayException)
        .where(HolidayException.holiday_date.between(start, end))
        .order_by(HolidayException.holiday_date)
    )
    return session.scalars(stmt).all()


def workday_holidays_between(session: Session, start: date, end: date) -> set[date]:
    """
    Dates in range whose holiday kind is 'workday_holiday'.

    Weekend filtering is the generator's job; this returns every
    workday-holiday date in range.
    """
    stmt = select(HolidayException.holiday_date).where(
        HolidayException.holiday_date.between(start, end),
        HolidayException.kind == WORKDAY_HOLIDAY,
    )
    return set(session.scalars(stmt).all())


@returns_result("create_holiday")
def create_holiday(
    session: Session,
    holiday_date: date,
    kind: str,
    description: Optional[str] = None,
) -> HolidayException:
    """Register a holiday. One holiday per date."""
    if kind not in HOLIDAY_KINDS:
        raise ValidationError(
            f"Invalid holiday kind: {kind}. Valid kinds: {', '.join(HOLIDAY_KINDS)}",
            kind=kind,
        )

    with unit_of_work(session):
        existing = session.scalar(
            select(HolidayException).where(HolidayException.holiday_date == holiday_date)
        )
        if existing is not None:
            raise ConflictError(
                f"A holiday is already registered on {holiday_date.isoformat()}",
                holiday_id=str(existing.id),
            )

        holiday = HolidayException(
            holiday_date=holiday_date,
            kind=kind,
            description=(description or "").strip() or None,
        )
        session.add(holiday)

    logger.info(f"Registered {kind} holiday on {holiday_date.isoformat()}")
    return holiday


@returns_result("delete_holiday")
def delete_holiday(session: Session, holiday_id: UUID) -> None:
    """Remove a holiday. Already generated services keep their times."""
    with unit_of_work(session):
        holiday = session.get(HolidayException, holiday_id)
        if holiday is None:
            raise NotFoundError(f"Holiday {holiday_id} not found")
        session.delete(holiday)

    logger.info(f"Deleted holiday {holiday_id}")


@returns_result("list_holidays")
def list_holidays(session: Session, year: Optional[int] = None) -> Sequence[HolidayException]:
    """All holidays, or those of one calendar year, ordered by date."""
    if year is None:
        stmt = select(HolidayException).order_by(HolidayException.holiday_date)
        return session.scalars(stmt).all()

    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}")
    return holidays_between(session, date(year, 1, 1), date(year, 12, 31))
