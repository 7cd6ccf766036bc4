"""
Month schedule generation.

Expands the weekly rule set into dated services for one calendar month:

1. Refuse the month if it already has any service.
2. For each day, look up the weekly rule for its day of week; no rule, no service.
3. On a Monday-Friday workday holiday, a holiday-adjustable rule starts
   earlier by the configured shift (one hour by default).
4. Insert the whole month in one transaction together with a
   MonthGeneration marker row whose primary key guards against a
   concurrent second generation.

Also provides manual service creation, month listing and metadata edits.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Sequence
from uuid import UUID

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, rrule
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from pulpit_scheduler.config import get_settings
from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import HolidayException, ServiceType, WeeklyRule
from pulpit_scheduler.models.schedule import MonthGeneration, Service, SERVICE_STATUSES
from pulpit_scheduler.services.activity import record_activity
from pulpit_scheduler.services.exceptions import (
    DuplicateMonthError,
    NotFoundError,
    ValidationError,
)
from pulpit_scheduler.services.holidays import holidays_between, workday_holidays_between
from pulpit_scheduler.services.results import OperationResult, returns_result
from pulpit_scheduler.services.weekly_rules import day_of_week, rules_by_day

logger = logging.getLogger(__name__)


@dataclass
class PlannedService:
    """A service row computed for a day, before it is persisted."""

    service_date: date
    start_time: time
    service_type_id: UUID
    is_holiday: bool = False
    holiday_adjusted: bool = False
    wrapped_past_midnight: bool = False


@dataclass
class GeneratedMonth:
    """Outcome of a successful month generation."""

    year: int
    month: int
    created: int


@dataclass
class GeneratedYear:
    """Per-month outcomes of a year generation. Failed months do not stop the rest."""

    year: int
    months: dict[int, OperationResult] = field(default_factory=dict)

    @property
    def created(self) -> int:
        return sum(r.data.created for r in self.months.values() if r.ok)

    @property
    def failed_months(self) -> list[int]:
        return [m for m, r in self.months.items() if not r.ok]


@dataclass
class ServiceMetadata:
    """
    Editable metadata of a service.

    Both fields are written as given; None clears the field.
    """

    observations: Optional[str] = None
    early_start_time: Optional[time] = None


# =============================================================================
# Pure helpers
# =============================================================================


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    First and last day of a calendar month.

    Raises:
        ValidationError: If year or month is out of range
    """
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}", month=month)
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}", year=year)

    first = date(year, month, 1)
    return first, first + relativedelta(months=1, days=-1)


def days_in_month(year: int, month: int) -> list[date]:
    """Every date of the month, in order."""
    first, last = month_bounds(year, month)
    return [occurrence.date() for occurrence in rrule(DAILY, dtstart=first, until=last)]


def shift_earlier(start: time, minutes: int) -> tuple[time, bool]:
    """
    Move a wall-clock time earlier, wrapping around midnight.

    The date is not rolled back: 00:30 shifted by one hour is 23:30 of the
    same service date. The second return value reports whether that wrap
    happened so callers can flag it.

    Returns:
        (shifted time, wrapped past midnight)
    """
    total = start.hour * 60 + start.minute - minutes
    wrapped = total < 0
    total %= 24 * 60
    return start.replace(hour=total // 60, minute=total % 60), wrapped


def plan_month(
    year: int,
    month: int,
    rules: dict[int, WeeklyRule],
    workday_holidays: set[date],
    holiday_dates: Optional[set[date]] = None,
    shift_minutes: int = 60,
) -> list[PlannedService]:
    """
    Compute the services of a month without touching the database.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        rules: Weekly rules keyed by Sunday-based day of week
        workday_holidays: Dates that are workday holidays
        holiday_dates: Dates with a holiday of any kind
        shift_minutes: How much earlier an adjusted service starts

    Returns:
        One PlannedService per day that has a rule, in date order
    """
    holiday_dates = holiday_dates or set()
    planned = []

    for day in days_in_month(year, month):
        rule = rules.get(day_of_week(day))
        if rule is None:
            continue

        start = rule.default_start_time
        adjusted = False
        wrapped = False

        is_weekday = day.weekday() < 5
        if is_weekday and day in workday_holidays and rule.holiday_adjustable:
            start, wrapped = shift_earlier(start, shift_minutes)
            adjusted = True

        planned.append(
            PlannedService(
                service_date=day,
                start_time=start,
                service_type_id=rule.service_type_id,
                is_holiday=day in holiday_dates or day in workday_holidays,
                holiday_adjusted=adjusted,
                wrapped_past_midnight=wrapped,
            )
        )

    return planned


# =============================================================================
# Generation
# =============================================================================


def _month_has_services(session: Session, first: date, last: date) -> bool:
    count = session.scalar(
        select(func.count(Service.id)).where(Service.service_date.between(first, last))
    )
    return bool(count)


@returns_result("generate_month")
def generate_month(
    session: Session,
    year: int,
    month: int,
    actor_id: Optional[str] = None,
) -> GeneratedMonth:
    """
    Generate every service of a month from the weekly rules.

    All-or-nothing: either every computed service is inserted or none is.

    Args:
        session: Database session
        year: Calendar year
        month: Calendar month (1-12)
        actor_id: Identity-provider user id for the activity log

    Returns:
        GeneratedMonth with the number of services created

    Failures:
        ValidationError: Month or year out of range
        DuplicateMonthError: The month already has services, or a concurrent
            generation committed first
        StoreError: The batch insert failed; nothing was written
    """
    first, last = month_bounds(year, month)
    shift_minutes = get_settings().holiday_shift_minutes
    label = f"{year}-{month:02d}"

    try:
        with unit_of_work(session):
            if _month_has_services(session, first, last):
                raise DuplicateMonthError(
                    f"Services for {label} already exist",
                    year=year,
                    month=month,
                )

            # A marker without services (an earlier run had no rules to
            # expand) does not make the month a duplicate.
            stale_marker = session.get(MonthGeneration, (year, month))
            if stale_marker is not None:
                logger.info(
                    f"Replacing generation marker for {label}; the month has no services "
                    f"(marker recorded {stale_marker.services_created})"
                )
                session.delete(stale_marker)
                session.flush()

            planned = plan_month(
                year,
                month,
                rules=rules_by_day(session),
                workday_holidays=workday_holidays_between(session, first, last),
                holiday_dates={h.holiday_date for h in holidays_between(session, first, last)},
                shift_minutes=shift_minutes,
            )

            for row in planned:
                if row.wrapped_past_midnight:
                    logger.warning(
                        f"Holiday shift on {row.service_date.isoformat()} wrapped past midnight; "
                        f"service kept on the same date at {row.start_time.strftime('%H:%M')}"
                    )

            session.add_all(
                Service(
                    service_date=row.service_date,
                    start_time=row.start_time,
                    service_type_id=row.service_type_id,
                    is_holiday=row.is_holiday,
                    holiday_adjusted=row.holiday_adjusted,
                    status="planned",
                )
                for row in planned
            )
            session.add(
                MonthGeneration(
                    year=year,
                    month=month,
                    services_created=len(planned),
                    generated_by=actor_id,
                )
            )
            record_activity(
                session,
                "month_generated",
                f"Generated {len(planned)} services for {label}",
                actor_id=actor_id,
                details={"year": year, "month": month, "created": len(planned)},
            )
    except IntegrityError as e:
        # A concurrent generation committed the same month first
        raise DuplicateMonthError(
            f"{label} was generated concurrently by another request",
            original_error=e,
            year=year,
            month=month,
        ) from e

    logger.info(f"Generated {len(planned)} services for {label}")
    return GeneratedMonth(year=year, month=month, created=len(planned))


@returns_result("generate_year")
def generate_year(
    session: Session,
    year: int,
    actor_id: Optional[str] = None,
) -> GeneratedYear:
    """
    Generate all twelve months of a year.

    Each month is its own transaction. A month that fails (typically
    because it already exists) is recorded and the loop continues.
    """
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}", year=year)

    summary = GeneratedYear(year=year)
    for month in range(1, 13):
        summary.months[month] = generate_month(session, year, month, actor_id=actor_id)

    logger.info(
        f"Year {year}: {summary.created} services created, "
        f"{len(summary.failed_months)} month(s) skipped"
    )
    return summary


# =============================================================================
# Manual services and queries
# =============================================================================


@returns_result("create_manual_service")
def create_manual_service(
    session: Session,
    service_date: date,
    start_time: time,
    service_type_id: UUID,
    end_time: Optional[time] = None,
    actor_id: Optional[str] = None,
) -> Service:
    """
    Create a single service outside the weekly rules.

    No holiday shift is applied to manual services; the holiday flag is
    still set when the date is a holiday.
    """
    if end_time is not None and end_time <= start_time:
        raise ValidationError("End time must be after start time", field="end_time")

    with unit_of_work(session):
        if session.get(ServiceType, service_type_id) is None:
            raise NotFoundError(f"Service type {service_type_id} not found")

        holiday = session.scalar(
            select(HolidayException).where(HolidayException.holiday_date == service_date)
        )

        service = Service(
            service_date=service_date,
            start_time=start_time,
            end_time=end_time,
            service_type_id=service_type_id,
            is_holiday=holiday is not None,
            holiday_adjusted=False,
            status="planned",
        )
        session.add(service)
        session.flush()

        record_activity(
            session,
            "service_created",
            f"Manual service on {service_date.isoformat()} at {start_time.strftime('%H:%M')}",
            actor_id=actor_id,
            service_id=service.id,
        )

    logger.info(f"Created manual service {service.id} on {service_date.isoformat()}")
    return service


def _service_query():
    return select(Service).options(
        selectinload(Service.service_type),
        selectinload(Service.intro_user),
        selectinload(Service.teaching_user),
        selectinload(Service.finalization_user),
        selectinload(Service.testimonies_user),
    )


def load_service(session: Session, service_id: UUID) -> Service:
    """
    Fetch a service or raise NotFoundError.

    For use inside other core operations.
    """
    service = session.get(Service, service_id)
    if service is None:
        raise NotFoundError(f"Service {service_id} not found", service_id=str(service_id))
    return service


@returns_result("get_service")
def get_service(session: Session, service_id: UUID) -> Service:
    """A service with its type and assignees loaded."""
    service = session.scalar(_service_query().where(Service.id == service_id))
    if service is None:
        raise NotFoundError(f"Service {service_id} not found", service_id=str(service_id))
    return service


@returns_result("list_services_for_month")
def list_services_for_month(session: Session, year: int, month: int) -> Sequence[Service]:
    """Services of a month ordered by date and start time."""
    first, last = month_bounds(year, month)
    stmt = (
        _service_query()
        .where(Service.service_date.between(first, last))
        .order_by(Service.service_date, Service.start_time)
    )
    return session.scalars(stmt).all()


@returns_result("update_service_metadata")
def update_service_metadata(
    session: Session,
    service_id: UUID,
    metadata: ServiceMetadata,
    actor_id: Optional[str] = None,
) -> Service:
    """Replace the observations and early-start override of a service."""
    observations = metadata.observations
    if observations is not None:
        observations = observations.strip() or None

    with unit_of_work(session):
        service = load_service(session, service_id)
        service.observations = observations
        service.early_start_time = metadata.early_start_time
        record_activity(
            session,
            "service_updated",
            "Service metadata updated",
            actor_id=actor_id,
            service_id=service.id,
            details={
                "early_start_time": (
                    metadata.early_start_time.strftime("%H:%M")
                    if metadata.early_start_time else None
                ),
            },
        )

    return service


@returns_result("set_service_status")
def set_service_status(
    session: Session,
    service_id: UUID,
    status: str,
    actor_id: Optional[str] = None,
) -> Service:
    """Mark a service planned, done or cancelled."""
    if status not in SERVICE_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Valid statuses: {', '.join(SERVICE_STATUSES)}",
            status=status,
        )

    with unit_of_work(session):
        service = load_service(session, service_id)
        service.status = status
        record_activity(
            session,
            "service_updated",
            f"Service marked {status}",
            actor_id=actor_id,
            service_id=service.id,
        )

    return service


def service_start_datetime(service: Service) -> datetime:
    """Aware start datetime of a service in the configured timezone."""
    return datetime.combine(
        service.service_date,
        service.effective_start_time,
        tzinfo=get_settings().tzinfo,
    )
