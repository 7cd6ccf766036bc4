"""
Weekly rule set.

Maps a day of week (0 = Sunday ... 6 = Saturday) to the service type and
default start time the month generator uses. One rule per day: saving a
rule for a day that already has one replaces it.
"""

import logging
from datetime import date, time
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import ServiceType, WeeklyRule
from pulpit_scheduler.services.exceptions import NotFoundError, ValidationError
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def day_of_week(day: date) -> int:
    """Sunday-based day of week: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _validate_day(value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 6:
        raise ValidationError(
            f"day_of_week must be between 0 (Sunday) and 6 (Saturday), got {value}",
            day_of_week=value,
        )


def rules_by_day(session: Session) -> dict[int, WeeklyRule]:
    """
    Load every weekly rule keyed by day of week.

    Returns:
        Dict mapping day_of_week to its rule
    """
    stmt = select(WeeklyRule).options(joinedload(WeeklyRule.service_type))
    return {rule.day_of_week: rule for rule in session.scalars(stmt).all()}


@returns_result("list_weekly_rules")
def list_weekly_rules(session: Session) -> Sequence[WeeklyRule]:
    """All rules ordered Sunday to Saturday."""
    stmt = (
        select(WeeklyRule)
        .options(joinedload(WeeklyRule.service_type))
        .order_by(WeeklyRule.day_of_week)
    )
    return session.scalars(stmt).all()


@returns_result("set_weekly_rule")
def set_weekly_rule(
    session: Session,
    day: int,
    service_type_id: UUID,
    default_start_time: time,
    holiday_adjustable: bool = False,
) -> WeeklyRule:
    """
    Create or replace the rule for a day of week.

    Args:
        session: Database session
        day: Day of week, 0 = Sunday ... 6 = Saturday
        service_type_id: Type of service held that day
        default_start_time: Start time of generated services
        holiday_adjustable: Whether workday holidays move it earlier
    """
    _validate_day(day)

    with unit_of_work(session):
        if session.get(ServiceType, service_type_id) is None:
            raise NotFoundError(f"Service type {service_type_id} not found")

        rule = session.scalar(select(WeeklyRule).where(WeeklyRule.day_of_week == day))
        if rule is None:
            rule = WeeklyRule(day_of_week=day)
            session.add(rule)

        rule.service_type_id = service_type_id
        rule.default_start_time = default_start_time
        rule.holiday_adjustable = holiday_adjustable

    logger.info(
        f"Weekly rule for {DAY_NAMES[day]} set to {default_start_time.strftime('%H:%M')} "
        f"(holiday adjustable: {holiday_adjustable})"
    )
    return rule


@returns_result("delete_weekly_rule")
def delete_weekly_rule(session: Session, day: int) -> None:
    """Remove the rule for a day; generation then skips that weekday."""
    _validate_day(day)

    with unit_of_work(session):
        rule = session.scalar(select(WeeklyRule).where(WeeklyRule.day_of_week == day))
        if rule is None:
            raise NotFoundError(f"No weekly rule for {DAY_NAMES[day]}")
        session.delete(rule)

    logger.info(f"Weekly rule for {DAY_NAMES[day]} removed")
