"""
Person availability for role assignments.

A person's availability is stored as::

    {
        "template": {"0": {"intro": true, "teaching": false}, ...},
        "exceptions": {"2026-03-19": {"intro": false}, ...},
    }

Template keys are Sunday-based days of week ("0" = Sunday ... "6" =
Saturday). An exception for a date overrides the template for that date
entirely. Within either, only an explicit ``true`` for the role counts as
available.

Availability is advisory: assignment and reading operations never reject an
unavailable person. It only orders people pickers.
"""

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import Person
from pulpit_scheduler.models.schedule import ASSIGNMENT_ROLES
from pulpit_scheduler.services.exceptions import NotFoundError, ValidationError
from pulpit_scheduler.services.results import returns_result
from pulpit_scheduler.services.weekly_rules import day_of_week

logger = logging.getLogger(__name__)


def is_available(person: Person, on_date: date, role: str) -> bool:
    """
    Whether ``person`` can take ``role`` on ``on_date``.

    Rules, in order:
    1. Nothing recorded: available.
    2. An exception for the date: it decides.
    3. A weekly template: the entry for the day of week decides; a day
       without an entry is unavailable.
    4. Anything else: unavailable.
    """
    availability = person.availability
    if not availability:
        return True

    exceptions = availability.get("exceptions") or {}
    exception = exceptions.get(on_date.isoformat())
    if exception is not None:
        return exception.get(role) is True

    template = availability.get("template")
    if template:
        day = template.get(str(day_of_week(on_date)))
        if day is None:
            return False
        return day.get(role) is True

    return False


def sort_by_availability(
    people: Sequence[Person],
    on_date: date,
    role: str,
) -> list[Person]:
    """Available people first; the incoming order is kept within each group."""
    return sorted(people, key=lambda person: not is_available(person, on_date, role))


def _validate_roles(roles: Any, where: str) -> dict[str, bool]:
    if not isinstance(roles, Mapping):
        raise ValidationError(f"{where}: expected a mapping of role to true/false")

    cleaned = {}
    for role, value in roles.items():
        if role not in ASSIGNMENT_ROLES:
            raise ValidationError(
                f"{where}: invalid role {role}. Valid roles: {', '.join(ASSIGNMENT_ROLES)}",
                role=role,
            )
        if not isinstance(value, bool):
            raise ValidationError(f"{where}: {role} must be true or false", role=role)
        cleaned[role] = value
    return cleaned


def normalize_availability(
    template: Optional[Mapping[Any, Any]] = None,
    exceptions: Optional[Mapping[Any, Any]] = None,
) -> Optional[dict]:
    """
    Validate and normalize an availability structure.

    Day keys may be given as ints or strings and are stored as strings.
    Date keys may be ``date`` objects or ISO strings and are stored as ISO
    strings.

    Returns:
        The structure to store, or None when neither part is given

    Raises:
        ValidationError: Unknown day, malformed date or unknown role
    """
    if template is None and exceptions is None:
        return None

    normalized: dict[str, dict] = {}

    if template is not None:
        days = {}
        for key, roles in template.items():
            try:
                day = int(key)
            except (TypeError, ValueError):
                day = -1
            if not 0 <= day <= 6:
                raise ValidationError(
                    f"Template day must be between 0 (Sunday) and 6 (Saturday), got {key}",
                    day_of_week=key,
                )
            days[str(day)] = _validate_roles(roles, f"Template day {day}")
        normalized["template"] = days

    if exceptions is not None:
        dated = {}
        for key, roles in exceptions.items():
            if isinstance(key, date):
                iso = key.isoformat()
            else:
                try:
                    iso = date.fromisoformat(str(key)).isoformat()
                except ValueError as e:
                    raise ValidationError(
                        f"Exception date must be YYYY-MM-DD, got {key}",
                        date=str(key),
                    ) from e
            dated[iso] = _validate_roles(roles, f"Exception {iso}")
        normalized["exceptions"] = dated

    return normalized


@returns_result("set_availability")
def set_availability(
    session: Session,
    person_id: UUID,
    template: Optional[Mapping[Any, Any]] = None,
    exceptions: Optional[Mapping[Any, Any]] = None,
) -> Person:
    """
    Replace a person's availability.

    Passing neither ``template`` nor ``exceptions`` clears it, which makes
    the person available for every role on every date.
    """
    availability = normalize_availability(template, exceptions)

    with unit_of_work(session):
        person = session.get(Person, person_id)
        if person is None:
            raise NotFoundError(f"Person {person_id} not found")
        person.availability = availability

    if availability is None:
        logger.info(f"Availability cleared for {person.full_name}")
    else:
        logger.info(
            f"Availability set for {person.full_name}: "
            f"{len(availability.get('template', {}))} template days, "
            f"{len(availability.get('exceptions', {}))} exceptions"
        )
    return person
