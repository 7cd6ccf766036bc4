"""
Assignment store.

Reads and writes the four role fields of a service (intro, teaching,
finalization, testimonies) and answers "who is on duty when" queries.

set_role() does not consult the service type's capability flags: whether
a role applies is the presentation layer's decision.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from pulpit_scheduler.config import get_settings
from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import Person
from pulpit_scheduler.models.schedule import ASSIGNMENT_ROLES, ROLE_COLUMNS, Service
from pulpit_scheduler.services.activity import record_activity
from pulpit_scheduler.services.exceptions import NotFoundError, ValidationError
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)

STATUS_COMPLETE = "complete"
STATUS_PENDING = "pending"


@dataclass
class PersonParticipation:
    """How many times a person held each role in a period."""

    person_id: UUID
    full_name: str
    counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(ASSIGNMENT_ROLES, 0))

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def _validate_role(role: str) -> str:
    if role not in ROLE_COLUMNS:
        raise ValidationError(
            f"Invalid role: {role}. Valid roles: {', '.join(ASSIGNMENT_ROLES)}",
            role=role,
        )
    return ROLE_COLUMNS[role]


@returns_result("set_role")
def set_role(
    session: Session,
    service_id: UUID,
    role: str,
    person_id: Optional[UUID],
    actor_id: Optional[str] = None,
) -> Service:
    """
    Assign a person to a role on a service, or clear it with None.

    Last write wins; there is no check against concurrent edits.

    Args:
        session: Database session
        service_id: Target service
        role: 'intro', 'teaching', 'finalization' or 'testimonies'
        person_id: Assignee, or None to clear the role
        actor_id: Identity-provider user id for the activity log

    Returns:
        The updated service
    """
    column = _validate_role(role)

    with unit_of_work(session):
        service = session.get(Service, service_id)
        if service is None:
            raise NotFoundError(f"Service {service_id} not found", service_id=str(service_id))

        if person_id is not None and session.get(Person, person_id) is None:
            raise NotFoundError(f"Person {person_id} not found", person_id=str(person_id))

        previous = getattr(service, column)
        setattr(service, column, person_id)

        record_activity(
            session,
            "assignment_changed",
            f"{role} {'cleared' if person_id is None else 'assigned'} "
            f"for service on {service.service_date.isoformat()}",
            actor_id=actor_id,
            service_id=service.id,
            details={
                "role": role,
                "previous": str(previous) if previous else None,
                "current": str(person_id) if person_id else None,
            },
        )

    logger.info(f"Service {service_id}: {role} set to {person_id}")
    return service


@returns_result("list_assignments_for_person")
def list_assignments_for_person(
    session: Session,
    person_id: UUID,
    start_date: date,
    end_date: date,
) -> Sequence[Service]:
    """
    Services in [start_date, end_date] where the person holds any role.

    Returns:
        Services ordered by date ascending, then start time
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    return _services_held_by(session, person_id, start_date, end_date)


def _services_held_by(
    session: Session, person_id: UUID, start_date: date, end_date: date
) -> Sequence[Service]:
    holds_any_role = or_(
        *(getattr(Service, column) == person_id for column in ROLE_COLUMNS.values())
    )
    stmt = (
        select(Service)
        .options(selectinload(Service.service_type))
        .where(Service.service_date.between(start_date, end_date), holds_any_role)
        .order_by(Service.service_date, Service.start_time)
    )
    return session.scalars(stmt).all()


def today() -> date:
    """Today in the configured civil timezone."""
    return datetime.now(get_settings().tzinfo).date()


@returns_result("list_upcoming_assignments")
def list_upcoming_assignments(
    session: Session,
    person_id: UUID,
    days: int = 30,
) -> Sequence[Service]:
    """A person's duties from today through the next ``days`` days."""
    if days < 0:
        raise ValidationError("days must not be negative", days=days)

    start = today()
    return _services_held_by(session, person_id, start, start + timedelta(days=days))


def assignment_status(service: Service) -> str:
    """
    'complete' when every role the service's type uses has an assignee.

    Only reads the service; the type relationship must be loadable.
    """
    for role in service.service_type.supported_roles():
        if service.assignee_id(role) is None:
            return STATUS_PENDING
    return STATUS_COMPLETE


@returns_result("participation_stats")
def participation_stats(session: Session, year: int) -> list[PersonParticipation]:
    """
    Per pulpit-eligible person, how often they held each role in ``year``.

    Returns:
        Entries sorted by total descending, then name
    """
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}", year=year)

    people = session.scalars(select(Person).where(Person.pulpit.is_(True))).all()
    stats = {p.id: PersonParticipation(person_id=p.id, full_name=p.full_name) for p in people}

    in_year = Service.service_date.between(date(year, 1, 1), date(year, 12, 31))
    for role, column_name in ROLE_COLUMNS.items():
        column = getattr(Service, column_name)
        stmt = (
            select(column, func.count(Service.id))
            .where(in_year, column.is_not(None))
            .group_by(column)
        )
        for person_id, count in session.execute(stmt).all():
            if person_id in stats:
                stats[person_id].counts[role] = count

    return sorted(stats.values(), key=lambda p: (-p.total, p.full_name))
