"""
Catalog queries and administration for reference data.

Provides:
- Service type creation and listing
- People creation and pulpit-eligible search, ordered by availability on request
- Songbook (hymns and choruses) creation and search
"""

import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.reference import MusicItem, MUSIC_CATEGORIES, Person, ServiceType
from pulpit_scheduler.models.schedule import ASSIGNMENT_ROLES
from pulpit_scheduler.services.availability import sort_by_availability
from pulpit_scheduler.services.exceptions import ConflictError, ValidationError
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


# =============================================================================
# Service Types
# =============================================================================


@returns_result("create_service_type")
def create_service_type(
    session: Session,
    name: str,
    color: str = "#3B82F6",
    description: Optional[str] = None,
    has_teaching: bool = False,
    has_testimonies: bool = False,
    has_intro_reading: bool = True,
    has_final_reading: bool = True,
    has_music: bool = True,
    sort_order: int = 0,
) -> ServiceType:
    """Create a service type with its capability flags."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Service type name is required", field="name")

    with unit_of_work(session):
        if session.scalar(select(ServiceType).where(ServiceType.name == name)) is not None:
            raise ConflictError(f"Service type '{name}' already exists")

        service_type = ServiceType(
            name=name,
            color=color,
            description=description,
            has_teaching=has_teaching,
            has_testimonies=has_testimonies,
            has_intro_reading=has_intro_reading,
            has_final_reading=has_final_reading,
            has_music=has_music,
            sort_order=sort_order,
        )
        session.add(service_type)

    logger.info(f"Created service type '{name}'")
    return service_type


@returns_result("list_service_types")
def list_service_types(session: Session) -> Sequence[ServiceType]:
    stmt = select(ServiceType).order_by(ServiceType.sort_order, ServiceType.name)
    return session.scalars(stmt).all()


# =============================================================================
# People
# =============================================================================


@returns_result("create_person")
def create_person(
    session: Session,
    first_name: str,
    last_name: str = "",
    email: Optional[str] = None,
    pulpit: bool = True,
) -> Person:
    first_name = (first_name or "").strip()
    if not first_name:
        raise ValidationError("First name is required", field="first_name")

    with unit_of_work(session):
        person = Person(
            first_name=first_name,
            last_name=(last_name or "").strip(),
            email=email,
            pulpit=pulpit,
        )
        session.add(person)

    return person


@returns_result("search_people")
def search_people(
    session: Session,
    query: str = "",
    service_date: Optional[date] = None,
    role: Optional[str] = None,
) -> Sequence[Person]:
    """
    Pulpit-eligible people whose first or last name contains ``query``.

    An empty query lists the first SEARCH_LIMIT eligible people by name.
    Given a ``service_date`` and ``role``, people available for that role
    on that date come first; unavailable people are still listed.
    """
    if (service_date is None) != (role is None):
        raise ValidationError("service_date and role must be given together")
    if role is not None and role not in ASSIGNMENT_ROLES:
        raise ValidationError(
            f"Invalid role: {role}. Valid roles: {', '.join(ASSIGNMENT_ROLES)}",
            role=role,
        )

    stmt = select(Person).where(Person.pulpit.is_(True))

    query = (query or "").strip()
    if query:
        pattern = f"%{query}%"
        stmt = stmt.where(or_(Person.first_name.ilike(pattern), Person.last_name.ilike(pattern)))

    stmt = stmt.order_by(Person.first_name, Person.last_name).limit(SEARCH_LIMIT)
    people = session.scalars(stmt).all()

    if service_date is not None:
        return sort_by_availability(people, service_date, role)
    return people


# =============================================================================
# Songbook
# =============================================================================


def _validate_category(category: str) -> None:
    if category not in MUSIC_CATEGORIES:
        raise ValidationError(
            f"Invalid category: {category}. Valid categories: {', '.join(MUSIC_CATEGORIES)}",
            category=category,
        )


@returns_result("create_music_item")
def create_music_item(
    session: Session,
    category: str,
    number: int,
    title: str,
    duration_seconds: int = 0,
) -> MusicItem:
    _validate_category(category)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if number < 1:
        raise ValidationError("Number must be positive", field="number")
    if duration_seconds < 0:
        raise ValidationError("Duration cannot be negative", field="duration_seconds")

    with unit_of_work(session):
        duplicate = session.scalar(
            select(MusicItem).where(MusicItem.category == category, MusicItem.number == number)
        )
        if duplicate is not None:
            raise ConflictError(f"{category.capitalize()} #{number} already exists")

        item = MusicItem(
            category=category,
            number=number,
            title=title,
            duration_seconds=duration_seconds,
        )
        session.add(item)

    return item


@returns_result("search_music_items")
def search_music_items(session: Session, category: str, query: str) -> Sequence[MusicItem]:
    """
    Search the songbook.

    A purely numeric query matches the item number exactly; anything else
    is a case-insensitive title substring match.
    """
    _validate_category(category)

    query = (query or "").strip()
    stmt = select(MusicItem).where(MusicItem.category == category)
    if query.isdigit():
        stmt = stmt.where(MusicItem.number == int(query))
    elif query:
        stmt = stmt.where(MusicItem.title.ilike(f"%{query}%"))

    stmt = stmt.order_by(MusicItem.number).limit(SEARCH_LIMIT)
    return session.scalars(stmt).all()
