"""
Reading ledger.

Persists the scripture readings of each service slot ('intro' / 'final')
and detects repeats: a passage that exactly matches any earlier,
non-repeat reading at any service must be confirmed before it is saved.

Flow:
    result = save_reading(...)
    if result.requires_confirmation:
        # show result.confirmation to the reader, then
        confirm_repeat(..., original_reading_id=result.confirmation.reading_id)
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, joinedload

from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.readings import Reading, READING_ROLES
from pulpit_scheduler.models.reference import Person
from pulpit_scheduler.models.schedule import Service
from pulpit_scheduler.services.activity import record_activity
from pulpit_scheduler.services.exceptions import NotFoundError, ValidationError
from pulpit_scheduler.services.results import ConfirmationRequired, returns_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Passage:
    """A normalized scripture range."""

    book: str
    chapter_start: int
    verse_start: int
    chapter_end: int
    verse_end: int

    def __str__(self) -> str:
        return format_citation(self)


@dataclass
class ReadingPage:
    """One page of reading history."""

    items: Sequence[Reading]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


@dataclass
class CitationCount:
    citation: str
    count: int


@dataclass
class ReadingStats:
    """Aggregate view of the reading history."""

    total: int
    repeats: int
    by_role: dict[str, int]
    top_citations: list[CitationCount]


def normalize_passage(
    book: str,
    chapter_start: int,
    verse_start: int,
    chapter_end: Optional[int] = None,
    verse_end: Optional[int] = None,
) -> Passage:
    """
    Validate a passage and fill in a missing end from the start.

    Raises:
        ValidationError: Empty book, non-positive numbers, or an end before the start
    """
    book = (book or "").strip()
    if not book:
        raise ValidationError("Book is required", field="book")
    if chapter_start is None or chapter_start < 1:
        raise ValidationError("Start chapter must be 1 or greater", field="chapter_start")
    if verse_start is None or verse_start < 1:
        raise ValidationError("Start verse must be 1 or greater", field="verse_start")

    if chapter_end is None:
        chapter_end = chapter_start
    if verse_end is None:
        verse_end = verse_start

    if chapter_end < chapter_start:
        raise ValidationError(
            "End chapter must not be before start chapter", field="chapter_end"
        )
    if verse_end < 1:
        raise ValidationError("End verse must be 1 or greater", field="verse_end")
    if chapter_end == chapter_start and verse_end < verse_start:
        raise ValidationError(
            "End verse must not be before start verse in the same chapter", field="verse_end"
        )

    return Passage(book, chapter_start, verse_start, chapter_end, verse_end)


def format_citation(reading) -> str:
    """
    Human citation of a Reading or Passage.

    "John 3:16" for a single verse, "John 3:16-3:18" for a range.
    """
    start = f"{reading.chapter_start}:{reading.verse_start}"
    end = f"{reading.chapter_end}:{reading.verse_end}"
    if start == end:
        return f"{reading.book} {start}"
    return f"{reading.book} {start}-{end}"


def _validate_role(role: str) -> None:
    if role not in READING_ROLES:
        raise ValidationError(
            f"Invalid reading role: {role}. Valid roles: {', '.join(READING_ROLES)}",
            role=role,
        )


def find_previous_reading(
    session: Session,
    passage: Passage,
    exclude_service_id: Optional[UUID] = None,
    exclude_role: Optional[str] = None,
) -> Optional[Reading]:
    """
    Earliest non-repeat reading of exactly this passage, at any service.

    The reading currently stored in the (exclude_service_id, exclude_role)
    slot is ignored, so re-saving a slot with its own passage is not a repeat.
    """
    stmt = (
        select(Reading)
        .join(Service, Reading.service_id == Service.id)
        .where(
            Reading.book == passage.book,
            Reading.chapter_start == passage.chapter_start,
            Reading.verse_start == passage.verse_start,
            Reading.chapter_end == passage.chapter_end,
            Reading.verse_end == passage.verse_end,
            Reading.is_repeat.is_(False),
        )
        .order_by(Service.service_date, Service.start_time, Reading.created_at)
        .limit(1)
    )
    if exclude_service_id is not None and exclude_role is not None:
        stmt = stmt.where(
            ~((Reading.service_id == exclude_service_id) & (Reading.role == exclude_role))
        )
    return session.scalar(stmt)


def _check_targets(session: Session, service_id: UUID, reader_id: UUID) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise NotFoundError(f"Service {service_id} not found", service_id=str(service_id))
    if session.get(Person, reader_id) is None:
        raise NotFoundError(f"Reader {reader_id} not found", reader_id=str(reader_id))
    return service


def _slot_reading(session: Session, service_id: UUID, role: str) -> Optional[Reading]:
    return session.scalar(
        select(Reading).where(Reading.service_id == service_id, Reading.role == role)
    )


def _upsert_reading(
    session: Session,
    service: Service,
    role: str,
    passage: Passage,
    reader_id: UUID,
    original: Optional[Reading],
    actor_id: Optional[str],
) -> Reading:
    """Insert or replace the reading of a slot. Caller owns the transaction."""
    reading = _slot_reading(session, service.id, role)
    if reading is None:
        reading = Reading(service_id=service.id, role=role)
        session.add(reading)

    reading.book = passage.book
    reading.chapter_start = passage.chapter_start
    reading.verse_start = passage.verse_start
    reading.chapter_end = passage.chapter_end
    reading.verse_end = passage.verse_end
    reading.reader_id = reader_id
    reading.is_repeat = original is not None
    reading.original_reading_id = original.id if original is not None else None

    record_activity(
        session,
        "reading_saved",
        f"{role} reading {format_citation(passage)}"
        + (" (confirmed repeat)" if original is not None else ""),
        actor_id=actor_id,
        service_id=service.id,
        details={"role": role, "citation": format_citation(passage)},
    )
    return reading


@returns_result("save_reading")
def save_reading(
    session: Session,
    service_id: UUID,
    role: str,
    book: str,
    chapter_start: int,
    verse_start: int,
    chapter_end: Optional[int],
    verse_end: Optional[int],
    reader_id: UUID,
    actor_id: Optional[str] = None,
):
    """
    Save the reading of a service slot unless the passage was read before.

    Returns:
        The saved Reading, or ConfirmationRequired describing the earlier
        reading when the passage is a repeat (nothing is written then)
    """
    _validate_role(role)
    passage = normalize_passage(book, chapter_start, verse_start, chapter_end, verse_end)

    with unit_of_work(session):
        service = _check_targets(session, service_id, reader_id)

        previous = find_previous_reading(
            session, passage, exclude_service_id=service_id, exclude_role=role
        )
        if previous is not None:
            logger.info(
                f"{format_citation(passage)} already read on "
                f"{previous.service.service_date.isoformat()}; confirmation required"
            )
            return ConfirmationRequired(
                reading_id=previous.id,
                service_id=previous.service_id,
                service_date=previous.service.service_date,
                reader_id=previous.reader_id,
                citation=format_citation(previous),
            )

        reading = _upsert_reading(
            session, service, role, passage, reader_id, original=None, actor_id=actor_id
        )

    logger.info(f"Saved {role} reading {format_citation(passage)} for service {service_id}")
    return reading


@returns_result("confirm_repeat")
def confirm_repeat(
    session: Session,
    service_id: UUID,
    role: str,
    book: str,
    chapter_start: int,
    verse_start: int,
    chapter_end: Optional[int],
    verse_end: Optional[int],
    reader_id: UUID,
    original_reading_id: UUID,
    actor_id: Optional[str] = None,
) -> Reading:
    """
    Save a reading the reader has acknowledged as a repeat.

    Always marks the reading as a repeat of ``original_reading_id``.
    """
    _validate_role(role)
    passage = normalize_passage(book, chapter_start, verse_start, chapter_end, verse_end)

    with unit_of_work(session):
        service = _check_targets(session, service_id, reader_id)

        original = session.get(Reading, original_reading_id)
        if original is None:
            raise NotFoundError(
                f"Original reading {original_reading_id} not found",
                original_reading_id=str(original_reading_id),
            )
        if original.service_id == service_id and original.role == role:
            raise ValidationError(
                "A reading cannot be a repeat of itself",
                original_reading_id=str(original_reading_id),
            )

        reading = _upsert_reading(
            session, service, role, passage, reader_id, original=original, actor_id=actor_id
        )

    logger.info(
        f"Saved {role} reading {format_citation(passage)} for service {service_id} "
        f"as repeat of {original_reading_id}"
    )
    return reading


@returns_result("delete_reading")
def delete_reading(
    session: Session,
    reading_id: UUID,
    service_id: UUID,
    actor_id: Optional[str] = None,
) -> None:
    """Remove a reading. It must belong to ``service_id``."""
    with unit_of_work(session):
        reading = session.get(Reading, reading_id)
        if reading is None or reading.service_id != service_id:
            raise NotFoundError(
                f"Reading {reading_id} not found for service {service_id}",
                reading_id=str(reading_id),
            )

        record_activity(
            session,
            "reading_deleted",
            f"{reading.role} reading {format_citation(reading)} removed",
            actor_id=actor_id,
            service_id=service_id,
        )
        session.delete(reading)

    logger.info(f"Deleted reading {reading_id} from service {service_id}")


@returns_result("list_readings_for_service")
def list_readings_for_service(session: Session, service_id: UUID) -> Sequence[Reading]:
    """Readings of a service, intro before final."""
    if session.get(Service, service_id) is None:
        raise NotFoundError(f"Service {service_id} not found", service_id=str(service_id))

    role_order = case({role: index for index, role in enumerate(READING_ROLES)}, value=Reading.role)
    stmt = (
        select(Reading)
        .options(joinedload(Reading.reader), joinedload(Reading.original_reading))
        .where(Reading.service_id == service_id)
        .order_by(role_order)
    )
    return session.scalars(stmt).all()


@returns_result("list_readings")
def list_readings(
    session: Session,
    page: int = 1,
    limit: int = 20,
    only_repeats: Optional[bool] = None,
    role: Optional[str] = None,
) -> ReadingPage:
    """
    Reading history across all services, newest service first.

    Args:
        session: Database session
        page: 1-based page number
        limit: Page size
        only_repeats: True for repeats only, False for first readings only
        role: Only 'intro' or only 'final' readings
    """
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive", page=page, limit=limit)
    if role is not None:
        _validate_role(role)

    conditions = []
    if only_repeats is not None:
        conditions.append(Reading.is_repeat.is_(only_repeats))
    if role is not None:
        conditions.append(Reading.role == role)

    total = session.scalar(select(func.count(Reading.id)).where(*conditions)) or 0

    stmt = (
        select(Reading)
        .join(Service, Reading.service_id == Service.id)
        .options(joinedload(Reading.service), joinedload(Reading.reader))
        .where(*conditions)
        .order_by(Service.service_date.desc(), Service.start_time.desc(), Reading.role)
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return ReadingPage(
        items=list(session.scalars(stmt).all()),
        total=total,
        page=page,
        limit=limit,
    )


@returns_result("reading_stats")
def reading_stats(session: Session, top: int = 5) -> ReadingStats:
    """Totals, counts per role and the most read citations."""
    if top < 1:
        raise ValidationError("top must be positive", top=top)

    total = session.scalar(select(func.count(Reading.id))) or 0
    repeats = session.scalar(
        select(func.count(Reading.id)).where(Reading.is_repeat.is_(True))
    ) or 0

    by_role = dict.fromkeys(READING_ROLES, 0)
    for role, count in session.execute(
        select(Reading.role, func.count(Reading.id)).group_by(Reading.role)
    ).all():
        by_role[role] = count

    passage_columns = (
        Reading.book,
        Reading.chapter_start,
        Reading.verse_start,
        Reading.chapter_end,
        Reading.verse_end,
    )
    hits = func.count(Reading.id).label("hits")
    stmt = (
        select(*passage_columns, hits)
        .group_by(*passage_columns)
        .order_by(hits.desc(), *passage_columns)
        .limit(top)
    )
    top_citations = [
        CitationCount(citation=format_citation(Passage(*row[:5])), count=row.hits)
        for row in session.execute(stmt).all()
    ]

    return ReadingStats(total=total, repeats=repeats, by_role=by_role, top_citations=top_citations)
