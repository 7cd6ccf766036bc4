"""
Pytest configuration and fixtures for Pulpit Scheduler tests.

Provides database session fixtures and sample reference data for testing.
"""

from datetime import date, time
from typing import Generator

import pytest
import sqlalchemy as sa
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pulpit_scheduler.config import get_settings
from pulpit_scheduler.models.base import Base
from pulpit_scheduler.models.reference import (
    HolidayException,
    MusicItem,
    Person,
    ServiceType,
    WeeklyRule,
    WORKDAY_HOLIDAY,
)
from pulpit_scheduler.models.schedule import Service
from pulpit_scheduler.services.planning import reset_planning_sessions


# Configure SQLite to enforce foreign key constraints in tests
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
def clear_caches():
    """Fresh settings and planning sessions for every test."""
    get_settings.cache_clear()
    reset_planning_sessions()
    yield
    get_settings.cache_clear()
    reset_planning_sessions()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a clean database session for each test.

    Uses an in-memory SQLite database that is torn down after each test.
    StaticPool keeps the single in-memory connection shared with the
    TestClient worker threads.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Disable foreign key constraints for drop operations
        with engine.begin() as connection:
            connection.execute(sa.text("PRAGMA foreign_keys=OFF"))
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def worship_type(db_session: Session) -> ServiceType:
    """
    Service type using every role.

    Returns:
        ServiceType: A persisted service type with teaching and testimonies
    """
    service_type = ServiceType(
        name="Worship",
        color="#3B82F6",
        has_teaching=True,
        has_testimonies=True,
        has_intro_reading=True,
        has_final_reading=True,
        has_music=True,
        sort_order=1,
    )
    db_session.add(service_type)
    db_session.commit()
    db_session.refresh(service_type)
    return service_type


@pytest.fixture
def study_type(db_session: Session) -> ServiceType:
    """Bible study: intro and finalization only."""
    service_type = ServiceType(
        name="Bible study",
        color="#10B981",
        has_teaching=False,
        has_testimonies=False,
        sort_order=2,
    )
    db_session.add(service_type)
    db_session.commit()
    db_session.refresh(service_type)
    return service_type


@pytest.fixture
def weekly_rules(
    db_session: Session, worship_type: ServiceType, study_type: ServiceType
) -> dict[int, WeeklyRule]:
    """
    Sunday 11:00 worship, Monday 19:00 study (holiday adjustable),
    Saturday 18:00 worship (holiday adjustable).

    Returns:
        dict[int, WeeklyRule]: Rules keyed by day of week (0 = Sunday)
    """
    rules = {
        0: WeeklyRule(
            day_of_week=0,
            service_type_id=worship_type.id,
            default_start_time=time(11, 0),
            holiday_adjustable=False,
        ),
        1: WeeklyRule(
            day_of_week=1,
            service_type_id=study_type.id,
            default_start_time=time(19, 0),
            holiday_adjustable=True,
        ),
        6: WeeklyRule(
            day_of_week=6,
            service_type_id=worship_type.id,
            default_start_time=time(18, 0),
            holiday_adjustable=True,
        ),
    }
    db_session.add_all(rules.values())
    db_session.commit()
    return rules


@pytest.fixture
def march_holidays(db_session: Session) -> list[HolidayException]:
    """
    Workday holidays on Monday 2026-03-02 and Saturday 2026-03-07,
    plus a national holiday on Sunday 2026-03-15.
    """
    holidays = [
        HolidayException(holiday_date=date(2026, 3, 2), kind=WORKDAY_HOLIDAY, description="Local fair"),
        HolidayException(holiday_date=date(2026, 3, 7), kind=WORKDAY_HOLIDAY, description="Saturday off"),
        HolidayException(holiday_date=date(2026, 3, 15), kind="national", description="National day"),
    ]
    db_session.add_all(holidays)
    db_session.commit()
    return holidays


@pytest.fixture
def people(db_session: Session) -> dict[str, Person]:
    """Three pulpit-eligible people and one who is not."""
    members = {
        "ana": Person(first_name="Ana", last_name="García", email="ana@example.com"),
        "luis": Person(first_name="Luis", last_name="Martín", email="luis@example.com"),
        "marta": Person(first_name="Marta", last_name="Ruiz", email="marta@example.com"),
        "pablo": Person(first_name="Pablo", last_name="Soto", email="pablo@example.com", pulpit=False),
    }
    db_session.add_all(members.values())
    db_session.commit()
    for person in members.values():
        db_session.refresh(person)
    return members


@pytest.fixture
def sample_service(db_session: Session, worship_type: ServiceType) -> Service:
    """A planned worship service on Sunday 2026-03-01 at 11:00."""
    service = Service(
        service_date=date(2026, 3, 1),
        start_time=time(11, 0),
        service_type_id=worship_type.id,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def second_service(db_session: Session, worship_type: ServiceType) -> Service:
    """A planned worship service on Sunday 2026-03-08 at 11:00."""
    service = Service(
        service_date=date(2026, 3, 8),
        start_time=time(11, 0),
        service_type_id=worship_type.id,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def songbook(db_session: Session) -> dict[str, list[MusicItem]]:
    """
    Five hymns and five choruses with durations.

    Returns:
        dict with 'hymn' and 'chorus' lists ordered by number
    """
    hymns = [
        MusicItem(category="hymn", number=n, title=f"Hymn {n}", duration_seconds=180 + n)
        for n in range(1, 6)
    ]
    choruses = [
        MusicItem(category="chorus", number=n, title=f"Chorus {n}", duration_seconds=90 + n)
        for n in range(1, 6)
    ]
    db_session.add_all(hymns + choruses)
    db_session.commit()
    return {"hymn": hymns, "chorus": choruses}
