"""
Unit tests for BaseModel and the GUID TypeDecorator.

Tests:
- GUID generation and persistence on SQLite (CHAR storage)
- created_at / updated_at defaults
- to_dict and JSON columns
"""

import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from pulpit_scheduler.models.activity import ActivityLog
from pulpit_scheduler.models.reference import Person


class TestGUIDTypeDecorator:
    """Test the GUID TypeDecorator for UUID handling."""

    def test_guid_generation(self, db_session: Session):
        person = Person(first_name="Test", last_name="User")
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)

        assert isinstance(person.id, uuid.UUID)

    def test_guid_uniqueness(self, db_session: Session):
        first = Person(first_name="One")
        second = Person(first_name="Two")
        db_session.add_all([first, second])
        db_session.commit()

        assert first.id != second.id

    def test_guid_persistence(self, db_session: Session):
        """GUID values round-trip through queries."""
        custom_id = uuid.uuid4()
        db_session.add(Person(id=custom_id, first_name="Custom"))
        db_session.commit()
        db_session.expire_all()

        queried = db_session.get(Person, custom_id)
        assert queried is not None
        assert queried.id == custom_id


class TestBaseModelFields:
    """Test timestamp defaults and helpers."""

    def test_created_at_set_by_database(self, db_session: Session):
        person = Person(first_name="Test")
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)

        assert isinstance(person.created_at, datetime)
        assert person.updated_at is None

    def test_updated_at_set_on_update(self, db_session: Session):
        person = Person(first_name="Test")
        db_session.add(person)
        db_session.commit()

        person.last_name = "Changed"
        db_session.commit()
        db_session.refresh(person)

        assert person.updated_at is not None

    def test_to_dict(self, db_session: Session):
        person = Person(first_name="Ana", last_name="García")
        db_session.add(person)
        db_session.commit()

        data = person.to_dict()

        assert data["first_name"] == "Ana"
        assert data["pulpit"] is True
        assert "id" in data and "created_at" in data

    def test_json_column(self, db_session: Session):
        entry = ActivityLog(kind="service_updated", description="x", details={"role": "intro", "n": 2})
        db_session.add(entry)
        db_session.commit()
        db_session.expire_all()

        assert db_session.get(ActivityLog, entry.id).details == {"role": "intro", "n": 2}
