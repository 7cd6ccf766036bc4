"""
SQLAlchemy models for Pulpit Scheduler.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from pulpit_scheduler.models.base import Base, BaseModel, GUID, get_json_type

# Import all models (must be imported for Alembic autogenerate)
from pulpit_scheduler.models.reference import (
    ServiceType,
    WeeklyRule,
    HolidayException,
    Person,
    MusicItem,
    HOLIDAY_KINDS,
    WORKDAY_HOLIDAY,
    MUSIC_CATEGORIES,
    HYMN,
    CHORUS,
)
from pulpit_scheduler.models.schedule import (
    Service,
    MonthGeneration,
    ASSIGNMENT_ROLES,
    ROLE_COLUMNS,
    SERVICE_STATUSES,
)
from pulpit_scheduler.models.readings import Reading, READING_ROLES
from pulpit_scheduler.models.playlist import PlaylistEntry
from pulpit_scheduler.models.activity import ActivityLog, ACTIVITY_KINDS

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "get_json_type",
    # Reference data
    "ServiceType",
    "WeeklyRule",
    "HolidayException",
    "Person",
    "MusicItem",
    "HOLIDAY_KINDS",
    "WORKDAY_HOLIDAY",
    "MUSIC_CATEGORIES",
    "HYMN",
    "CHORUS",
    # Services
    "Service",
    "MonthGeneration",
    "ASSIGNMENT_ROLES",
    "ROLE_COLUMNS",
    "SERVICE_STATUSES",
    # Readings
    "Reading",
    "READING_ROLES",
    # Playlist
    "PlaylistEntry",
    # Activity
    "ActivityLog",
    "ACTIVITY_KINDS",
]
