"""
Service layer for Pulpit Scheduler.

Core operations over the relational store:
- Month schedule generation from weekly rules and holidays
- Role assignments and duty queries
- Scripture reading ledger with repeat detection
- Ordered, capacity-bounded playlists (service and planning modes)
- Reference data administration (holidays, weekly rules, catalogs)
- Advisory person availability by weekday and date

Every operation returns an OperationResult; none raises across this boundary.
"""

from pulpit_scheduler.services.exceptions import (
    SchedulerError,
    ValidationError,
    CapacityError,
    ConflictError,
    DuplicateMonthError,
    DuplicateEntryError,
    NotFoundError,
    StoreError,
)

from pulpit_scheduler.services.results import (
    OperationResult,
    OperationError,
    ConfirmationRequired,
    returns_result,
)

from pulpit_scheduler.services.schedule_generator import (
    GeneratedMonth,
    GeneratedYear,
    ServiceMetadata,
    month_bounds,
    shift_earlier,
    plan_month,
    generate_month,
    generate_year,
    create_manual_service,
    get_service,
    list_services_for_month,
    update_service_metadata,
    set_service_status,
)

from pulpit_scheduler.services.assignments import (
    PersonParticipation,
    set_role,
    list_assignments_for_person,
    list_upcoming_assignments,
    assignment_status,
    participation_stats,
)

from pulpit_scheduler.services.readings import (
    Passage,
    ReadingPage,
    ReadingStats,
    normalize_passage,
    format_citation,
    find_previous_reading,
    save_reading,
    confirm_repeat,
    delete_reading,
    list_readings_for_service,
    list_readings,
    reading_stats,
)

from pulpit_scheduler.services.playlist import (
    CatalogItem,
    PlaylistItem,
    PlaylistDuration,
    PlaylistBackend,
    DatabasePlaylistBackend,
    InMemoryPlaylistBackend,
    PlaylistManager,
    playlist_duration,
    add_playlist_entry,
    remove_playlist_entry,
    reorder_playlist,
    list_playlist_for_service,
)

from pulpit_scheduler.services.planning import (
    PlanningSession,
    drop_planning_session,
    get_planning_session,
    reset_planning_sessions,
)

from pulpit_scheduler.services.holidays import (
    holidays_between,
    workday_holidays_between,
    create_holiday,
    delete_holiday,
    list_holidays,
)

from pulpit_scheduler.services.weekly_rules import (
    day_of_week,
    rules_by_day,
    list_weekly_rules,
    set_weekly_rule,
    delete_weekly_rule,
)

from pulpit_scheduler.services.catalog import (
    create_service_type,
    list_service_types,
    create_person,
    search_people,
    create_music_item,
    search_music_items,
)

from pulpit_scheduler.services.availability import (
    is_available,
    sort_by_availability,
    normalize_availability,
    set_availability,
)

from pulpit_scheduler.services.activity import (
    ActivityPage,
    record_activity,
    list_activity,
)

__all__ = [
    # Errors and results
    "SchedulerError",
    "ValidationError",
    "CapacityError",
    "ConflictError",
    "DuplicateMonthError",
    "DuplicateEntryError",
    "NotFoundError",
    "StoreError",
    "OperationResult",
    "OperationError",
    "ConfirmationRequired",
    "returns_result",
    # Schedule generation
    "GeneratedMonth",
    "GeneratedYear",
    "ServiceMetadata",
    "month_bounds",
    "shift_earlier",
    "plan_month",
    "generate_month",
    "generate_year",
    "create_manual_service",
    "get_service",
    "list_services_for_month",
    "update_service_metadata",
    "set_service_status",
    # Assignments
    "PersonParticipation",
    "set_role",
    "list_assignments_for_person",
    "list_upcoming_assignments",
    "assignment_status",
    "participation_stats",
    # Readings
    "Passage",
    "ReadingPage",
    "ReadingStats",
    "normalize_passage",
    "format_citation",
    "find_previous_reading",
    "save_reading",
    "confirm_repeat",
    "delete_reading",
    "list_readings_for_service",
    "list_readings",
    "reading_stats",
    # Playlist
    "CatalogItem",
    "PlaylistItem",
    "PlaylistDuration",
    "PlaylistBackend",
    "DatabasePlaylistBackend",
    "InMemoryPlaylistBackend",
    "PlaylistManager",
    "playlist_duration",
    "add_playlist_entry",
    "remove_playlist_entry",
    "reorder_playlist",
    "list_playlist_for_service",
    # Planning
    "PlanningSession",
    "drop_planning_session",
    "get_planning_session",
    "reset_planning_sessions",
    # Holidays and weekly rules
    "holidays_between",
    "workday_holidays_between",
    "create_holiday",
    "delete_holiday",
    "list_holidays",
    "day_of_week",
    "rules_by_day",
    "list_weekly_rules",
    "set_weekly_rule",
    "delete_weekly_rule",
    # Catalog
    "create_service_type",
    "list_service_types",
    "create_person",
    "search_people",
    "create_music_item",
    "search_music_items",
    # Availability
    "is_available",
    "sort_by_availability",
    "normalize_availability",
    "set_availability",
    # Activity
    "ActivityPage",
    "record_activity",
    "list_activity",
]
