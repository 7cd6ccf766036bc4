"""
FastAPI application for Pulpit Scheduler.

This is the HTTP entry point, providing:
- Month and year schedule generation, manual services and listings
- Role assignments and per-person duty lists
- Scripture readings with the repeat-confirmation round trip
- Service playlists (hymns and choruses)
- Holiday and weekly rule administration
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from fastapi import FastAPI, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pulpit_scheduler import __version__
from pulpit_scheduler.api.dependencies import get_db_session, resolve_actor
from pulpit_scheduler.api.middleware import RequestLoggingMiddleware
from pulpit_scheduler.api.models import (
    AddPlaylistEntryRequest,
    ConfirmReadingRequest,
    CreateHolidayRequest,
    CreateServiceRequest,
    ErrorResponse,
    GeneratedMonthResponse,
    GeneratedYearResponse,
    GenerateMonthRequest,
    GenerateYearRequest,
    HealthResponse,
    HolidayResponse,
    MusicItemResponse,
    PersonAvailabilityResponse,
    PersonResponse,
    PlaylistEntryResponse,
    PlaylistResponse,
    ReadingResponse,
    ReadingSaveResponse,
    ReorderPlaylistRequest,
    SaveReadingRequest,
    ServiceListResponse,
    ServiceResponse,
    SetAvailabilityRequest,
    SetRoleRequest,
    SetWeeklyRuleRequest,
    UpdateMetadataRequest,
    WeeklyRuleResponse,
)
from pulpit_scheduler.api.response_builder import (
    error_json,
    playlist_to_response,
    reading_to_response,
    render,
    render_reading_save,
    service_to_response,
    year_to_response,
)
from pulpit_scheduler.logging_config import configure_logging
from pulpit_scheduler.services import (
    ServiceMetadata,
    add_playlist_entry,
    confirm_repeat,
    create_holiday,
    create_manual_service,
    delete_holiday,
    delete_reading,
    generate_month,
    generate_year,
    get_service,
    is_available,
    list_assignments_for_person,
    list_holidays,
    list_playlist_for_service,
    list_readings_for_service,
    list_services_for_month,
    list_upcoming_assignments,
    list_weekly_rules,
    remove_playlist_entry,
    reorder_playlist,
    save_reading,
    search_music_items,
    search_people,
    set_availability,
    set_role,
    set_weekly_rule,
    update_service_metadata,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Referenced row not found"},
    409: {"model": ErrorResponse, "description": "Conflicts with existing state"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    503: {"model": ErrorResponse, "description": "Data store failure (retryable)"},
}


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting Pulpit Scheduler API")

    yield

    logger.info("Shutting down Pulpit Scheduler API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Pulpit Scheduler API",
    description="""
# Pulpit Scheduler API

Service calendar for a congregation: monthly services generated from weekly
rules, role assignments, scripture readings and music playlists.

## Core Workflows

### Month Generation
1. Configure **PUT /weekly-rules/{day_of_week}** (0 = Sunday ... 6 = Saturday)
2. Register holidays with **POST /holidays**
3. **POST /services/generate** creates every service of the month at once.
   A month can be generated only once; a second call returns 409.

### Readings
1. **POST /services/{id}/readings**
2. If the passage was read before, the response has
   `status="requires_confirmation"` and the earlier reading
3. **POST /services/{id}/readings/confirm** with `original_reading_id`

## Error Handling

**Repeat readings are not errors** - they return 200 with the earlier reading.

- **200** - Success (including confirmation required)
- **404** - Service, reading, entry or person not found
- **409** - Duplicate month or duplicate playlist entry
- **422** - Validation error (including playlist capacity)
- **503** - Data store unavailable (retryable)
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
def health_check(db: Session = Depends(get_db_session)):
    """Check API health and database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        database_connected = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database failure: {e}")
        database_connected = False

    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=__version__,
        database_connected=database_connected,
    )


# =============================================================================
# Service Endpoints
# =============================================================================


@app.post(
    "/services/generate",
    response_model=GeneratedMonthResponse,
    status_code=201,
    summary="Generate a month of services",
    description="""
Expand the weekly rules into dated services for one month.

- Days without a weekly rule get no service
- On a Monday-Friday workday holiday, holiday-adjustable services start one hour earlier
- All-or-nothing: the month is inserted in one transaction
- **409** if the month already has services
    """,
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def generate_month_endpoint(
    request: GenerateMonthRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = generate_month(db, request.year, request.month, actor_id=actor_id)
    return render(
        result,
        lambda m: GeneratedMonthResponse(year=m.year, month=m.month, created=m.created),
    )


@app.post(
    "/services/generate-year",
    response_model=GeneratedYearResponse,
    summary="Generate every month of a year",
    description="Months that fail (e.g. already generated) are reported and do not stop the rest.",
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def generate_year_endpoint(
    request: GenerateYearRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    return render(generate_year(db, request.year, actor_id=actor_id), year_to_response)


@app.post(
    "/services",
    response_model=ServiceResponse,
    status_code=201,
    summary="Create a manual service",
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def create_service_endpoint(
    request: CreateServiceRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = create_manual_service(
        db,
        request.service_date,
        request.start_time,
        request.service_type_id,
        end_time=request.end_time,
        actor_id=actor_id,
    )
    return render(result, service_to_response)


@app.get(
    "/services",
    response_model=ServiceListResponse,
    summary="List services of a month",
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def list_services_endpoint(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db_session),
):
    return render(
        list_services_for_month(db, year, month),
        lambda services: ServiceListResponse(
            services=[service_to_response(s) for s in services],
            total=len(services),
        ),
    )


@app.get(
    "/services/{service_id}",
    response_model=ServiceResponse,
    summary="Get service details",
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def get_service_endpoint(service_id: UUID, db: Session = Depends(get_db_session)):
    return render(get_service(db, service_id), service_to_response)


@app.patch(
    "/services/{service_id}/metadata",
    response_model=ServiceResponse,
    summary="Replace service metadata",
    description="Writes both observations and the early-start override; null clears a field.",
    responses=ERROR_RESPONSES,
    tags=["Services"],
)
def update_metadata_endpoint(
    service_id: UUID,
    request: UpdateMetadataRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    metadata = ServiceMetadata(
        observations=request.observations,
        early_start_time=request.early_start_time,
    )
    result = update_service_metadata(db, service_id, metadata, actor_id=actor_id)
    return render(result, service_to_response)


# =============================================================================
# Assignment Endpoints
# =============================================================================


@app.put(
    "/services/{service_id}/roles/{role}",
    response_model=ServiceResponse,
    summary="Assign or clear a role",
    description="Roles: intro, teaching, finalization, testimonies. Last write wins.",
    responses=ERROR_RESPONSES,
    tags=["Assignments"],
)
def set_role_endpoint(
    service_id: UUID,
    role: str,
    request: SetRoleRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = set_role(db, service_id, role, request.person_id, actor_id=actor_id)
    return render(result, service_to_response)


@app.get(
    "/people/{person_id}/assignments",
    response_model=ServiceListResponse,
    summary="Services where a person holds a role",
    description="Without dates, lists the next 30 days in the configured timezone.",
    responses=ERROR_RESPONSES,
    tags=["Assignments"],
)
def list_assignments_endpoint(
    person_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db_session),
):
    if start_date is None and end_date is None:
        result = list_upcoming_assignments(db, person_id)
    else:
        start = start_date or end_date - timedelta(days=30)
        end = end_date or start_date + timedelta(days=30)
        result = list_assignments_for_person(db, person_id, start, end)

    return render(
        result,
        lambda services: ServiceListResponse(
            services=[service_to_response(s) for s in services],
            total=len(services),
        ),
    )


@app.get(
    "/people",
    response_model=list[PersonResponse],
    summary="Search pulpit-eligible people",
    description=(
        "With service_date and role, people available for that role on that date "
        "are listed first and each result reports its availability."
    ),
    responses=ERROR_RESPONSES,
    tags=["Assignments"],
)
def search_people_endpoint(
    q: str = Query("", max_length=100),
    service_date: Optional[date] = Query(None, description="Date of the service being staffed"),
    role: Optional[str] = Query(None, description="Role being staffed"),
    db: Session = Depends(get_db_session),
):
    def to_response(people):
        responses = [PersonResponse.model_validate(p) for p in people]
        if service_date is not None:
            for response, person in zip(responses, people):
                response.available = is_available(person, service_date, role)
        return responses

    return render(search_people(db, q, service_date=service_date, role=role), to_response)


@app.put(
    "/people/{person_id}/availability",
    response_model=PersonAvailabilityResponse,
    summary="Replace a person's availability",
    description="Advisory only: assignments are never rejected for availability.",
    responses=ERROR_RESPONSES,
    tags=["Assignments"],
)
def set_availability_endpoint(
    person_id: UUID,
    request: SetAvailabilityRequest,
    db: Session = Depends(get_db_session),
):
    result = set_availability(db, person_id, request.template, request.exceptions)
    return render(result, PersonAvailabilityResponse.model_validate)


# =============================================================================
# Reading Endpoints
# =============================================================================


@app.post(
    "/services/{service_id}/readings",
    response_model=ReadingSaveResponse,
    summary="Save a reading",
    description="""
Save the intro or final reading of a service.

If the same passage was already read at any service, nothing is saved and
the response is **200** with `status="requires_confirmation"` and the earlier
reading. Confirm through **POST /services/{service_id}/readings/confirm**.
    """,
    responses=ERROR_RESPONSES,
    tags=["Readings"],
)
def save_reading_endpoint(
    service_id: UUID,
    request: SaveReadingRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = save_reading(
        db,
        service_id,
        request.role,
        request.book,
        request.chapter_start,
        request.verse_start,
        request.chapter_end,
        request.verse_end,
        request.reader_id,
        actor_id=actor_id,
    )
    return render_reading_save(result)


@app.post(
    "/services/{service_id}/readings/confirm",
    response_model=ReadingSaveResponse,
    summary="Save a confirmed repeat reading",
    responses=ERROR_RESPONSES,
    tags=["Readings"],
)
def confirm_reading_endpoint(
    service_id: UUID,
    request: ConfirmReadingRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = confirm_repeat(
        db,
        service_id,
        request.role,
        request.book,
        request.chapter_start,
        request.verse_start,
        request.chapter_end,
        request.verse_end,
        request.reader_id,
        request.original_reading_id,
        actor_id=actor_id,
    )
    return render_reading_save(result)


@app.delete(
    "/services/{service_id}/readings/{reading_id}",
    status_code=204,
    summary="Delete a reading",
    responses=ERROR_RESPONSES,
    tags=["Readings"],
)
def delete_reading_endpoint(
    service_id: UUID,
    reading_id: UUID,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = delete_reading(db, reading_id, service_id, actor_id=actor_id)
    if result.failed:
        return error_json(result)
    return Response(status_code=204)


@app.get(
    "/services/{service_id}/readings",
    response_model=list[ReadingResponse],
    summary="Readings of a service",
    description="Intro reading first, then final.",
    responses=ERROR_RESPONSES,
    tags=["Readings"],
)
def list_readings_endpoint(service_id: UUID, db: Session = Depends(get_db_session)):
    return render(
        list_readings_for_service(db, service_id),
        lambda readings: [reading_to_response(r) for r in readings],
    )


# =============================================================================
# Playlist Endpoints
# =============================================================================


@app.post(
    "/services/{service_id}/playlist",
    response_model=PlaylistEntryResponse,
    status_code=201,
    summary="Add a hymn or chorus",
    description="""
Append a music item at the end of its category.

- **409** if the item is already in this service's playlist
- **422** if the category is full (default 3 hymns and 3 choruses)
    """,
    responses=ERROR_RESPONSES,
    tags=["Playlist"],
)
def add_playlist_entry_endpoint(
    service_id: UUID,
    request: AddPlaylistEntryRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = add_playlist_entry(db, service_id, request.category, request.item_id, actor_id=actor_id)
    return render(result, PlaylistEntryResponse.model_validate)


@app.delete(
    "/services/{service_id}/playlist/{entry_id}",
    status_code=204,
    summary="Remove a playlist entry",
    responses=ERROR_RESPONSES,
    tags=["Playlist"],
)
def remove_playlist_entry_endpoint(
    service_id: UUID,
    entry_id: UUID,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = remove_playlist_entry(db, entry_id, service_id=service_id, actor_id=actor_id)
    if result.failed:
        return error_json(result)
    return Response(status_code=204)


@app.put(
    "/services/{service_id}/playlist/order",
    response_model=PlaylistResponse,
    summary="Reorder the playlist",
    description="Send every entry id once, in the new order. Written atomically.",
    responses=ERROR_RESPONSES,
    tags=["Playlist"],
)
def reorder_playlist_endpoint(
    service_id: UUID,
    request: ReorderPlaylistRequest,
    db: Session = Depends(get_db_session),
    actor_id: Optional[str] = Depends(resolve_actor),
):
    result = reorder_playlist(db, service_id, request.entry_ids, actor_id=actor_id)
    return render(result, playlist_to_response)


@app.get(
    "/services/{service_id}/playlist",
    response_model=PlaylistResponse,
    summary="Playlist of a service",
    description="Hymns by position, then choruses by position, with total durations.",
    responses=ERROR_RESPONSES,
    tags=["Playlist"],
)
def list_playlist_endpoint(service_id: UUID, db: Session = Depends(get_db_session)):
    return render(list_playlist_for_service(db, service_id), playlist_to_response)


@app.get(
    "/music-items",
    response_model=list[MusicItemResponse],
    summary="Search the songbook",
    description="A numeric query matches the number exactly; otherwise the title.",
    responses=ERROR_RESPONSES,
    tags=["Playlist"],
)
def search_music_items_endpoint(
    category: str = Query(..., description="'hymn' or 'chorus'"),
    q: str = Query("", max_length=100),
    db: Session = Depends(get_db_session),
):
    return render(
        search_music_items(db, category, q),
        lambda items: [MusicItemResponse.model_validate(i) for i in items],
    )


# =============================================================================
# Administration Endpoints
# =============================================================================


@app.get(
    "/holidays",
    response_model=list[HolidayResponse],
    summary="List holidays",
    responses=ERROR_RESPONSES,
    tags=["Administration"],
)
def list_holidays_endpoint(
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db_session),
):
    return render(
        list_holidays(db, year),
        lambda holidays: [HolidayResponse.model_validate(h) for h in holidays],
    )


@app.post(
    "/holidays",
    response_model=HolidayResponse,
    status_code=201,
    summary="Register a holiday",
    description="One holiday per date. Already generated services are not changed.",
    responses=ERROR_RESPONSES,
    tags=["Administration"],
)
def create_holiday_endpoint(request: CreateHolidayRequest, db: Session = Depends(get_db_session)):
    result = create_holiday(db, request.holiday_date, request.kind, request.description)
    return render(result, HolidayResponse.model_validate)


@app.delete(
    "/holidays/{holiday_id}",
    status_code=204,
    summary="Delete a holiday",
    responses=ERROR_RESPONSES,
    tags=["Administration"],
)
def delete_holiday_endpoint(holiday_id: UUID, db: Session = Depends(get_db_session)):
    result = delete_holiday(db, holiday_id)
    if result.failed:
        return error_json(result)
    return Response(status_code=204)


@app.get(
    "/weekly-rules",
    response_model=list[WeeklyRuleResponse],
    summary="List weekly rules",
    tags=["Administration"],
)
def list_weekly_rules_endpoint(db: Session = Depends(get_db_session)):
    return render(
        list_weekly_rules(db),
        lambda rules: [WeeklyRuleResponse.model_validate(r) for r in rules],
    )


@app.put(
    "/weekly-rules/{day_of_week}",
    response_model=WeeklyRuleResponse,
    summary="Create or replace the rule for a day",
    description="0 = Sunday ... 6 = Saturday. One rule per day; saving again replaces it.",
    responses=ERROR_RESPONSES,
    tags=["Administration"],
)
def set_weekly_rule_endpoint(
    day_of_week: int,
    request: SetWeeklyRuleRequest,
    db: Session = Depends(get_db_session),
):
    result = set_weekly_rule(
        db,
        day_of_week,
        request.service_type_id,
        request.default_start_time,
        holiday_adjustable=request.holiday_adjustable,
    )
    return render(result, WeeklyRuleResponse.model_validate)


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the API server with Uvicorn."""
    import uvicorn

    uvicorn.run(
        "pulpit_scheduler.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    from pulpit_scheduler.config import get_settings

    settings = get_settings()
    run_server(host=settings.api_host, port=settings.api_port, reload=settings.api_reload)
