"""
Pydantic request and response models for the Pulpit Scheduler API.
"""

from datetime import date, time
from typing import Literal, Optional, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Request Models
# =============================================================================


class GenerateMonthRequest(BaseModel):
    """Generate every service of one month from the weekly rules."""

    year: int = Field(..., ge=1, le=9999, description="Calendar year", examples=[2026])
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)", examples=[3])


class GenerateYearRequest(BaseModel):
    """Generate all twelve months of a year."""

    year: int = Field(..., ge=1, le=9999, description="Calendar year")


class CreateServiceRequest(BaseModel):
    """Create a single service outside the weekly rules."""

    service_date: date = Field(..., description="Date of the service")
    start_time: time = Field(..., description="Local start time")
    service_type_id: UUID = Field(..., description="Service type")
    end_time: Optional[time] = Field(None, description="Local end time")


class UpdateMetadataRequest(BaseModel):
    """
    Replacement metadata for a service.

    Both fields are written; null clears a field.
    """

    observations: Optional[str] = Field(None, max_length=2000, description="Free-text notes")
    early_start_time: Optional[time] = Field(None, description="Start time override")


class SetRoleRequest(BaseModel):
    """Assign a person to a role, or clear it with null."""

    person_id: Optional[UUID] = Field(None, description="Assignee (null clears the role)")


class SaveReadingRequest(BaseModel):
    """Scripture reading for a service slot."""

    role: Literal["intro", "final"] = Field(..., description="Reading slot")
    book: str = Field(..., min_length=1, max_length=60, examples=["John"])
    chapter_start: int = Field(..., ge=1)
    verse_start: int = Field(..., ge=1)
    chapter_end: Optional[int] = Field(None, ge=1, description="Defaults to chapter_start")
    verse_end: Optional[int] = Field(None, ge=1, description="Defaults to verse_start")
    reader_id: UUID = Field(..., description="Person reading")

    @field_validator("book")
    @classmethod
    def validate_book_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Book cannot be empty")
        return v.strip()


class ConfirmReadingRequest(SaveReadingRequest):
    """A reading acknowledged as a repeat of an earlier one."""

    original_reading_id: UUID = Field(..., description="The earlier reading of this passage")


class AddPlaylistEntryRequest(BaseModel):
    category: Literal["hymn", "chorus"] = Field(..., description="Music category")
    item_id: UUID = Field(..., description="Songbook item")


class ReorderPlaylistRequest(BaseModel):
    """Complete desired order of a service playlist."""

    entry_ids: list[UUID] = Field(
        ...,
        description="Every entry id of the playlist exactly once, in the new order",
    )


class CreateHolidayRequest(BaseModel):
    holiday_date: date = Field(..., description="Date of the holiday")
    kind: Literal["national", "regional", "local", "workday_holiday"] = Field(
        ...,
        description="Only 'workday_holiday' moves adjustable services earlier",
    )
    description: Optional[str] = Field(None, max_length=200)


class SetWeeklyRuleRequest(BaseModel):
    service_type_id: UUID = Field(..., description="Service type held that day")
    default_start_time: time = Field(..., description="Start time of generated services")
    holiday_adjustable: bool = Field(
        default=False,
        description="Whether workday holidays move this service earlier",
    )


class SetAvailabilityRequest(BaseModel):
    """
    Replacement availability for a person.

    Omitting both parts clears availability (always available).
    """

    template: Optional[dict[int, dict[str, bool]]] = Field(
        None,
        description="Day of week (0 = Sunday) to role flags",
        examples=[{"0": {"intro": True, "teaching": True}, "3": {"intro": True}}],
    )
    exceptions: Optional[dict[date, dict[str, bool]]] = Field(
        None,
        description="Date to role flags; overrides the template for that date",
        examples=[{"2026-03-22": {"intro": False}}],
    )


# =============================================================================
# Response Models
# =============================================================================


class ServiceResponse(BaseModel):
    """A dated service with its assignments."""

    id: UUID
    service_date: date
    start_time: time
    end_time: Optional[time] = None
    effective_start_time: time = Field(..., description="Start time after the early-start override")
    service_type_id: UUID
    service_type_name: Optional[str] = None
    status: str
    is_holiday: bool
    holiday_adjusted: bool
    intro_user_id: Optional[UUID] = None
    teaching_user_id: Optional[UUID] = None
    finalization_user_id: Optional[UUID] = None
    testimonies_user_id: Optional[UUID] = None
    observations: Optional[str] = None
    early_start_time: Optional[time] = None
    assignment_status: Literal["complete", "pending"] = Field(
        ..., description="Whether every role the service type uses is assigned"
    )


class ServiceListResponse(BaseModel):
    services: list[ServiceResponse] = Field(..., description="Services ordered by date")
    total: int = Field(..., description="Number of services")


class GeneratedMonthResponse(BaseModel):
    year: int
    month: int
    created: int = Field(..., description="Services inserted")


class MonthOutcome(BaseModel):
    """Result of one month within a year generation."""

    ok: bool
    created: int = 0
    error_code: Optional[str] = None
    message: Optional[str] = None


class GeneratedYearResponse(BaseModel):
    year: int
    created: int = Field(..., description="Services inserted across all months")
    months: dict[int, MonthOutcome]


class ReadingResponse(BaseModel):
    id: UUID
    service_id: UUID
    role: str
    book: str
    chapter_start: int
    verse_start: int
    chapter_end: int
    verse_end: int
    citation: str = Field(..., description="Human citation, e.g. 'John 3:16'")
    reader_id: UUID
    is_repeat: bool
    original_reading_id: Optional[UUID] = None


class ConfirmationResponse(BaseModel):
    """The earlier reading a repeat must be confirmed against."""

    reading_id: UUID
    service_id: UUID
    service_date: date
    reader_id: Optional[UUID] = None
    citation: str


class ReadingSaveResponse(BaseModel):
    """
    Outcome of saving a reading.

    ``requires_confirmation`` is not an error: call the confirm endpoint
    with ``confirmation.reading_id`` as ``original_reading_id`` to proceed.
    """

    status: Literal["saved", "requires_confirmation"]
    reading: Optional[ReadingResponse] = None
    confirmation: Optional[ConfirmationResponse] = None

    @model_validator(mode="after")
    def check_branch(self) -> "ReadingSaveResponse":
        if self.status == "saved" and self.reading is None:
            raise ValueError("A saved response carries the reading")
        if self.status == "requires_confirmation" and self.confirmation is None:
            raise ValueError("A confirmation response carries the earlier reading")
        return self


class PlaylistEntryResponse(BaseModel):
    entry_id: UUID
    category: str
    item_id: UUID
    order_index: int
    number: int
    title: str
    duration_seconds: int

    model_config = ConfigDict(from_attributes=True)


class PlaylistResponse(BaseModel):
    """Playlist in rendering order: hymns, then choruses."""

    entries: list[PlaylistEntryResponse]
    hymns_seconds: int
    choruses_seconds: int
    total_seconds: int


class HolidayResponse(BaseModel):
    id: UUID
    holiday_date: date
    kind: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WeeklyRuleResponse(BaseModel):
    id: UUID
    day_of_week: int = Field(..., description="0 = Sunday ... 6 = Saturday")
    service_type_id: UUID
    default_start_time: time
    holiday_adjustable: bool

    model_config = ConfigDict(from_attributes=True)


class PersonResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    available: Optional[bool] = Field(
        None,
        description="Availability for the searched date and role, when both were given",
    )

    model_config = ConfigDict(from_attributes=True)


class PersonAvailabilityResponse(BaseModel):
    id: UUID
    full_name: str
    availability: Optional[dict[str, Any]] = Field(
        None,
        description="Stored template and exceptions; null means always available",
    )

    model_config = ConfigDict(from_attributes=True)


class MusicItemResponse(BaseModel):
    id: UUID
    category: str
    number: int
    title: str
    duration_seconds: int

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Error information for failed requests."""

    error_type: str = Field(..., description="Machine error code, e.g. 'duplicate_month'")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error details")
    retryable: bool = Field(default=False, description="Whether request can be retried")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
