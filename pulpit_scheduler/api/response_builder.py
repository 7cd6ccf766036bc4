"""
Response builder utilities for turning OperationResults into API responses.

Error kinds map to status codes:
- validation -> 422
- conflict   -> 409
- not_found  -> 404
- store      -> 503 (retryable)
"""

from typing import Any, Callable, Optional

from fastapi.responses import JSONResponse

from pulpit_scheduler.api.models import (
    ConfirmationResponse,
    GeneratedYearResponse,
    MonthOutcome,
    PlaylistEntryResponse,
    PlaylistResponse,
    ReadingResponse,
    ReadingSaveResponse,
    ServiceResponse,
)
from pulpit_scheduler.models.readings import Reading
from pulpit_scheduler.models.schedule import Service
from pulpit_scheduler.services.assignments import assignment_status
from pulpit_scheduler.services.playlist import PlaylistItem, playlist_duration
from pulpit_scheduler.services.readings import format_citation
from pulpit_scheduler.services.results import ConfirmationRequired, OperationResult
from pulpit_scheduler.services.schedule_generator import GeneratedYear

STATUS_BY_KIND = {
    "validation": 422,
    "conflict": 409,
    "not_found": 404,
    "store": 503,
}


def build_error_response(
    error_type: str,
    message: str,
    details: dict[str, Any] | None = None,
    retryable: bool = False,
) -> dict[str, Any]:
    """Build standardized error response dictionary."""
    return {
        "error_type": error_type,
        "message": message,
        "details": details,
        "retryable": retryable,
    }


def error_json(result: OperationResult) -> JSONResponse:
    """JSON error response for a failed result."""
    error = result.error
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(error.kind, 500),
        content=build_error_response(
            error_type=error.code,
            message=error.message,
            details=error.details or None,
            retryable=error.retryable,
        ),
    )


def render(result: OperationResult, to_payload: Optional[Callable[[Any], Any]] = None):
    """
    Payload for a successful result, or the mapped error response.

    Args:
        result: Outcome of a core operation
        to_payload: Converts ``result.data`` into the response model
    """
    if result.failed:
        return error_json(result)
    if to_payload is None:
        return result.data
    return to_payload(result.data)


def service_to_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        service_date=service.service_date,
        start_time=service.start_time,
        end_time=service.end_time,
        effective_start_time=service.effective_start_time,
        service_type_id=service.service_type_id,
        service_type_name=service.service_type.name if service.service_type else None,
        status=service.status,
        is_holiday=service.is_holiday,
        holiday_adjusted=service.holiday_adjusted,
        intro_user_id=service.intro_user_id,
        teaching_user_id=service.teaching_user_id,
        finalization_user_id=service.finalization_user_id,
        testimonies_user_id=service.testimonies_user_id,
        observations=service.observations,
        early_start_time=service.early_start_time,
        assignment_status=assignment_status(service),
    )


def reading_to_response(reading: Reading) -> ReadingResponse:
    return ReadingResponse(
        id=reading.id,
        service_id=reading.service_id,
        role=reading.role,
        book=reading.book,
        chapter_start=reading.chapter_start,
        verse_start=reading.verse_start,
        chapter_end=reading.chapter_end,
        verse_end=reading.verse_end,
        citation=format_citation(reading),
        reader_id=reading.reader_id,
        is_repeat=reading.is_repeat,
        original_reading_id=reading.original_reading_id,
    )


def render_reading_save(result: OperationResult):
    """
    Render save_reading / confirm_repeat.

    The confirmation branch is a 200 with status 'requires_confirmation'.
    """
    if result.failed:
        return error_json(result)

    if result.requires_confirmation:
        confirmation: ConfirmationRequired = result.confirmation
        return ReadingSaveResponse(
            status="requires_confirmation",
            confirmation=ConfirmationResponse(
                reading_id=confirmation.reading_id,
                service_id=confirmation.service_id,
                service_date=confirmation.service_date,
                reader_id=confirmation.reader_id,
                citation=confirmation.citation,
            ),
        )

    return ReadingSaveResponse(status="saved", reading=reading_to_response(result.data))


def playlist_to_response(entries: list[PlaylistItem]) -> PlaylistResponse:
    duration = playlist_duration(entries)
    return PlaylistResponse(
        entries=[PlaylistEntryResponse.model_validate(e) for e in entries],
        hymns_seconds=duration.hymns_seconds,
        choruses_seconds=duration.choruses_seconds,
        total_seconds=duration.total_seconds,
    )


def year_to_response(summary: GeneratedYear) -> GeneratedYearResponse:
    months = {}
    for month, outcome in summary.months.items():
        if outcome.ok:
            months[month] = MonthOutcome(ok=True, created=outcome.data.created)
        else:
            months[month] = MonthOutcome(
                ok=False,
                error_code=outcome.error.code,
                message=outcome.error.message,
            )
    return GeneratedYearResponse(year=summary.year, created=summary.created, months=months)
