"""
Unit tests for the API response builder.
"""

import json
from datetime import date
from uuid import uuid4

import pytest

from pulpit_scheduler.api.models import ReadingSaveResponse
from pulpit_scheduler.api.response_builder import (
    build_error_response,
    error_json,
    render,
    render_reading_save,
)
from pulpit_scheduler.services.exceptions import (
    CapacityError,
    DuplicateMonthError,
    NotFoundError,
    StoreError,
)
from pulpit_scheduler.services.results import (
    ConfirmationRequired,
    OperationError,
    OperationResult,
)


def _failed(exc):
    return OperationResult.failure("op", OperationError.from_exception(exc))


class TestErrorMapping:
    """Error kinds map to HTTP status codes."""

    @pytest.mark.parametrize(
        "exc, status",
        [
            (CapacityError("full"), 422),
            (DuplicateMonthError("again"), 409),
            (NotFoundError("missing"), 404),
            (StoreError("down"), 503),
        ],
    )
    def test_status_codes(self, exc, status):
        assert error_json(_failed(exc)).status_code == status

    def test_body(self):
        response = error_json(_failed(StoreError("Data store failure", original_error=RuntimeError("x"))))
        body = json.loads(response.body)

        assert body["error_type"] == "store_error"
        assert body["retryable"] is True

    def test_build_error_response(self):
        assert build_error_response("conflict", "Nope") == {
            "error_type": "conflict",
            "message": "Nope",
            "details": None,
            "retryable": False,
        }


class TestRender:
    def test_success_payload(self):
        assert render(OperationResult.success("op", 3), lambda n: n * 2) == 6
        assert render(OperationResult.success("op", "raw")) == "raw"

    def test_confirmation_is_not_an_error(self):
        confirmation = ConfirmationRequired(
            reading_id=uuid4(),
            service_id=uuid4(),
            service_date=date(2026, 3, 1),
            reader_id=None,
            citation="John 3:16",
        )

        response = render_reading_save(OperationResult.needs_confirmation("save_reading", confirmation))

        assert isinstance(response, ReadingSaveResponse)
        assert response.status == "requires_confirmation"
        assert response.reading is None
        assert response.confirmation.citation == "John 3:16"
