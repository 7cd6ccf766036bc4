"""
Exceptions raised inside the core operations.

They never cross the core boundary: ``returns_result`` converts them into
``OperationResult`` failures. Each carries a retryable flag and a machine
code for the presentation layer.
"""


class SchedulerError(Exception):
    """Base exception for core scheduling operations."""

    kind: str = "error"
    code: str = "error"
    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None, **details):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details


class ValidationError(SchedulerError):
    """
    Malformed input.

    Causes:
    - Empty required field
    - Out-of-range month, day of week or verse number
    - Unknown role, category or holiday kind
    """

    kind = "validation"
    code = "validation_error"


class CapacityError(ValidationError):
    """A playlist category is already at its cap."""

    code = "capacity_exceeded"


class ConflictError(SchedulerError):
    """The requested change collides with existing state."""

    kind = "conflict"
    code = "conflict"


class DuplicateMonthError(ConflictError):
    """
    The month already has services.

    Generation is all-or-nothing per month and never overwrites.
    """

    code = "duplicate_month"


class DuplicateEntryError(ConflictError):
    """The music item is already in this playlist category."""

    code = "duplicate_entry"


class NotFoundError(SchedulerError):
    """
    Referenced row does not exist.

    Causes:
    - Unknown service, reading, playlist entry or person id
    - Reading or entry belongs to a different service
    """

    kind = "not_found"
    code = "not_found"


class StoreError(SchedulerError):
    """
    The data store failed (connection, constraint, transaction).

    Never retried by the core; retryable by the caller.
    """

    kind = "store"
    code = "store_error"
    retryable = True
