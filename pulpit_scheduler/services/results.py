"""
Typed operation results.

Every core operation returns an OperationResult instead of raising.
A result is one of three branches:
- success: ok=True, data holds the payload
- failure: ok=False, error describes what went wrong
- confirmation required: ok=False, error=None, confirmation describes
  the existing record the caller must acknowledge before retrying through
  the confirming operation
"""

import functools
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from pulpit_scheduler.services.exceptions import SchedulerError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OperationError:
    """Structured error payload within an OperationResult."""

    kind: str
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: SchedulerError) -> "OperationError":
        return cls(
            kind=exc.kind,
            code=exc.code,
            message=exc.message,
            retryable=exc.retryable,
            details=dict(exc.details),
        )


@dataclass
class ConfirmationRequired:
    """An identical passage was already read; carries that earlier reading."""

    reading_id: UUID
    service_id: UUID
    service_date: date
    reader_id: Optional[UUID]
    citation: str


@dataclass
class OperationResult(Generic[T]):
    """Return type for all core operations."""

    op: str
    ok: bool
    data: Optional[T] = None
    error: Optional[OperationError] = None
    confirmation: Optional[ConfirmationRequired] = None

    @classmethod
    def success(cls, op: str, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(op=op, ok=True, data=data)

    @classmethod
    def failure(cls, op: str, error: OperationError) -> "OperationResult[T]":
        return cls(op=op, ok=False, error=error)

    @classmethod
    def needs_confirmation(
        cls, op: str, confirmation: ConfirmationRequired
    ) -> "OperationResult[T]":
        return cls(op=op, ok=False, confirmation=confirmation)

    @property
    def requires_confirmation(self) -> bool:
        """True for the two-step branch. This is not an error."""
        return self.confirmation is not None

    @property
    def failed(self) -> bool:
        return self.error is not None


def returns_result(op: str) -> Callable[[Callable[..., Any]], Callable[..., OperationResult]]:
    """
    Wrap a core operation so it always returns an OperationResult.

    - A plain return value becomes a success.
    - A ConfirmationRequired return value becomes the confirmation branch.
    - SchedulerError becomes a failure with the exception's kind and code.
    - SQLAlchemyError becomes a retryable store failure.

    Nothing is retried here.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., OperationResult]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                outcome = func(*args, **kwargs)
            except SchedulerError as e:
                logger.warning(f"{op} rejected ({e.code}): {e.message}")
                return OperationResult.failure(op, OperationError.from_exception(e))
            except SQLAlchemyError as e:
                logger.error(f"{op} failed in the data store: {e}", exc_info=True)
                store_error = StoreError(f"Data store failure during {op}", original_error=e)
                return OperationResult.failure(op, OperationError.from_exception(store_error))

            if isinstance(outcome, OperationResult):
                return outcome
            if isinstance(outcome, ConfirmationRequired):
                return OperationResult.needs_confirmation(op, outcome)
            return OperationResult.success(op, outcome)

        return wrapper

    return decorator
