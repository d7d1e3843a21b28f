"""Validate-then-submit workflow for the booking form."""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from .errors import GatewayError, RejectedError
from .gateway import RestaurantGateway
from .models import BookingDraft, RestaurantId
from .validation import ValidationResult, validate

LOGGER = structlog.get_logger(__name__)

SUCCESS_MESSAGE = "Booking successful!"
FAILURE_MESSAGE = "Booking failed. Please try again."

_DRAFT_FIELDS = frozenset(field.name for field in fields(BookingDraft))


class BookingStatus(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureCategory(str, Enum):
    VALIDATION = "validation"
    NETWORK = "network"
    REJECTED = "rejected"


def local_now() -> datetime:
    return datetime.now().astimezone()


class BookingWorkflow:
    """Owns one booking draft and drives it through submission.

    ``EDITING -> SUBMITTING -> SUCCEEDED | FAILED -> EDITING``. A submit while
    one is in flight is ignored. :meth:`reset` bumps the generation, so an
    attempt still in flight for the previous restaurant completes but its
    outcome is dropped.
    """

    def __init__(
        self,
        gateway: RestaurantGateway,
        *,
        restaurant_id: Optional[RestaurantId] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self._gateway = gateway
        self._clock = clock
        self._restaurant_id = restaurant_id
        self._draft = BookingDraft()
        self._status = BookingStatus.EDITING
        self._message: Optional[str] = None
        self._failure_category: Optional[FailureCategory] = None
        self._last_validation: Optional[ValidationResult] = None
        self._generation = 0
        self._disposed = False

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def message(self) -> Optional[str]:
        """The one success or error message currently on show."""
        return self._message

    @property
    def failure_category(self) -> Optional[FailureCategory]:
        return self._failure_category

    @property
    def last_validation(self) -> Optional[ValidationResult]:
        return self._last_validation

    @property
    def restaurant_id(self) -> Optional[RestaurantId]:
        return self._restaurant_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def succeeded(self) -> bool:
        return self._status is BookingStatus.SUCCEEDED

    def update(self, **changes: Any) -> None:
        """Edit draft fields; a settled result goes back to editing."""
        unknown = set(changes) - _DRAFT_FIELDS
        if unknown:
            raise TypeError(f"Unknown booking field(s): {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(self._draft, name, value)
        if self._status in (BookingStatus.SUCCEEDED, BookingStatus.FAILED):
            self._to_editing()

    async def submit(self) -> BookingStatus:
        """Validate the draft and, when it passes, send it to the service."""
        if self._disposed:
            return self._status
        if self._status is BookingStatus.SUBMITTING:
            LOGGER.debug("booking.submit_ignored", restaurant_id=self._restaurant_id)
            return self._status

        self._message = None
        self._failure_category = None

        result = validate(self._draft, self._clock())
        self._last_validation = result
        if not result.is_valid:
            LOGGER.info("booking.invalid", rules=[rule.value for rule in result.rules])
            self._fail(FailureCategory.VALIDATION, result.reason)
            return self._status

        generation = self._generation
        restaurant_id = self._restaurant_id
        self._status = BookingStatus.SUBMITTING
        LOGGER.info("booking.submit.start", restaurant_id=restaurant_id, guests=result.payload.guests)

        try:
            await self._gateway.submit_booking(result.payload, restaurant_id=restaurant_id)
        except Exception as exc:  # noqa: BLE001
            if self._is_stale(generation):
                LOGGER.info("booking.submit.stale_discarded", restaurant_id=restaurant_id, outcome="failure")
                return self._status
            if isinstance(exc, RejectedError):
                category = FailureCategory.REJECTED
            else:
                category = FailureCategory.NETWORK
            log = LOGGER.warning if isinstance(exc, GatewayError) else LOGGER.exception
            log(
                "booking.submit.failed",
                restaurant_id=restaurant_id,
                category=category.value,
                error=str(exc),
            )
            self._fail(category, FAILURE_MESSAGE)
            return self._status

        if self._is_stale(generation):
            LOGGER.info("booking.submit.stale_discarded", restaurant_id=restaurant_id, outcome="success")
            return self._status

        self._status = BookingStatus.SUCCEEDED
        self._message = SUCCESS_MESSAGE
        LOGGER.info("booking.submit.succeeded", restaurant_id=restaurant_id)
        return self._status

    def reset(self, restaurant_id: Optional[RestaurantId] = None) -> None:
        """Start over with an empty draft for ``restaurant_id``."""
        self._generation += 1
        self._restaurant_id = restaurant_id
        self._draft = BookingDraft()
        self._last_validation = None
        self._to_editing()

    def dispose(self) -> None:
        self._generation += 1
        self._disposed = True

    def _is_stale(self, generation: int) -> bool:
        return self._disposed or generation != self._generation

    def _fail(self, category: FailureCategory, message: Optional[str]) -> None:
        self._status = BookingStatus.FAILED
        self._failure_category = category
        self._message = message

    def _to_editing(self) -> None:
        self._status = BookingStatus.EDITING
        self._message = None
        self._failure_category = None
