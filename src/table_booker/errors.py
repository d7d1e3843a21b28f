"""Exception hierarchy shared by the gateway and the workflows."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .validation import ValidationResult


class TableBookerError(Exception):
    """Base class for every error raised by this package."""


class BookingValidationError(TableBookerError):
    """A booking draft broke one of the client-side rules."""

    def __init__(self, result: "ValidationResult"):
        super().__init__(result.reason)
        self.result = result


class GatewayError(TableBookerError):
    """The restaurant service could not satisfy a request."""


class NetworkError(GatewayError):
    """Transport failure, unexpected status or unreadable response body."""


class NotFoundError(GatewayError):
    """The requested restaurant no longer exists."""


class RejectedError(GatewayError):
    """The service refused the booking (for example the slot is taken)."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StaleResponseError(TableBookerError):
    """A completion arrived for a request that has since been superseded."""

    def __init__(self, generation: int, current: int):
        super().__init__(f"response for generation {generation} superseded by {current}")
        self.generation = generation
        self.current = current
