"""One browsing-and-booking session and everything it owns."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional

import structlog

from .booking import BookingWorkflow
from .config import Settings
from .fetch import FetchState, ResourceController
from .gateway import HttpRestaurantGateway, RestaurantGateway
from .listing import ListViewPipeline
from .models import RestaurantDetail, RestaurantSummary
from .selection import SelectionCoordinator
from .utils import now_in_timezone

LOGGER = structlog.get_logger(__name__)

LIST_FAILURE_MESSAGE = "Failed to load restaurants. Please try again later."
DETAIL_FAILURE_MESSAGE = "Failed to load restaurant details."


class BookingSession:
    """Owns the list and detail slots, the search pipeline and the booking form.

    Use as an async context manager; leaving it disposes every workflow so
    responses that arrive afterwards change nothing, and closes the HTTP
    client when the session created it.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        gateway: Optional[RestaurantGateway] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._settings = settings
        self._owned_gateway: Optional[HttpRestaurantGateway] = None
        if gateway is None:
            self._owned_gateway = HttpRestaurantGateway(settings)
            gateway = self._owned_gateway
        self._gateway = gateway

        self.restaurants: ResourceController[list[RestaurantSummary]] = ResourceController(
            "restaurants", failure_message=LIST_FAILURE_MESSAGE
        )
        self.detail: ResourceController[RestaurantDetail] = ResourceController(
            "restaurant_detail", failure_message=DETAIL_FAILURE_MESSAGE
        )
        self.listing = ListViewPipeline(debounce_seconds=settings.debounce_seconds)
        self.booking = BookingWorkflow(
            gateway,
            clock=clock or (lambda: now_in_timezone(settings.timezone)),
        )
        self.selection = SelectionCoordinator(gateway, self.detail, self.booking)
        self.restaurants.subscribe(self._on_restaurants)
        self._closed = False

    async def __aenter__(self) -> "BookingSession":
        LOGGER.debug("session.open", api_base_url=self._settings.api_base_url)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def refresh(self) -> Optional[asyncio.Task]:
        """Reload the restaurant collection."""
        return self.restaurants.load(self._gateway.fetch_restaurants)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.restaurants.dispose()
        self.detail.dispose()
        self.listing.dispose()
        self.booking.dispose()
        if self._owned_gateway is not None:
            await self._owned_gateway.aclose()
        LOGGER.debug("session.closed")

    def _on_restaurants(self, state: FetchState[list[RestaurantSummary]]) -> None:
        if state.is_ready and state.value is not None:
            self.listing.set_source(state.value)
