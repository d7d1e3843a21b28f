"""Keeps the selected restaurant, its detail fetch and the booking form in step."""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from .booking import BookingWorkflow
from .fetch import ResourceController
from .gateway import RestaurantGateway
from .models import RestaurantDetail, RestaurantId, Selection

LOGGER = structlog.get_logger(__name__)


class SelectionCoordinator:
    def __init__(
        self,
        gateway: RestaurantGateway,
        detail: ResourceController[RestaurantDetail],
        booking: BookingWorkflow,
    ):
        self._gateway = gateway
        self._detail = detail
        self._booking = booking
        self._selection = Selection()

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def current_id(self) -> Optional[RestaurantId]:
        return self._selection.current_id

    def select(self, restaurant_id: Optional[RestaurantId]) -> Optional[asyncio.Task]:
        """Point at ``restaurant_id``; re-selecting the current one does nothing.

        A change empties the booking form and starts a detail fetch, which
        supersedes the fetch for the previous restaurant. ``None`` clears the
        selection and leaves the detail slot idle.
        """
        if restaurant_id == self._selection.current_id:
            return None

        previous = self._selection.current_id
        self._selection = Selection(current_id=restaurant_id)
        self._booking.reset(restaurant_id)
        LOGGER.info("selection.changed", previous=previous, current=restaurant_id)

        if restaurant_id is None:
            self._detail.reset()
            return None
        return self._detail.load(lambda: self._gateway.fetch_restaurant_detail(restaurant_id))
