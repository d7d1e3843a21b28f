"""Shared fixtures for the table booking tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from table_booker.models import BookingDraft, RestaurantDetail, RestaurantSummary

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


class ControlledGateway:
    """Gateway double whose calls stay pending until the test settles them.

    Every call appends ``(operation, args)`` to ``calls`` and a future to
    ``pending``; tests resolve or fail the futures in whatever order they
    want to exercise.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.pending: list[asyncio.Future] = []

    async def _call(self, operation: str, *args: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((operation, args))
        self.pending.append(future)
        return await future

    async def fetch_restaurants(self) -> list[RestaurantSummary]:
        return await self._call("fetch_restaurants")

    async def fetch_restaurant_detail(self, restaurant_id: Any) -> RestaurantDetail:
        return await self._call("fetch_restaurant_detail", restaurant_id)

    async def submit_booking(self, draft: BookingDraft, *, restaurant_id: Optional[Any] = None) -> None:
        return await self._call("submit_booking", draft, restaurant_id)

    def operations(self, name: str) -> list[tuple[Any, ...]]:
        return [args for operation, args in self.calls if operation == name]


def make_detail(restaurant_id: int, name: str) -> RestaurantDetail:
    return RestaurantDetail.model_validate(
        {
            "id": restaurant_id,
            "name": name,
            "shortDescription": f"About {name}",
            "cuisine": "Italian",
            "rating": 4.0,
            "details": {
                "address": f"{restaurant_id} High Street",
                "openingHours": {"weekday": "12:00-22:00", "weekend": "10:00-23:00"},
                "reviewScore": 8.5,
                "contactEmail": f"hello{restaurant_id}@example.com",
            },
        }
    )


@pytest.fixture
def gateway() -> ControlledGateway:
    return ControlledGateway()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sample_restaurants() -> list[RestaurantSummary]:
    return [
        RestaurantSummary(id=1, name="Restaurant A", shortDescription="Description A", rating=4.5),
        RestaurantSummary(id=2, name="Restaurant B", shortDescription="Description B", rating=4.0),
        RestaurantSummary(id=3, name="Cafe C", shortDescription="Description C", rating=3.0),
    ]


@pytest.fixture
def valid_draft() -> BookingDraft:
    return BookingDraft(
        name="Ada Lovelace",
        email="ada.lovelace@example.co.uk",
        phone="07700900123",
        date="2030-06-01",
        time="19:30",
        guests=4,
    )


@pytest.fixture
def detail_factory():
    return make_detail
