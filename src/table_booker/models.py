"""Data models shared across the client."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

RestaurantId = Union[int, str]


def _coerce_rating(value: Any) -> Any:
    """Missing ratings become NaN so they sort as lowest."""
    if value is None or value == "":
        return math.nan
    return value


class RestaurantSummary(BaseModel):
    """One entry of the restaurant collection."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RestaurantId
    name: str
    short_description: str = Field(default="", alias="shortDescription")
    rating: float = math.nan

    @field_validator("rating", mode="before")
    @classmethod
    def missing_rating_is_nan(cls, value: Any) -> Any:
        return _coerce_rating(value)


class OpeningHours(BaseModel):
    """Weekday and weekend opening hours as free text."""

    model_config = ConfigDict(frozen=True)

    weekday: Optional[str] = None
    weekend: Optional[str] = None


class RestaurantDetail(BaseModel):
    """Full record for the currently selected restaurant.

    The service nests address, hours, review score and contact under a
    ``details`` object; both that shape and a flat one are accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RestaurantId
    name: str
    short_description: str = Field(default="", alias="shortDescription")
    cuisine: Optional[str] = None
    rating: float = math.nan
    address: Optional[str] = None
    opening_hours: OpeningHours = Field(default_factory=OpeningHours, alias="openingHours")
    review_score: Optional[float] = Field(default=None, alias="reviewScore")
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")

    @field_validator("rating", mode="before")
    @classmethod
    def missing_rating_is_nan(cls, value: Any) -> Any:
        return _coerce_rating(value)

    @model_validator(mode="before")
    @classmethod
    def flatten_details(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        nested = data.get("details")
        if not isinstance(nested, dict):
            return data
        merged = {key: value for key, value in data.items() if key != "details"}
        for key, value in nested.items():
            merged.setdefault(key, value)
        if merged.get("openingHours") is None:
            merged.pop("openingHours", None)
        return merged


@dataclass
class BookingDraft:
    """Booking form contents, edited field by field."""

    name: str = ""
    email: str = ""
    phone: str = ""
    date: str = ""
    time: str = ""
    guests: int = 1

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the bookings endpoint."""
        return asdict(self)


@dataclass(frozen=True)
class Selection:
    """Which restaurant the list and detail views currently point at."""

    current_id: Optional[RestaurantId] = None
