"""Plain-text rendering of restaurants and booking outcomes."""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from .booking import BookingWorkflow
from .fetch import FetchState
from .models import RestaurantDetail, RestaurantSummary
from .utils import normalise_whitespace

NOT_AVAILABLE = "Not available"


def format_rating(rating: float) -> str:
    if not math.isfinite(rating):
        return "unrated"
    return f"{rating:.1f}/5"


def format_restaurant_list(restaurants: Sequence[RestaurantSummary]) -> str:
    """One line per restaurant, in view order."""
    if not restaurants:
        return "No restaurants match."
    lines = ["Restaurants:"]
    for restaurant in restaurants:
        description = normalise_whitespace(restaurant.short_description)
        suffix = f" - {description}" if description else ""
        lines.append(f" • [{restaurant.id}] {restaurant.name} ({format_rating(restaurant.rating)}){suffix}")
    return "\n".join(lines)


def format_restaurant_detail(detail: RestaurantDetail) -> str:
    lines = [
        f"{detail.name} - Restaurant Details",
        f"Cuisine: {_fallback(detail.cuisine)}",
        f"Address: {_fallback(detail.address)}",
        f"Opening Hours (Weekday): {_fallback(detail.opening_hours.weekday)}",
        f"Opening Hours (Weekend): {_fallback(detail.opening_hours.weekend)}",
        f"Review Score: {_fallback(detail.review_score)}",
        f"Contact: {_fallback(detail.contact_email)}",
    ]
    return "\n".join(lines)


def format_fetch_state(state: FetchState[Any], *, empty: str = "No details available.") -> Optional[str]:
    """Status line for a slot that is not showing a value."""
    if state.is_loading:
        return "Loading..."
    if state.is_failed:
        return state.error
    if not state.is_ready:
        return empty
    return None


def format_booking_result(workflow: BookingWorkflow) -> str:
    if workflow.message:
        return workflow.message
    return f"Booking {workflow.status.value}."


def _fallback(value: object) -> str:
    # Zero scores are missing data, not a real score.
    if value is None or value == "" or value == 0:
        return NOT_AVAILABLE
    return str(value)
