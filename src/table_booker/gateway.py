"""HTTP gateway to the restaurant service."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx
import structlog
from pydantic import ValidationError

from .config import Settings
from .errors import NetworkError, NotFoundError, RejectedError
from .models import BookingDraft, RestaurantDetail, RestaurantId, RestaurantSummary

LOGGER = structlog.get_logger(__name__)


class RestaurantGateway(Protocol):
    """Operations the workflows need from the restaurant service."""

    async def fetch_restaurants(self) -> list[RestaurantSummary]: ...

    async def fetch_restaurant_detail(self, restaurant_id: RestaurantId) -> RestaurantDetail: ...

    async def submit_booking(
        self,
        draft: BookingDraft,
        *,
        restaurant_id: Optional[RestaurantId] = None,
    ) -> None: ...


class HttpRestaurantGateway:
    """``RestaurantGateway`` backed by an ``httpx.AsyncClient``.

    When no client is supplied one is created from the settings and closed by
    :meth:`aclose`; a supplied client is left for its owner to close.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout_seconds,
        )

    async def __aenter__(self) -> "HttpRestaurantGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_restaurants(self) -> list[RestaurantSummary]:
        """Fetch the full restaurant collection."""
        response = await self._request("GET", "/restaurants")
        self._raise_for_status(response)
        body = self._json(response)
        if not isinstance(body, list):
            LOGGER.error("gateway.unexpected_body", path="/restaurants", kind=type(body).__name__)
            raise NetworkError("Expected a list of restaurants")
        try:
            restaurants = [RestaurantSummary.model_validate(item) for item in body]
        except ValidationError as exc:
            LOGGER.error("gateway.parse_failed", path="/restaurants", error=str(exc))
            raise NetworkError("Restaurant list could not be parsed") from exc
        LOGGER.info("gateway.restaurants.fetched", count=len(restaurants))
        return restaurants

    async def fetch_restaurant_detail(self, restaurant_id: RestaurantId) -> RestaurantDetail:
        """Fetch one restaurant's detail record."""
        path = f"/restaurants/{restaurant_id}"
        response = await self._request("GET", path)
        if response.status_code == httpx.codes.NOT_FOUND:
            LOGGER.info("gateway.restaurant.not_found", restaurant_id=restaurant_id)
            raise NotFoundError(f"Restaurant {restaurant_id} not found")
        self._raise_for_status(response)
        try:
            detail = RestaurantDetail.model_validate(self._json(response))
        except ValidationError as exc:
            LOGGER.error("gateway.parse_failed", path=path, error=str(exc))
            raise NetworkError(f"Restaurant {restaurant_id} could not be parsed") from exc
        LOGGER.info("gateway.restaurant.fetched", restaurant_id=restaurant_id)
        return detail

    async def submit_booking(
        self,
        draft: BookingDraft,
        *,
        restaurant_id: Optional[RestaurantId] = None,
    ) -> None:
        """Post a booking request; 4xx answers are service-side rejections."""
        payload = draft.to_payload()
        if restaurant_id is not None:
            payload["restaurantId"] = restaurant_id

        response = await self._request("POST", "/bookings", json=payload)
        if response.is_success:
            LOGGER.info("gateway.booking.accepted", restaurant_id=restaurant_id)
            return
        if response.is_client_error:
            LOGGER.warning(
                "gateway.booking.rejected",
                restaurant_id=restaurant_id,
                status_code=response.status_code,
                body=response.text,
            )
            raise RejectedError(
                f"Booking rejected with {response.status_code}",
                status_code=response.status_code,
            )
        self._raise_for_status(response)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        LOGGER.debug("gateway.request.start", method=method, path=path)
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.error("gateway.request.failed", method=method, path=path, error=str(exc))
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        LOGGER.error(
            "gateway.bad_status",
            url=str(response.request.url),
            status_code=response.status_code,
            body=response.text,
        )
        raise NetworkError(f"Service answered {response.status_code}")

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            LOGGER.error("gateway.json_decode_failed", url=str(response.request.url))
            raise NetworkError("Service returned malformed JSON") from exc
