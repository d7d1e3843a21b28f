"""Filtered and sorted views over the restaurant collection."""

from __future__ import annotations

import asyncio
import locale
import math
from typing import Callable, Generic, Iterable, Literal, Optional, Sequence, TypeVar

import structlog

from .models import RestaurantSummary

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")

SortKey = Literal["name", "rating"]
SORT_KEYS: tuple[str, ...] = ("name", "rating")
DEFAULT_DEBOUNCE_SECONDS = 0.3


def _name_key(restaurant: RestaurantSummary) -> str:
    return locale.strxfrm(restaurant.name.casefold())


def _rating_key(restaurant: RestaurantSummary) -> float:
    # NaN and infinities would make the order depend on input position.
    return restaurant.rating if math.isfinite(restaurant.rating) else -math.inf


def derive_view(
    source: Iterable[RestaurantSummary],
    raw_query: str,
    sort_key: SortKey = "name",
) -> list[RestaurantSummary]:
    """Return the restaurants whose name contains ``raw_query``, sorted.

    Matching ignores case. ``"name"`` sorts ascending by locale collation and
    ``"rating"`` sorts highest first; both sorts are stable. The source is
    never modified.
    """
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_key!r}; expected one of {', '.join(SORT_KEYS)}")

    needle = (raw_query or "").casefold()
    view = [restaurant for restaurant in source if needle in restaurant.name.casefold()]
    if sort_key == "name":
        view.sort(key=_name_key)
    else:
        view.sort(key=_rating_key, reverse=True)
    return view


class Debouncer(Generic[T]):
    """Deliver only the last value pushed within a quiet window."""

    _UNSET = object()

    def __init__(self, delay: float, callback: Callable[[T], None]):
        self._delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: object = self._UNSET

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value: T) -> None:
        """Restart the quiet window with ``value`` as the candidate."""
        self.cancel()
        self._pending = value
        self._handle = asyncio.get_running_loop().call_later(self._delay, self._fire)

    def flush(self) -> None:
        """Deliver the pending value now instead of waiting."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = self._UNSET

    def _fire(self) -> None:
        value = self._pending
        self._handle = None
        self._pending = self._UNSET
        if value is not self._UNSET:
            self._callback(value)  # type: ignore[arg-type]


ViewListener = Callable[[list[RestaurantSummary]], None]


class ListViewPipeline:
    """Keeps a derived view in step with the collection, query and sort key.

    Query edits are debounced; only the debounce callback moves
    ``effective_query``. Sort changes and new collections apply at once.
    """

    def __init__(
        self,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        sort_key: SortKey = "name",
    ):
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {sort_key!r}")
        self._source: tuple[RestaurantSummary, ...] = ()
        self._raw_query = ""
        self._effective_query = ""
        self._sort_key: SortKey = sort_key
        self._view: list[RestaurantSummary] = []
        self._listeners: list[ViewListener] = []
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._apply_query)
        self._disposed = False

    @property
    def source(self) -> tuple[RestaurantSummary, ...]:
        return self._source

    @property
    def raw_query(self) -> str:
        return self._raw_query

    @property
    def effective_query(self) -> str:
        return self._effective_query

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    @property
    def view(self) -> list[RestaurantSummary]:
        return list(self._view)

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_source(self, restaurants: Sequence[RestaurantSummary]) -> None:
        """Replace the whole collection."""
        if self._disposed:
            return
        self._source = tuple(restaurants)
        self._recompute()

    def set_query(self, raw_query: str) -> None:
        """Buffer a query edit until the input has been quiet long enough."""
        if self._disposed:
            return
        self._raw_query = raw_query
        self._debouncer.push(raw_query)

    def flush_query(self) -> None:
        self._debouncer.flush()

    def set_sort(self, sort_key: SortKey) -> None:
        if self._disposed:
            return
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {sort_key!r}")
        if sort_key == self._sort_key:
            return
        self._sort_key = sort_key
        self._recompute()

    def dispose(self) -> None:
        self._debouncer.cancel()
        self._listeners.clear()
        self._disposed = True

    def _apply_query(self, query: str) -> None:
        if self._disposed or query == self._effective_query:
            return
        self._effective_query = query
        LOGGER.debug("listing.query_applied", query=query)
        self._recompute()

    def _recompute(self) -> None:
        self._view = derive_view(self._source, self._effective_query, self._sort_key)
        for listener in list(self._listeners):
            listener(self.view)
