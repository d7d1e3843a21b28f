"""Generation-guarded state machine for one fetched resource."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from .errors import GatewayError, NotFoundError, StaleResponseError

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_FAILURE_MESSAGE = "Failed to load data. Please try again later."
NOT_FOUND_MESSAGE = "No details available."


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState(Generic[T]):
    """Snapshot of a resource slot.

    ``value`` is only set when ready and ``error`` only when failed; a failure
    discards whatever value was previously held.
    """

    status: FetchStatus = FetchStatus.IDLE
    value: Optional[T] = None
    error: Optional[str] = None
    generation: int = 0

    @property
    def is_loading(self) -> bool:
        return self.status is FetchStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status is FetchStatus.READY

    @property
    def is_failed(self) -> bool:
        return self.status is FetchStatus.FAILED


Listener = Callable[[FetchState[T]], None]


class ResourceController(Generic[T]):
    """Owns one :class:`FetchState` and applies only the newest completion.

    Every :meth:`load` bumps the generation. A completion is applied only when
    the generation it captured is still current and the controller has not
    been disposed, so calling :meth:`load` again is how an earlier request is
    cancelled.
    """

    def __init__(self, name: str, *, failure_message: str = DEFAULT_FAILURE_MESSAGE):
        self.name = name
        self._failure_message = failure_message
        self._state: FetchState[T] = FetchState()
        self._disposed = False
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> FetchState[T]:
        return self._state

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self, fetch_fn: Callable[[], Awaitable[T]]) -> Optional[asyncio.Task]:
        """Start a new request for this slot, superseding any in flight."""
        if self._disposed:
            LOGGER.debug("fetch.load_after_dispose", resource=self.name)
            return None

        generation = self._state.generation + 1
        self._set_state(FetchState(status=FetchStatus.LOADING, generation=generation))
        LOGGER.debug("fetch.loading", resource=self.name, generation=generation)

        task = asyncio.get_running_loop().create_task(self._run(generation, fetch_fn))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def reset(self) -> None:
        """Return to idle, orphaning any request still in flight."""
        if self._disposed:
            return
        self._set_state(FetchState(generation=self._state.generation + 1))

    def dispose(self) -> None:
        """Stop accepting loads; late completions become no-ops."""
        self._disposed = True
        self._listeners.clear()
        LOGGER.debug("fetch.disposed", resource=self.name, generation=self._state.generation)

    async def _run(self, generation: int, fetch_fn: Callable[[], Awaitable[T]]) -> None:
        try:
            value = await fetch_fn()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._apply_failure(generation, exc)
            return
        self._apply_success(generation, value)

    def _ensure_current(self, generation: int) -> None:
        if self._disposed or generation != self._state.generation:
            raise StaleResponseError(generation, self._state.generation)

    def _apply_success(self, generation: int, value: T) -> None:
        try:
            self._ensure_current(generation)
        except StaleResponseError as exc:
            LOGGER.debug("fetch.stale_discarded", resource=self.name, outcome="success", reason=str(exc))
            return
        self._set_state(FetchState(status=FetchStatus.READY, value=value, generation=generation))
        LOGGER.info("fetch.ready", resource=self.name, generation=generation)

    def _apply_failure(self, generation: int, exc: Exception) -> None:
        try:
            self._ensure_current(generation)
        except StaleResponseError as stale:
            LOGGER.debug("fetch.stale_discarded", resource=self.name, outcome="failure", reason=str(stale))
            return
        reason = self._classify(exc)
        self._set_state(FetchState(status=FetchStatus.FAILED, error=reason, generation=generation))
        if isinstance(exc, GatewayError):
            LOGGER.warning("fetch.failed", resource=self.name, generation=generation, error=str(exc))
        else:
            LOGGER.error(
                "fetch.failed",
                resource=self.name,
                generation=generation,
                error=str(exc),
                exc_info=exc,
            )

    def _classify(self, exc: Exception) -> str:
        if isinstance(exc, NotFoundError):
            return NOT_FOUND_MESSAGE
        return self._failure_message

    def _set_state(self, state: FetchState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
