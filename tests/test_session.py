import asyncio

import pytest

from table_booker.booking import BookingStatus
from table_booker.config import Settings
from table_booker.errors import NetworkError
from table_booker.fetch import FetchStatus
from table_booker.session import LIST_FAILURE_MESSAGE, BookingSession


def settings(**overrides):
    return Settings(debounce_seconds=0.05, **overrides)


@pytest.mark.asyncio
async def test_search_scenario_shows_only_cafe(gateway, sample_restaurants):
    async with BookingSession(settings(), gateway=gateway) as session:
        task = session.refresh()
        await asyncio.sleep(0)
        gateway.pending[0].set_result(sample_restaurants)
        await task
        assert [r.id for r in session.listing.view] == [3, 1, 2]

        session.listing.set_query("Cafe")
        await asyncio.sleep(0.1)
        view = session.listing.view

    assert [r.id for r in view] == [3]
    assert view[0].name == "Cafe C"


@pytest.mark.asyncio
async def test_failed_refresh_keeps_message_and_listing(gateway, sample_restaurants):
    async with BookingSession(settings(), gateway=gateway) as session:
        first = session.refresh()
        await asyncio.sleep(0)
        gateway.pending[0].set_result(sample_restaurants)
        await first

        second = session.refresh()
        await asyncio.sleep(0)
        gateway.pending[1].set_exception(NetworkError("offline"))
        await second

        state = session.restaurants.state
        view = session.listing.view

    assert state.status is FetchStatus.FAILED
    assert state.error == LIST_FAILURE_MESSAGE
    assert len(view) == 3


@pytest.mark.asyncio
async def test_book_flow_through_session(gateway, now, valid_draft, detail_factory):
    async with BookingSession(settings(), gateway=gateway, clock=lambda: now) as session:
        detail_task = session.selection.select(3)
        await asyncio.sleep(0)
        gateway.pending[0].set_result(detail_factory(3, "Cafe C"))
        await detail_task

        session.booking.update(
            name=valid_draft.name,
            email=valid_draft.email,
            phone=valid_draft.phone,
            date=valid_draft.date,
            time=valid_draft.time,
            guests=2,
        )
        submit = asyncio.ensure_future(session.booking.submit())
        await asyncio.sleep(0)
        gateway.pending[1].set_result(None)
        status = await submit

    assert status is BookingStatus.SUCCEEDED
    [(payload, restaurant_id)] = gateway.operations("submit_booking")
    assert restaurant_id == 3
    assert payload.guests == 2


@pytest.mark.asyncio
async def test_responses_after_close_are_ignored(gateway, sample_restaurants):
    session = BookingSession(settings(), gateway=gateway)
    async with session:
        task = session.refresh()
        await asyncio.sleep(0)
        session.listing.set_query("Cafe")
    gateway.pending[0].set_result(sample_restaurants)
    await task
    await asyncio.sleep(0.1)

    assert session.restaurants.state.status is FetchStatus.LOADING
    assert session.listing.view == []
    assert session.listing.effective_query == ""
