"""Command-line entry point for the table booking client."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from .booking import BookingStatus
from .config import Settings
from .formatting import (
    format_booking_result,
    format_fetch_state,
    format_restaurant_detail,
    format_restaurant_list,
)
from .listing import SORT_KEYS
from .models import RestaurantId
from .session import BookingSession

LOGGER = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_restaurant_id(text: str) -> RestaurantId:
    """Numeric ids stay numbers; anything else is passed through opaque."""
    stripped = text.strip()
    return int(stripped) if stripped.isdigit() else stripped


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse restaurants and book a table.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List restaurants.")
    list_parser.add_argument("--query", default="", help="Only show names containing this text.")
    list_parser.add_argument("--sort", choices=SORT_KEYS, default="name")

    show_parser = subparsers.add_parser("show", help="Show one restaurant's details.")
    show_parser.add_argument("restaurant_id", type=parse_restaurant_id)

    book_parser = subparsers.add_parser("book", help="Request a table.")
    book_parser.add_argument("restaurant_id", type=parse_restaurant_id)
    book_parser.add_argument("--name", required=True)
    book_parser.add_argument("--email", required=True)
    book_parser.add_argument("--phone", required=True)
    book_parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    book_parser.add_argument("--time", required=True, help="HH:MM")
    book_parser.add_argument("--guests", type=int, default=1)
    return parser


async def list_restaurants(session: BookingSession, query: str, sort_key: str) -> int:
    task = session.refresh()
    if task is not None:
        await task
    state = session.restaurants.state
    if not state.is_ready:
        print(format_fetch_state(state), file=sys.stderr)
        return 1
    session.listing.set_sort(sort_key)  # type: ignore[arg-type]
    session.listing.set_query(query)
    session.listing.flush_query()
    print(format_restaurant_list(session.listing.view))
    return 0


async def show_restaurant(session: BookingSession, restaurant_id: RestaurantId) -> int:
    task = session.selection.select(restaurant_id)
    if task is not None:
        await task
    state = session.detail.state
    if state.is_ready and state.value is not None:
        print(format_restaurant_detail(state.value))
        return 0
    print(format_fetch_state(state), file=sys.stderr)
    return 1


async def book_table(session: BookingSession, args: argparse.Namespace) -> int:
    task = session.selection.select(args.restaurant_id)
    if task is not None:
        await task
    detail = session.detail.state
    if not detail.is_ready:
        LOGGER.info("booking.refused", restaurant_id=args.restaurant_id, detail_status=detail.status.value)
        print(format_fetch_state(detail), file=sys.stderr)
        return 1
    session.booking.update(
        name=args.name,
        email=args.email,
        phone=args.phone,
        date=args.date,
        time=args.time,
        guests=args.guests,
    )
    status = await session.booking.submit()
    message = format_booking_result(session.booking)
    if status is BookingStatus.SUCCEEDED:
        print(message)
        return 0
    print(message, file=sys.stderr)
    return 1


async def run(settings: Settings, args: argparse.Namespace) -> int:
    async with BookingSession(settings) as session:
        if args.command == "list":
            return await list_restaurants(session, args.query, args.sort)
        if args.command == "show":
            return await show_restaurant(session, args.restaurant_id)
        return await book_table(session, args)


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        configure_logging()
        LOGGER.error("settings.error", error=str(exc))
        return 2

    configure_logging(settings.log_level)
    try:
        return asyncio.run(run(settings, args))
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("cli.failed", command=args.command, error=str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
