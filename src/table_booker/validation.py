"""Client-side rules a booking draft must satisfy before it is sent."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from .errors import BookingValidationError
from .models import BookingDraft

MAX_GUESTS = 12
MIN_GUESTS = 1
MIN_LEAD_TIME = timedelta(hours=1)

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}", re.ASCII)
PHONE_PATTERN = re.compile(r"[0-9]+", re.ASCII)

REQUIRED_FIELDS = ("name", "email", "phone", "date", "time")


class Rule(str, Enum):
    """Rules in the order they are checked."""

    REQUIRED = "required"
    EMAIL = "email"
    PHONE = "phone"
    GUESTS = "guests"
    LEAD_TIME = "lead_time"


MESSAGES = {
    Rule.REQUIRED: "Please fill in all required fields (name, email, phone, date, time).",
    Rule.EMAIL: "Please enter a valid email address.",
    Rule.PHONE: "Please enter a valid phone number (digits only).",
    Rule.GUESTS: (
        f"Bookings are limited to a maximum of {MAX_GUESTS} people. "
        "Please contact us directly for larger groups."
    ),
    Rule.LEAD_TIME: "Booking must be scheduled at least 1 hour in the future.",
}
UNPARSEABLE_DATETIME_MESSAGE = "Please enter a valid date and time."


@dataclass(frozen=True)
class Violation:
    rule: Rule
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of :func:`validate`.

    A valid result carries the payload to submit. An invalid one carries every
    violated rule in rule order; only the first is shown to the user.
    """

    payload: Optional[BookingDraft] = None
    violations: tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def reason(self) -> Optional[str]:
        """The single message to surface, or ``None`` when valid."""
        return self.violations[0].message if self.violations else None

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(violation.rule for violation in self.violations)

    def raise_for_invalid(self) -> BookingDraft:
        """Return the payload or raise :class:`BookingValidationError`."""
        if self.violations or self.payload is None:
            raise BookingValidationError(self)
        return self.payload


def validate(draft: BookingDraft, now: datetime) -> ValidationResult:
    """Check ``draft`` against the booking rules as of ``now``.

    Pure: the same draft and ``now`` always give the same result. A rule whose
    field is missing is left to the required-field rule rather than reported
    twice.
    """
    violations: list[Violation] = []

    present = {name: bool(str(getattr(draft, name) or "").strip()) for name in REQUIRED_FIELDS}
    if not all(present.values()):
        violations.append(_violation(Rule.REQUIRED))

    if present["email"] and not EMAIL_PATTERN.fullmatch(str(draft.email)):
        violations.append(_violation(Rule.EMAIL))

    if present["phone"] and not PHONE_PATTERN.fullmatch(str(draft.phone)):
        violations.append(_violation(Rule.PHONE))

    guests = _guest_count(draft.guests)
    if guests is None or not MIN_GUESTS <= guests <= MAX_GUESTS:
        violations.append(_violation(Rule.GUESTS))

    if present["date"] and present["time"]:
        requested = _combine(draft.date, draft.time, now)
        if requested is None:
            violations.append(Violation(Rule.LEAD_TIME, UNPARSEABLE_DATETIME_MESSAGE))
        elif not _far_enough_ahead(requested, now):
            violations.append(_violation(Rule.LEAD_TIME))

    if violations:
        return ValidationResult(violations=tuple(violations))
    return ValidationResult(payload=replace(draft))


def _violation(rule: Rule) -> Violation:
    return Violation(rule, MESSAGES[rule])


def _guest_count(value: Any) -> Optional[int]:
    # Form inputs hand over digit strings.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and PHONE_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _combine(date_text: Any, time_text: Any, now: datetime) -> Optional[datetime]:
    try:
        day = date.fromisoformat(str(date_text).strip())
        moment = time.fromisoformat(str(time_text).strip())
    except ValueError:
        return None
    return datetime.combine(day, moment.replace(tzinfo=None), tzinfo=now.tzinfo)


def _far_enough_ahead(requested: datetime, now: datetime) -> bool:
    # Aware datetimes sharing a tzinfo add and compare in wall-clock time,
    # so the lead time is measured between UTC instants.
    if now.tzinfo is None:
        return requested > now + MIN_LEAD_TIME
    return requested.astimezone(timezone.utc) > now.astimezone(timezone.utc) + MIN_LEAD_TIME
