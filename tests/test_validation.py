from dataclasses import replace
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from table_booker.errors import BookingValidationError
from table_booker.models import BookingDraft
from table_booker.validation import MESSAGES, Rule, UNPARSEABLE_DATETIME_MESSAGE, validate


def at(moment: datetime) -> dict[str, str]:
    return {"date": moment.strftime("%Y-%m-%d"), "time": moment.strftime("%H:%M:%S")}


def test_valid_draft_returns_unchanged_payload(valid_draft, now):
    result = validate(valid_draft, now)

    assert result.is_valid
    assert result.reason is None
    assert result.payload == valid_draft
    assert result.raise_for_invalid() == valid_draft


def test_payload_is_detached_from_later_edits(valid_draft, now):
    result = validate(valid_draft, now)
    valid_draft.name = "Someone Else"

    assert result.payload.name == "Ada Lovelace"


def test_missing_name_wins_over_bad_email(valid_draft, now):
    draft = replace(valid_draft, name="", email="not-an-email")

    result = validate(draft, now)

    assert not result.is_valid
    assert result.reason == MESSAGES[Rule.REQUIRED]
    assert result.rules == (Rule.REQUIRED, Rule.EMAIL)


@pytest.mark.parametrize("field", ["name", "email", "phone", "date", "time"])
def test_each_required_field(valid_draft, now, field):
    draft = replace(valid_draft, **{field: "   "})

    result = validate(draft, now)

    assert result.rules[0] is Rule.REQUIRED
    assert result.reason == "Please fill in all required fields (name, email, phone, date, time)."


def test_empty_draft_reports_required_once(now):
    result = validate(BookingDraft(), now)

    assert result.rules == (Rule.REQUIRED,)


@pytest.mark.parametrize(
    "email",
    ["ada@example", "ada@@example.com", "ada@example.c", "ada@example.toolong", "ádá@example.com", "ada example@x.com"],
)
def test_rejects_malformed_email(valid_draft, now, email):
    result = validate(replace(valid_draft, email=email), now)

    assert result.reason == "Please enter a valid email address."


@pytest.mark.parametrize("email", ["a.b_c-d@mail.example.com", "X1@y.io", "guest@host.museum"])
def test_accepts_email_shapes(valid_draft, now, email):
    assert validate(replace(valid_draft, email=email), now).is_valid


@pytest.mark.parametrize("phone", ["+447700900123", "0770 090", "07700-900", "١٢٣"])
def test_rejects_non_digit_phone(valid_draft, now, phone):
    result = validate(replace(valid_draft, phone=phone), now)

    assert result.reason == "Please enter a valid phone number (digits only)."


@pytest.mark.parametrize("guests,valid", [(0, False), (1, True), (12, True), (13, False), (-3, False)])
def test_guest_bounds(valid_draft, now, guests, valid):
    result = validate(replace(valid_draft, guests=guests), now)

    assert result.is_valid is valid
    if not valid:
        assert result.rules == (Rule.GUESTS,)
        assert "maximum of 12 people" in result.reason
        assert "contact us directly" in result.reason


def test_guest_count_from_form_text(valid_draft, now):
    assert validate(replace(valid_draft, guests="12"), now).is_valid
    assert validate(replace(valid_draft, guests="two"), now).rules == (Rule.GUESTS,)
    assert validate(replace(valid_draft, guests=True), now).rules == (Rule.GUESTS,)


def test_exactly_one_hour_ahead_is_too_soon(valid_draft, now):
    draft = replace(valid_draft, **at(now + timedelta(hours=1)))

    result = validate(draft, now)

    assert result.rules == (Rule.LEAD_TIME,)
    assert result.reason == "Booking must be scheduled at least 1 hour in the future."


def test_one_hour_and_one_second_ahead_is_accepted(valid_draft, now):
    draft = replace(valid_draft, **at(now + timedelta(hours=1, seconds=1)))

    assert validate(draft, now).is_valid


def test_past_booking_is_rejected(valid_draft, now):
    draft = replace(valid_draft, **at(now - timedelta(days=1)))

    assert validate(draft, now).rules == (Rule.LEAD_TIME,)


def test_booking_time_is_read_in_the_clock_timezone(valid_draft):
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2030, 6, 1, 18, 0, tzinfo=plus_two)

    # 19:30 local is 90 minutes after 18:00 local, regardless of UTC offset.
    assert validate(replace(valid_draft, date="2030-06-01", time="19:30"), now).is_valid
    assert not validate(replace(valid_draft, date="2030-06-01", time="18:45"), now).is_valid


def test_lead_time_spans_the_spring_forward_gap(valid_draft):
    london = ZoneInfo("Europe/London")
    now = datetime(2030, 3, 31, 0, 30, tzinfo=london)

    # 02:15 BST is 01:15 UTC, only 45 minutes after 00:30 GMT.
    result = validate(replace(valid_draft, date="2030-03-31", time="02:15"), now)

    assert result.rules == (Rule.LEAD_TIME,)


def test_lead_time_spans_the_fall_back_hour(valid_draft):
    london = ZoneInfo("Europe/London")
    now = datetime(2030, 10, 27, 1, 30, tzinfo=london)

    # 01:30 BST is 00:30 UTC; 02:15 GMT is 02:15 UTC.
    assert validate(replace(valid_draft, date="2030-10-27", time="02:15"), now).is_valid


def test_naive_clock_compares_wall_time(valid_draft):
    now = datetime(2030, 6, 1, 12, 0)

    assert validate(replace(valid_draft, date="2030-06-01", time="13:01"), now).is_valid
    assert not validate(replace(valid_draft, date="2030-06-01", time="13:00"), now).is_valid


def test_non_string_contact_fields_are_checked_not_raised(valid_draft, now):
    assert validate(replace(valid_draft, phone=5551234), now).is_valid

    result = validate(replace(valid_draft, email=12345), now)

    assert result.rules == (Rule.EMAIL,)


def test_unparseable_date_is_a_lead_time_failure(valid_draft, now):
    result = validate(replace(valid_draft, date="01/06/2030"), now)

    assert result.rules == (Rule.LEAD_TIME,)
    assert result.reason == UNPARSEABLE_DATETIME_MESSAGE


def test_validate_is_deterministic(valid_draft, now):
    draft = replace(valid_draft, phone="abc", guests=40)

    assert validate(draft, now) == validate(draft, now)


def test_raise_for_invalid_carries_result(valid_draft, now):
    result = validate(replace(valid_draft, guests=13), now)

    with pytest.raises(BookingValidationError) as excinfo:
        result.raise_for_invalid()

    assert excinfo.value.result is result
    assert str(excinfo.value) == result.reason
