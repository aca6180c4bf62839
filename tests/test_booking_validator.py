"""Tests for booking admission rules."""
from datetime import UTC, datetime

import pytest

from app.services.booking_validator import (
    BookingCandidate,
    RuleViolation,
    validate_booking,
)

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)


def _candidate(starts_at: str | None = "2025-06-16T09:00:00+00:00", **overrides) -> BookingCandidate:
    fields = {
        "starts_at": datetime.fromisoformat(starts_at) if starts_at else None,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "reason": "Consultation",
    }
    fields.update(overrides)
    return BookingCandidate(**fields)


class TestScenarios:
    def test_aligned_monday_morning_is_accepted(self):
        result = validate_booking(_candidate(), NOW)
        assert result.ok
        assert result.violations == []

    def test_quarter_past_is_misaligned(self):
        result = validate_booking(_candidate("2025-06-16T09:15:00+00:00"), NOW)
        assert result.rules == [RuleViolation.MISALIGNED_SLOT]

    def test_saturday_is_not_a_weekday(self):
        result = validate_booking(_candidate("2025-06-14T10:00:00+00:00"), NOW)
        assert result.rules == [RuleViolation.NOT_WEEKDAY]

    def test_five_pm_is_outside_business_hours(self):
        result = validate_booking(_candidate("2025-06-16T17:00:00+00:00"), NOW)
        assert result.rules == [RuleViolation.OUTSIDE_BUSINESS_HOURS]
        assert "UTC" in result.violations[0].message

    def test_half_past_four_is_the_last_valid_start(self):
        assert validate_booking(_candidate("2025-06-16T16:30:00+00:00"), NOW).ok

    def test_before_opening_is_outside_business_hours(self):
        result = validate_booking(_candidate("2025-06-16T08:30:00+00:00"), NOW)
        assert result.rules == [RuleViolation.OUTSIDE_BUSINESS_HOURS]

    def test_already_booked_slot(self):
        booked = {datetime(2025, 6, 16, 9, 0, tzinfo=UTC)}
        result = validate_booking(_candidate(), NOW, booked)
        assert result.rules == [RuleViolation.SLOT_ALREADY_BOOKED]
        assert result.violations[0].message == "This time slot is already booked"

    def test_booked_match_is_by_instant_not_by_wall_clock(self):
        booked = {datetime(2025, 6, 16, 9, 0, tzinfo=UTC)}
        same_instant = _candidate("2025-06-16T11:00:00+02:00")
        assert validate_booking(same_instant, NOW, booked).rules == [RuleViolation.SLOT_ALREADY_BOOKED]
        assert validate_booking(_candidate("2025-06-16T09:30:00+00:00"), NOW, booked).ok


class TestPastSlots:
    def test_slot_before_now(self):
        result = validate_booking(_candidate("2025-06-09T09:00:00+00:00"), NOW)
        assert result.rules == [RuleViolation.PAST_SLOT]

    def test_slot_exactly_now_is_not_future(self):
        result = validate_booking(_candidate("2025-06-10T12:00:00+00:00"), NOW)
        assert result.rules == [RuleViolation.PAST_SLOT]


class TestSubmittedOffset:
    def test_rules_apply_in_the_submitted_locality(self):
        # 12:30 UTC is fine in UTC, but the client submitted 18:00 local
        result = validate_booking(_candidate("2025-06-16T18:00:00+05:30"), NOW)
        assert result.rules == [RuleViolation.OUTSIDE_BUSINESS_HOURS]

    def test_local_morning_west_of_utc_is_accepted(self):
        assert validate_booking(_candidate("2025-06-16T09:00:00-07:00"), NOW).ok

    def test_local_monday_is_a_weekday_even_when_utc_is_sunday(self):
        result = validate_booking(_candidate("2025-06-16T07:00:00+09:00"), NOW)
        assert result.rules == [RuleViolation.OUTSIDE_BUSINESS_HOURS]

    def test_unmatched_offset_is_judged_in_utc(self):
        # No named zone sits at +05:17; the instant is 09:00 UTC on a Monday
        assert validate_booking(_candidate("2025-06-16T14:17:00+05:17"), NOW).ok


class TestFields:
    def test_missing_starts_at(self):
        result = validate_booking(_candidate(None), NOW)
        assert result.rules == [RuleViolation.REQUIRED_FIELDS_MISSING]
        assert "starts_at" in result.violations[0].message

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_blank_name(self, name):
        result = validate_booking(_candidate(name=name), NOW)
        assert result.rules == [RuleViolation.REQUIRED_FIELDS_MISSING]
        assert "name" in result.violations[0].message

    def test_missing_email_is_not_also_malformed(self):
        result = validate_booking(_candidate(email=None), NOW)
        assert result.rules == [RuleViolation.REQUIRED_FIELDS_MISSING]

    @pytest.mark.parametrize("email", ["not-an-email", "ada@", "@example.com", "ada example@example.com"])
    def test_malformed_email(self, email):
        result = validate_booking(_candidate(email=email), NOW)
        assert result.rules == [RuleViolation.INVALID_EMAIL_FORMAT]

    def test_optional_contact_fields(self):
        assert validate_booking(_candidate(phone=None, reason=None), NOW).ok


def test_every_broken_rule_is_reported():
    candidate = _candidate("2025-06-07T10:15:00+00:00", name="", email="not-an-email")
    booked = {datetime(2025, 6, 7, 10, 15, tzinfo=UTC)}

    result = validate_booking(candidate, NOW, booked)

    assert not result.ok
    assert result.rules == [
        RuleViolation.REQUIRED_FIELDS_MISSING,
        RuleViolation.INVALID_EMAIL_FORMAT,
        RuleViolation.MISALIGNED_SLOT,
        RuleViolation.NOT_WEEKDAY,
        RuleViolation.PAST_SLOT,
        RuleViolation.SLOT_ALREADY_BOOKED,
    ]
