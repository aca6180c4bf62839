"""Admission rules for a new appointment.

Pure: the current instant and the already-booked start instants are passed in, and
every broken rule is collected instead of stopping at the first one.
"""
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from email_validator import EmailNotValidError, validate_email

from app.core.config import settings
from app.services.time_grid import (
    UTC_ZONE,
    ResolvedZone,
    format_offset,
    is_aligned,
    is_future,
    is_weekday,
    is_within_business_hours,
    resolve_timezone,
    to_utc,
)

SLOT_TAKEN_MESSAGE = "This time slot is already booked"


class RuleViolation(str, Enum):
    REQUIRED_FIELDS_MISSING = "required_fields_missing"
    INVALID_EMAIL_FORMAT = "invalid_email_format"
    MISALIGNED_SLOT = "misaligned_slot"
    NOT_WEEKDAY = "not_weekday"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
    PAST_SLOT = "past_slot"
    SLOT_ALREADY_BOOKED = "slot_already_booked"


@dataclass(frozen=True)
class Violation:
    rule: RuleViolation
    message: str


def slot_taken() -> Violation:
    return Violation(RuleViolation.SLOT_ALREADY_BOOKED, SLOT_TAKEN_MESSAGE)


@dataclass(frozen=True)
class BookingCandidate:
    """A booking request as submitted, before anything is persisted.

    ``starts_at`` keeps the offset the client sent; that offset is the locality the
    weekday and business-hours rules are evaluated in.
    """

    starts_at: datetime | None
    name: str | None
    email: str | None
    phone: str | None = None
    reason: str | None = None

    def display_zone(self) -> ResolvedZone:
        if self.starts_at is None:
            return UTC_ZONE
        return resolve_timezone(format_offset(self.starts_at), at=self.starts_at)


@dataclass
class BookingValidation:
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def rules(self) -> list[RuleViolation]:
        return [v.rule for v in self.violations]

    def add(self, rule: RuleViolation, message: str) -> None:
        if rule not in self.rules:
            self.violations.append(Violation(rule, message))


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _check_required(candidate: BookingCandidate, result: BookingValidation) -> None:
    missing = [
        label
        for label, value in (("name", candidate.name), ("email", candidate.email))
        if _blank(value)
    ]
    if candidate.starts_at is None:
        missing.append("starts_at")
    if missing:
        result.add(RuleViolation.REQUIRED_FIELDS_MISSING, f"{', '.join(missing)} can't be blank")


def _check_email(email: str | None, result: BookingValidation) -> None:
    if _blank(email):
        return
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        result.add(RuleViolation.INVALID_EMAIL_FORMAT, "email is invalid")


def _check_calendar(
    candidate: BookingCandidate,
    now: datetime,
    booked_starts: Collection[datetime],
    result: BookingValidation,
) -> None:
    starts_at = candidate.starts_at
    zone = candidate.display_zone()

    if not is_aligned(starts_at):
        result.add(
            RuleViolation.MISALIGNED_SLOT,
            f"must start on a {settings.slot_duration_minutes}-minute boundary",
        )
    if not is_weekday(starts_at, zone.tz):
        result.add(RuleViolation.NOT_WEEKDAY, "must be on a weekday")
    elif not is_within_business_hours(starts_at, zone.tz):
        result.add(
            RuleViolation.OUTSIDE_BUSINESS_HOURS,
            f"must be within {settings.business_start_hour:02d}:00-"
            f"{settings.business_end_hour:02d}:00 ({zone.name})",
        )
    if not is_future(starts_at, now):
        result.add(RuleViolation.PAST_SLOT, "cannot be in the past")
    if to_utc(starts_at) in {to_utc(b) for b in booked_starts}:
        result.add(RuleViolation.SLOT_ALREADY_BOOKED, SLOT_TAKEN_MESSAGE)


def validate_booking(
    candidate: BookingCandidate,
    now: datetime,
    booked_starts: Collection[datetime] = (),
) -> BookingValidation:
    """Check a candidate against every admission rule.

    ``booked_starts`` holds start instants already taken by any owner; the calendar
    is a single shared resource.
    """
    result = BookingValidation()
    _check_required(candidate, result)
    _check_email(candidate.email, result)
    if candidate.starts_at is not None:
        _check_calendar(candidate, now, booked_starts, result)
    return result
