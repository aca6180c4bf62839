"""Errors raised by the scheduling core.

Validation problems are collected as data first (see booking_validator) and only
raised once, carrying every violation, so callers can render them all at once.
"""
from collections.abc import Iterable
from typing import Any


class SchedulingError(Exception):
    """Base class for errors the booking engine hands back to callers."""


class BookingValidationError(SchedulingError):
    """A booking candidate broke one or more calendar rules."""

    def __init__(self, violations: Iterable[Any]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(v.message for v in self.violations))


class SlotConflictError(BookingValidationError):
    """The store rejected an insert because the start instant is already taken.

    Raised even when the validator's pre-check passed (two requests racing for the
    same slot); it carries the same violation the pre-check would have reported.
    """


class AppointmentNotFoundError(SchedulingError):
    """The appointment does not exist or is not owned by the requester."""

    def __init__(self, appointment_id: int) -> None:
        self.appointment_id = appointment_id
        super().__init__("Appointment not found or not yours")


class ConfigurationError(SchedulingError):
    """Unusable timezone input. Recovered locally by falling back to UTC."""


class WeekOutOfRangeError(SchedulingError):
    """The requested week runs past the range of representable dates."""

    def __init__(self, week_start: object) -> None:
        self.week_start = week_start
        super().__init__(f"week_start {week_start} is out of range")
