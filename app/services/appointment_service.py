import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AppointmentNotFoundError, BookingValidationError
from app.models.appointment import Appointment
from app.services.appointment_store import (
    count_upcoming_for_owner,
    delete_owned,
    find_owned_by_id,
    insert_appointment,
    list_booked_starts_between,
    list_upcoming_for_owner,
    to_naive_utc,
)
from app.services.booking_validator import BookingCandidate, validate_booking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentPage:
    page: int
    per_page: int
    total: int
    total_pages: int
    appointments: list[Appointment]


def _positive_or(value: int | None, default: int) -> int:
    return value if value is not None and value > 0 else default


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def create_appointment(
    session: AsyncSession, owner_id: int, candidate: BookingCandidate, now: datetime
) -> Appointment:
    """Validate and book a slot for ``owner_id``.

    Raises BookingValidationError with every broken rule, or SlotConflictError when
    a concurrent booking wins the slot after validation passed.
    """
    booked: set[datetime] = set()
    if candidate.starts_at is not None:
        booked = await list_booked_starts_between(session, candidate.starts_at, candidate.starts_at)
    result = validate_booking(candidate, now, booked)
    if not result.ok:
        logger.info(
            "Booking rejected for user %s: %s",
            owner_id,
            ", ".join(rule.value for rule in result.rules),
        )
        raise BookingValidationError(result.violations)

    appointment = Appointment(
        owner_id=owner_id,
        starts_at=to_naive_utc(candidate.starts_at),
        name=candidate.name.strip(),
        email=candidate.email.strip(),
        phone=_clean(candidate.phone),
        reason=_clean(candidate.reason),
    )
    appointment = await insert_appointment(session, appointment)
    logger.info("Appointment %s booked at %s by user %s", appointment.id, appointment.starts_at, owner_id)
    return appointment


async def list_upcoming_appointments(
    session: AsyncSession,
    owner_id: int,
    now: datetime,
    page: int | None = None,
    per_page: int | None = None,
) -> AppointmentPage:
    """Owner's appointments starting at or after ``now``, earliest first.

    Missing or non-positive ``page``/``per_page`` fall back to the configured defaults.
    """
    page = _positive_or(page, settings.default_page)
    per_page = _positive_or(per_page, settings.default_per_page)
    total = await count_upcoming_for_owner(session, owner_id, now)
    appointments = await list_upcoming_for_owner(
        session, owner_id, now, offset=(page - 1) * per_page, limit=per_page
    )
    return AppointmentPage(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page),
        appointments=appointments,
    )


async def get_appointment(session: AsyncSession, owner_id: int, appointment_id: int) -> Appointment:
    appointment = await find_owned_by_id(session, owner_id, appointment_id)
    if appointment is None:
        raise AppointmentNotFoundError(appointment_id)
    return appointment


async def cancel_appointment(session: AsyncSession, owner_id: int, appointment_id: int) -> None:
    if not await delete_owned(session, owner_id, appointment_id):
        raise AppointmentNotFoundError(appointment_id)
    logger.info("Appointment %s cancelled by user %s", appointment_id, owner_id)
