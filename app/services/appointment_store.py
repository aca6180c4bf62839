"""Persistence for booked appointments.

Columns are TIMESTAMP WITHOUT TIME ZONE holding UTC; everything crossing this
module's boundary is an aware UTC datetime. The unique index on ``starts_at`` is
what actually guarantees one booking per slot under concurrent requests.
"""
import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import SlotConflictError
from app.models.appointment import Appointment
from app.services.booking_validator import slot_taken

logger = logging.getLogger(__name__)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def from_naive_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


async def insert_appointment(session: AsyncSession, appointment: Appointment) -> Appointment:
    """Persist a validated appointment.

    Raises SlotConflictError when another booking took the same start instant
    between the caller's pre-check and this write.
    """
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        logger.info("Slot %s taken concurrently, insert rejected", appointment.starts_at)
        raise SlotConflictError([slot_taken()]) from e
    await session.refresh(appointment)
    return appointment


async def list_booked_starts_between(
    session: AsyncSession, start_inclusive: datetime, end_inclusive: datetime
) -> set[datetime]:
    result = await session.execute(
        select(Appointment.starts_at).where(
            Appointment.starts_at >= to_naive_utc(start_inclusive),
            Appointment.starts_at <= to_naive_utc(end_inclusive),
        )
    )
    return {from_naive_utc(row[0]) for row in result.all()}


async def find_owned_by_id(
    session: AsyncSession, owner_id: int, appointment_id: int
) -> Appointment | None:
    result = await session.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.owner_id == owner_id,
        )
    )
    return result.scalar_one_or_none()


async def delete_owned(session: AsyncSession, owner_id: int, appointment_id: int) -> bool:
    result = await session.execute(
        delete(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.owner_id == owner_id,
        )
    )
    await session.flush()
    return bool(result.rowcount)


async def count_upcoming_for_owner(session: AsyncSession, owner_id: int, now: datetime) -> int:
    result = await session.execute(
        select(func.count()).select_from(Appointment).where(
            Appointment.owner_id == owner_id,
            Appointment.starts_at >= to_naive_utc(now),
        )
    )
    return result.scalar_one()


async def list_upcoming_for_owner(
    session: AsyncSession, owner_id: int, now: datetime, offset: int, limit: int
) -> list[Appointment]:
    result = await session.execute(
        select(Appointment)
        .where(
            Appointment.owner_id == owner_id,
            Appointment.starts_at >= to_naive_utc(now),
        )
        .order_by(Appointment.starts_at, Appointment.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())
