from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.appointment_store import list_booked_starts_between
from app.services.time_grid import is_future, resolve_timezone, slots_for_week, week_anchor


@dataclass(frozen=True)
class Slot:
    starts_at: datetime  # aware, in the display timezone
    available: bool


@dataclass(frozen=True)
class WeekAvailability:
    timezone: str
    week_start: date
    slots: list[Slot]


def _booking_range(anchor: date, candidates: list[datetime]) -> tuple[datetime, datetime]:
    """UTC bounds to load bookings for: the window's UTC days, stretched to cover
    every candidate (far-from-UTC zones spill onto neighbouring UTC days)."""
    start = datetime.combine(anchor, time.min, tzinfo=UTC)
    end = datetime.combine(
        anchor + timedelta(days=settings.booking_window_days - 1), time.max, tzinfo=UTC
    )
    if candidates:
        start = min(start, candidates[0])
        end = max(end, candidates[-1])
    return start, end


async def get_available_slots(
    session: AsyncSession,
    now: datetime,
    timezone: str | None = None,
    week_start: date | str | None = None,
) -> WeekAvailability:
    """Slots of the week in ``timezone``, each marked available unless booked.

    Slots at or before ``now`` are left out entirely rather than marked unavailable.
    Bookings are re-read on every call.
    """
    zone = resolve_timezone(timezone, at=now)
    anchor = week_anchor(now, week_start)
    candidates = [s for s in slots_for_week(zone, anchor) if is_future(s, now)]
    range_start, range_end = _booking_range(anchor, candidates)
    booked = await list_booked_starts_between(session, range_start, range_end)
    return WeekAvailability(
        timezone=zone.name,
        week_start=anchor,
        slots=[Slot(starts_at=s.astimezone(zone.tz), available=s not in booked) for s in candidates],
    )
