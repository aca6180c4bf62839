from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_now, get_session
from app.api.schemas.appointment import AvailableSlotsResponse, SlotInfo
from app.core.config import settings
from app.services.slot_service import get_available_slots

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    timezone: str | None = Query(None, description="IANA name (e.g. America/New_York) or offset like +05:30"),
    week_start: date | None = Query(None, description="YYYY-MM-DD; defaults to next Monday"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> AvailableSlotsResponse:
    """Bookable slots for the 5 days from week_start, rendered in the requested timezone.

    Weekends and slots already in the past are omitted; booked slots have available=false.
    """
    week = await get_available_slots(session, now, timezone=timezone, week_start=week_start)
    duration = timedelta(minutes=settings.slot_duration_minutes)
    return AvailableSlotsResponse(
        timezone=week.timezone,
        week_start=week.week_start,
        slots=[
            SlotInfo(starts_at=s.starts_at, ends_at=s.starts_at + duration, available=s.available)
            for s in week.slots
        ],
    )
