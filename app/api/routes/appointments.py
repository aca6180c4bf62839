from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_now, get_session
from app.api.schemas.appointment import (
    AppointmentPageResponse,
    BookAppointmentRequest,
    ValidationErrorResponse,
)
from app.models.appointment import Appointment, AppointmentPublic
from app.models.user import User
from app.services.appointment_service import (
    cancel_appointment,
    create_appointment,
    get_appointment,
    list_upcoming_appointments,
)
from app.services.booking_validator import BookingCandidate

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    """Public shape; stored naive UTC is handed out with an explicit offset."""
    return AppointmentPublic(
        id=a.id,
        owner_id=a.owner_id,
        starts_at=a.starts_at_utc,
        name=a.name,
        email=a.email,
        phone=a.phone,
        reason=a.reason,
        created_at=a.created_at_utc,
    )


@router.post(
    "",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ValidationErrorResponse}},
)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
) -> AppointmentPublic:
    candidate = BookingCandidate(
        starts_at=body.starts_at,
        name=body.name,
        email=body.email,
        phone=body.phone,
        reason=body.reason,
    )
    appointment = await create_appointment(session, current_user.id, candidate, now)
    return _to_public(appointment)


@router.get("", response_model=AppointmentPageResponse)
async def list_my_appointments(
    page: int | None = Query(None),
    per_page: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
) -> AppointmentPageResponse:
    result = await list_upcoming_appointments(
        session, current_user.id, now, page=page, per_page=per_page
    )
    return AppointmentPageResponse(
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        total_pages=result.total_pages,
        appointments=[_to_public(a) for a in result.appointments],
    )


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AppointmentPublic:
    return _to_public(await get_appointment(session, current_user.id, appointment_id))


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> None:
    await cancel_appointment(session, current_user.id, appointment_id)
