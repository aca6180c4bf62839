from datetime import date, datetime

from pydantic import AwareDatetime, BaseModel

from app.models.appointment import AppointmentPublic


class SlotInfo(BaseModel):
    starts_at: datetime
    ends_at: datetime
    available: bool


class AvailableSlotsResponse(BaseModel):
    timezone: str
    week_start: date
    slots: list[SlotInfo]


class BookAppointmentRequest(BaseModel):
    # Optional so missing fields reach the validator and are reported with the rest;
    # a timestamp without an offset is still rejected here.
    starts_at: AwareDatetime | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    reason: str | None = None


class ViolationInfo(BaseModel):
    code: str
    message: str


class ValidationErrorResponse(BaseModel):
    errors: list[ViolationInfo]


class AppointmentPageResponse(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int
    appointments: list[AppointmentPublic]
