from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    # naive UTC; one booking per slot
    starts_at: datetime = Field(sa_type=sa.DateTime(), unique=True, index=True)
    name: str
    email: str
    phone: str | None = None
    reason: str | None = None
    created_at: datetime = Field(sa_type=sa.DateTime(), default_factory=_utc_naive_now)

    @property
    def starts_at_utc(self) -> datetime:
        return self.starts_at.replace(tzinfo=UTC)

    @property
    def created_at_utc(self) -> datetime:
        return self.created_at.replace(tzinfo=UTC)


class AppointmentPublic(SQLModel):
    id: int
    owner_id: int
    starts_at: datetime
    name: str
    email: str
    phone: str | None = None
    reason: str | None = None
    created_at: datetime
