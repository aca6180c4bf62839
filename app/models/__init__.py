from app.models.user import User, UserCreate, UserPublic
from app.models.appointment import Appointment, AppointmentPublic

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "Appointment",
    "AppointmentPublic",
]
