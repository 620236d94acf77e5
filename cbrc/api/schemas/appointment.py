import re
from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from cbrc.core.config import settings

_TIME_RE = re.compile(r"^\d{2}:\d{2}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

REQUIRED_APPOINTMENT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "service_id",
    "gender",
    "appointment_date",
    "appointment_time",
)


class CreateAppointmentRequest(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    service_id: str
    gender: Literal["DAMEN", "HERREN"]
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str  # HH:MM
    special_requests: str | None = None

    @field_validator("first_name", "last_name", "phone", "service_id", mode="before")
    @classmethod
    def _strip_required(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be blank")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("special_requests")
    @classmethod
    def _blank_requests_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("appointment_date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if not _DATE_RE.match(v):
            raise ValueError("appointment_date must be YYYY-MM-DD")
        try:
            d = date.fromisoformat(v)
        except ValueError:
            raise ValueError("appointment_date is not a valid calendar date")
        today = date.today()
        if d < today:
            raise ValueError("appointment_date is in the past")
        if d > today + timedelta(days=settings.booking_horizon_days):
            raise ValueError("appointment_date is too far in the future")
        return v

    @field_validator("appointment_time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        if not _TIME_RE.match(v):
            raise ValueError("appointment_time must be HH:MM")
        hour, minute = int(v[:2]), int(v[3:])
        if hour > 23 or minute > 59:
            raise ValueError("appointment_time is not a valid time of day")
        return v

    @property
    def date_value(self) -> date:
        return date.fromisoformat(self.appointment_date)


class CreateAppointmentResponse(BaseModel):
    success: bool
    error: str | None = None
    appointment_id: str | None = None
    message: str | None = None


class UpdateStatusRequest(BaseModel):
    appointment_id: str = Field(alias="appointmentId")
    status: Literal["pending", "confirmed", "cancelled", "completed"]
