from datetime import UTC, date, datetime, time
from uuid import uuid4

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel

APPOINTMENT_STATUSES = ("pending", "confirmed", "cancelled", "completed")

# Only these statuses free up the slot again
NON_BLOCKING_STATUSES = ("cancelled",)


def utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid4())


_ACTIVE_SLOT = text("status != 'cancelled'")


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per start time; cancelled rows do not hold the slot
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT,
            sqlite_where=_ACTIVE_SLOT,
        ),
    )
    id: str = Field(default_factory=_new_id, primary_key=True)
    first_name: str
    last_name: str
    email: str
    phone: str
    service_id: str = Field(foreign_key="services.id", index=True)
    gender: str
    appointment_date: date = Field(index=True)
    appointment_time: time
    special_requests: str | None = None
    status: str = "pending"
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    confirmed_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    cancelled_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))


class AppointmentPublic(SQLModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    service_id: str
    gender: str
    appointment_date: date
    appointment_time: str  # HH:MM
    special_requests: str | None = None
    status: str
    created_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
