from datetime import date, datetime, time
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from cbrc.models.appointment import utc_now


def _new_id() -> str:
    return str(uuid4())


class BusySlot(SQLModel, table=True):
    """Owner-blocked window: [start_time, end_time) on every day from busy_date to end_date."""

    __tablename__ = "busy_slots"
    id: str = Field(default_factory=_new_id, primary_key=True)
    busy_date: date = Field(index=True)
    end_date: date | None = Field(default=None, index=True)  # None = single day
    start_time: time
    end_time: time
    title: str = "Besetzt"
    description: str | None = None
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class BusySlotPublic(SQLModel):
    id: str
    busy_date: date
    end_date: date | None = None
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    title: str
    description: str | None = None
