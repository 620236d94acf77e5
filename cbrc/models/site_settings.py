from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from cbrc.models.appointment import utc_now

DEFAULT_MAINTENANCE_MESSAGE = "Wir sind bald wieder da!"


class SiteSettings(SQLModel, table=True):
    """Single-row table; a missing row means the defaults."""

    __tablename__ = "settings"
    id: int | None = Field(default=None, primary_key=True)
    maintenance_mode: bool = False
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class PublicSettings(SQLModel):
    maintenance_mode: bool = False
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE
