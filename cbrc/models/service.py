from uuid import uuid4

from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid4())


class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    duration_minutes: int = Field(gt=0)
    price_euros: float | None = None
    is_active: bool = True


class ServicePublic(SQLModel):
    id: str
    name: str
    duration_minutes: int
    price_euros: float | None = None
