from sqlmodel import SQLModel


class TimeSlot(SQLModel):
    time: str  # HH:MM
    available: bool
    reason: str | None = None

    def to_wire(self) -> dict:
        """Wire shape: reason is omitted when unset."""
        return self.model_dump(exclude_none=True)
