from datetime import date, time

from pydantic import BaseModel, model_validator


class BusySlotWrite(BaseModel):
    busy_date: date
    end_date: date | None = None
    start_time: time
    end_time: time
    title: str = "Besetzt"
    description: str | None = None

    @model_validator(mode="after")
    def _check_ranges(self) -> "BusySlotWrite":
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        if self.end_date is not None and self.end_date < self.busy_date:
            raise ValueError("end_date must not be before busy_date")
        self.title = self.title.strip() or "Besetzt"
        if self.description is not None:
            self.description = self.description.strip() or None
        return self
