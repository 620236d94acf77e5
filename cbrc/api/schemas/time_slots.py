from pydantic import BaseModel

from cbrc.models.time_slot import TimeSlot


class TimeSlotsResponse(BaseModel):
    timeSlots: list[TimeSlot]
    date: str  # YYYY-MM-DD
    duration: int
