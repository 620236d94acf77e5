from cbrc.core.config import BusinessHours, settings
from cbrc.models.time_slot import TimeSlot


def generate_fallback_slots(duration: int, hours: BusinessHours | None = None) -> list[TimeSlot]:
    """Slots that structurally fit within business hours, all marked available.

    Knows nothing about bookings, so it is only an upper bound on real availability.
    Starts that would run past closing are left out rather than marked unavailable.
    Runs only after the authoritative query failed; never touches storage or network.
    """
    hours = hours or settings.business_hours
    if duration <= 0 or hours.granularity <= 0:
        return []
    slots: list[TimeSlot] = []
    for start in range(hours.open_minute, hours.close_minute, hours.granularity):
        end_hour, end_minute = divmod(start + duration, 60)
        close_hour, close_minute = divmod(hours.close_minute, 60)
        if (end_hour, end_minute) > (close_hour, close_minute):
            continue
        hour, minute = divmod(start, 60)
        slots.append(TimeSlot(time=f"{hour:02d}:{minute:02d}", available=True))
    return slots
