import logging
import re
from dataclasses import dataclass
from datetime import date, time
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.core.config import BusinessHours, settings
from cbrc.core.errors import ValidationError
from cbrc.models.appointment import NON_BLOCKING_STATUSES, Appointment
from cbrc.models.busy_slot import BusySlot
from cbrc.models.service import Service
from cbrc.models.time_slot import TimeSlot

logger = logging.getLogger(__name__)

REASON_BOOKED = "already booked"
REASON_BLOCKED = "blocked"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class BookedInterval:
    """Occupied time as [start_minute, end_minute) after midnight: a booking or an owner block."""

    start_minute: int
    end_minute: int
    reason: str = REASON_BOOKED


def first_overlap(start: int, end: int, booked: list[BookedInterval]) -> BookedInterval | None:
    for b in booked:
        if intervals_overlap(start, end, b.start_minute, b.end_minute):
            return b
    return None


def format_minute(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"


def minute_of(t: time) -> int:
    return t.hour * 60 + t.minute


def intervals_overlap(a: int, b: int, c: int, d: int) -> bool:
    """Half-open overlap of [a, b) and [c, d); touching endpoints do not overlap."""
    return a < d and c < b


def candidate_start_times(duration: int, hours: BusinessHours) -> list[int]:
    """Granularity-aligned starts from opening whose [start, start + duration) ends by closing."""
    if duration <= 0 or hours.granularity <= 0:
        return []
    starts: list[int] = []
    current = hours.open_minute
    while current + duration <= hours.close_minute:
        starts.append(current)
        current += hours.granularity
    return starts


def compute_time_slots(
    duration: int, booked: list[BookedInterval], hours: BusinessHours
) -> list[TimeSlot]:
    slots: list[TimeSlot] = []
    for start in candidate_start_times(duration, hours):
        clash = first_overlap(start, start + duration, booked)
        if clash:
            slots.append(TimeSlot(time=format_minute(start), available=False, reason=clash.reason))
        else:
            slots.append(TimeSlot(time=format_minute(start), available=True))
    return slots


def parse_iso_date(value: Any) -> date:
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValidationError("Date must be a YYYY-MM-DD string")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid calendar date: {value}")


def validate_slot_query(raw_date: Any, raw_duration: Any) -> tuple[date, int]:
    d = parse_iso_date(raw_date)
    # bool is an int subclass; true/false is not a duration
    if isinstance(raw_duration, bool) or not isinstance(raw_duration, int):
        raise ValidationError("Duration must be a positive integer number of minutes")
    if raw_duration <= 0:
        raise ValidationError("Duration must be a positive integer number of minutes")
    return d, raw_duration


async def get_booked_intervals(
    session: AsyncSession,
    d: date,
    hours: BusinessHours | None = None,
    exclude_appointment_id: str | None = None,
) -> list[BookedInterval]:
    """Non-cancelled appointments on the date, each spanning its service duration,
    followed by the owner's busy slots covering the date.
    """
    hours = hours or settings.business_hours
    q = (
        select(Appointment.appointment_time, Service.duration_minutes)
        .outerjoin(Service, Service.id == Appointment.service_id)
        .where(
            Appointment.appointment_date == d,
            Appointment.status.not_in(NON_BLOCKING_STATUSES),
        )
        .order_by(Appointment.appointment_time)
    )
    if exclude_appointment_id:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q)
    out: list[BookedInterval] = []
    for appointment_time, duration_minutes in result.all():
        start = minute_of(appointment_time)
        # Appointment whose service row is gone still holds one step
        length = duration_minutes or hours.granularity
        out.append(BookedInterval(start, start + length))

    blocks = await session.execute(
        select(BusySlot.start_time, BusySlot.end_time)
        .where(
            BusySlot.busy_date <= d,
            func.coalesce(BusySlot.end_date, BusySlot.busy_date) >= d,
        )
        .order_by(BusySlot.start_time)
    )
    for start_time, end_time in blocks.all():
        out.append(BookedInterval(minute_of(start_time), minute_of(end_time), REASON_BLOCKED))
    return out


async def get_available_time_slots(
    session: AsyncSession,
    raw_date: Any,
    raw_duration: Any,
    hours: BusinessHours | None = None,
) -> tuple[dict, int]:
    """Returns (payload, http_status). Failures come back as success=False, never raised.

    Validation failures are status 200 with success=False (the relay turns them into 400);
    storage failures are status 500.
    """
    hours = hours or settings.business_hours
    try:
        d, duration = validate_slot_query(raw_date, raw_duration)
    except ValidationError as e:
        return {"success": False, "error": e.message}, 200
    try:
        booked = await get_booked_intervals(session, d, hours)
    except SQLAlchemyError as e:
        logger.exception("Loading appointments for %s failed: %s", d, e)
        return {"success": False, "error": "Failed to load existing appointments"}, 500
    slots = compute_time_slots(duration, booked, hours)
    return {
        "success": True,
        "timeSlots": [s.to_wire() for s in slots],
        "date": d.isoformat(),
        "duration": duration,
    }, 200
