import logging
from datetime import date, time

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.schemas.appointment import CreateAppointmentRequest
from cbrc.core.config import BusinessHours, settings
from cbrc.core.errors import ConflictError
from cbrc.models.appointment import NON_BLOCKING_STATUSES, Appointment, AppointmentPublic, utc_now
from cbrc.models.service import Service
from cbrc.services.slot_service import (
    REASON_BOOKED,
    candidate_start_times,
    first_overlap,
    get_booked_intervals,
    minute_of,
)

logger = logging.getLogger(__name__)


def _failure(error: str) -> dict:
    return {"success": False, "error": error, "appointment_id": None}


def to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        first_name=a.first_name,
        last_name=a.last_name,
        email=a.email,
        phone=a.phone,
        service_id=a.service_id,
        gender=a.gender,
        appointment_date=a.appointment_date,
        appointment_time=a.appointment_time.strftime("%H:%M"),
        special_requests=a.special_requests,
        status=a.status,
        created_at=a.created_at,
        confirmed_at=a.confirmed_at,
        cancelled_at=a.cancelled_at,
    )


async def _lock_day(session: AsyncSession, d: date) -> None:
    """Serialize check-then-insert per day on Postgres. Other backends rely on the unique index."""
    bind = session.bind
    if bind is None or bind.dialect.name != "postgresql":
        return
    await session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": d.toordinal()})


async def create_appointment(
    session: AsyncSession,
    data: CreateAppointmentRequest,
    hours: BusinessHours | None = None,
) -> dict:
    """Sole writer of appointment state. Returns {success, error?, appointment_id, message?}."""
    hours = hours or settings.business_hours
    service = await session.get(Service, data.service_id)
    if not service or not service.is_active:
        return _failure("Service not found")

    d = data.date_value
    start_t = time.fromisoformat(data.appointment_time)
    start = start_t.hour * 60 + start_t.minute
    if start not in candidate_start_times(service.duration_minutes, hours):
        return _failure("Requested time is outside business hours")

    await _lock_day(session, d)
    booked = await get_booked_intervals(session, d, hours)
    clash = first_overlap(start, start + service.duration_minutes, booked)
    if clash:
        return _failure(f"Time slot {data.appointment_time} is {clash.reason}")

    appointment = Appointment(
        first_name=data.first_name,
        last_name=data.last_name,
        email=str(data.email),
        phone=data.phone,
        service_id=service.id,
        gender=data.gender,
        appointment_date=d,
        appointment_time=start_t,
        special_requests=data.special_requests,
    )
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError:
        # Lost a race for the same start time
        await session.rollback()
        logger.info("Concurrent booking rejected for %s %s", d, data.appointment_time)
        return _failure(f"Time slot {data.appointment_time} is {REASON_BOOKED}")
    logger.info("Appointment %s created for %s %s", appointment.id, d, data.appointment_time)
    return {
        "success": True,
        "appointment_id": appointment.id,
        "message": "Appointment created successfully",
    }


async def list_appointments(
    session: AsyncSession, from_date: date | None = None
) -> list[Appointment]:
    q = select(Appointment).order_by(Appointment.appointment_date, Appointment.appointment_time)
    if from_date:
        q = q.where(Appointment.appointment_date >= from_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def has_conflict(session: AsyncSession, d: date, t: time) -> bool:
    """True if a confirmed appointment starts exactly at d/t."""
    result = await session.execute(
        select(Appointment.id).where(
            Appointment.appointment_date == d,
            Appointment.appointment_time == t,
            Appointment.status == "confirmed",
        )
    )
    return result.first() is not None


async def _check_reactivation(
    session: AsyncSession, appointment: Appointment, hours: BusinessHours | None
) -> None:
    """A cancelled booking may only come back if its whole interval is still free."""
    hours = hours or settings.business_hours
    await _lock_day(session, appointment.appointment_date)
    service = await session.get(Service, appointment.service_id)
    length = service.duration_minutes if service else hours.granularity
    start = minute_of(appointment.appointment_time)
    booked = await get_booked_intervals(
        session, appointment.appointment_date, hours, exclude_appointment_id=appointment.id
    )
    clash = first_overlap(start, start + length, booked)
    if clash:
        raise ConflictError(f"Time slot is {clash.reason}")


async def update_appointment_status(
    session: AsyncSession,
    appointment_id: str,
    status: str,
    hours: BusinessHours | None = None,
) -> Appointment | None:
    appointment = await session.get(Appointment, appointment_id)
    if not appointment:
        return None
    if appointment.status in NON_BLOCKING_STATUSES and status not in NON_BLOCKING_STATUSES:
        await _check_reactivation(session, appointment, hours)

    appointment.status = status
    if status == "confirmed":
        appointment.confirmed_at = utc_now()
    if status == "cancelled":
        appointment.cancelled_at = utc_now()
    else:
        appointment.cancelled_at = None
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        # Re-activating a cancelled booking whose slot was taken since
        await session.rollback()
        raise ConflictError("Time slot is already booked by another appointment") from e
    await session.refresh(appointment)
    return appointment


async def list_services(session: AsyncSession) -> list[Service]:
    result = await session.execute(
        select(Service).where(Service.is_active == True).order_by(Service.name)  # noqa: E712
    )
    return list(result.scalars().all())
