from sqlalchemy.exc import OperationalError

from cbrc.services.slot_service import (
    REASON_BLOCKED,
    REASON_BOOKED,
    BookedInterval,
    get_available_time_slots,
    get_booked_intervals,
)


def _by_time(payload: dict) -> dict[str, dict]:
    return {s["time"]: s for s in payload["timeSlots"]}


async def test_empty_day_is_fully_available(session, services, booking_date, hours):
    payload, status = await get_available_time_slots(session, booking_date.isoformat(), 60, hours)
    assert status == 200
    assert payload["success"] is True
    assert payload["date"] == booking_date.isoformat()
    assert payload["duration"] == 60
    assert all(s["available"] for s in payload["timeSlots"])
    # reason is omitted from the wire shape when a slot is free
    assert all("reason" not in s for s in payload["timeSlots"])


async def test_booking_blocks_with_its_service_duration(session, services, book, booking_date, hours):
    await book(services["colour"], booking_date, "10:00")  # 90 minutes -> 10:00-11:30
    payload, _ = await get_available_time_slots(session, booking_date.isoformat(), 30, hours)
    slots = _by_time(payload)
    assert slots["09:30"]["available"] is True
    for t in ("10:00", "10:30", "11:00"):
        assert slots[t]["available"] is False
        assert slots[t]["reason"] == REASON_BOOKED
    assert slots["11:30"]["available"] is True


async def test_cancelled_bookings_do_not_block(session, services, book, booking_date, hours):
    await book(services["cut"], booking_date, "10:00", status="cancelled")
    payload, _ = await get_available_time_slots(session, booking_date.isoformat(), 30, hours)
    assert _by_time(payload)["10:00"]["available"] is True


async def test_other_days_are_ignored(session, services, book, booking_date, hours):
    from datetime import timedelta

    await book(services["cut"], booking_date + timedelta(days=1), "10:00")
    payload, _ = await get_available_time_slots(session, booking_date.isoformat(), 30, hours)
    assert all(s["available"] for s in payload["timeSlots"])


async def test_booking_on_inactive_service_still_counts(session, services, book, booking_date, hours):
    await book(services["retired"], booking_date, "14:00")
    intervals = await get_booked_intervals(session, booking_date, hours)
    assert [(i.start_minute, i.end_minute) for i in intervals] == [(14 * 60, 15 * 60)]


async def test_busy_slot_blocks_with_its_own_reason(session, services, block, booking_date, hours):
    await block(booking_date, "12:00", "13:00")
    payload, _ = await get_available_time_slots(session, booking_date.isoformat(), 60, hours)
    slots = _by_time(payload)
    assert slots["11:00"]["available"] is True
    for t in ("11:30", "12:00", "12:30"):
        assert slots[t]["available"] is False
        assert slots[t]["reason"] == REASON_BLOCKED
    assert slots["13:00"]["available"] is True


async def test_multi_day_busy_slot_covers_every_day_in_range(session, block, booking_date, hours):
    from datetime import timedelta

    await block(booking_date - timedelta(days=1), "09:00", "18:00", end_date=booking_date + timedelta(days=1))
    assert await get_booked_intervals(session, booking_date, hours) == [BookedInterval(540, 1080, REASON_BLOCKED)]
    after = await get_booked_intervals(session, booking_date + timedelta(days=2), hours)
    assert after == []


async def test_single_day_busy_slot_ignores_other_days(session, block, booking_date, hours):
    from datetime import timedelta

    await block(booking_date, "09:00", "10:00")
    assert await get_booked_intervals(session, booking_date + timedelta(days=1), hours) == []


async def test_repeated_queries_are_identical(session, services, book, booking_date, hours):
    await book(services["cut"], booking_date, "12:30")
    first, _ = await get_available_time_slots(session, booking_date.isoformat(), 45, hours)
    second, _ = await get_available_time_slots(session, booking_date.isoformat(), 45, hours)
    assert first == second


async def test_invalid_input_is_reported_not_raised(session, hours):
    payload, status = await get_available_time_slots(session, "2030-13-01", 30, hours)
    assert status == 200
    assert payload["success"] is False
    assert "date" in payload["error"].lower()

    payload, status = await get_available_time_slots(session, "2030-01-01", 0, hours)
    assert payload == {"success": False, "error": "Duration must be a positive integer number of minutes"}


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))


async def test_storage_failure_is_reported_as_500(hours):
    payload, status = await get_available_time_slots(_BrokenSession(), "2030-01-01", 30, hours)
    assert status == 500
    assert payload["success"] is False
    assert payload["error"]
