import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.schemas.busy_slot import BusySlotWrite
from cbrc.models.busy_slot import BusySlot, BusySlotPublic

logger = logging.getLogger(__name__)


def to_public(slot: BusySlot) -> BusySlotPublic:
    return BusySlotPublic(
        id=slot.id,
        busy_date=slot.busy_date,
        end_date=slot.end_date,
        start_time=slot.start_time.strftime("%H:%M"),
        end_time=slot.end_time.strftime("%H:%M"),
        title=slot.title,
        description=slot.description,
    )


async def list_busy_slots(session: AsyncSession, from_date: date | None = None) -> list[BusySlot]:
    """Blocks ordered by first day and start; with from_date, only those still covering it or later."""
    q = select(BusySlot).order_by(BusySlot.busy_date, BusySlot.start_time)
    if from_date:
        q = q.where(func.coalesce(BusySlot.end_date, BusySlot.busy_date) >= from_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_busy_slot(session: AsyncSession, data: BusySlotWrite) -> BusySlot:
    # Existing bookings inside the window are kept; the block only stops new ones
    slot = BusySlot(**data.model_dump())
    session.add(slot)
    await session.flush()
    logger.info("Busy slot %s created for %s %s-%s", slot.id, slot.busy_date, slot.start_time, slot.end_time)
    return slot


async def update_busy_slot(session: AsyncSession, slot_id: str, data: BusySlotWrite) -> BusySlot | None:
    slot = await session.get(BusySlot, slot_id)
    if not slot:
        return None
    for key, value in data.model_dump().items():
        setattr(slot, key, value)
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    return slot


async def delete_busy_slot(session: AsyncSession, slot_id: str) -> bool:
    slot = await session.get(BusySlot, slot_id)
    if not slot:
        return False
    await session.delete(slot)
    await session.flush()
    logger.info("Busy slot %s deleted", slot_id)
    return True
