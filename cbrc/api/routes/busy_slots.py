from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.deps import get_session, require_service_key
from cbrc.api.schemas.busy_slot import BusySlotWrite
from cbrc.models.busy_slot import BusySlotPublic
from cbrc.services.busy_slot_service import (
    create_busy_slot,
    delete_busy_slot,
    list_busy_slots,
    to_public,
    update_busy_slot,
)

router = APIRouter(
    prefix="/busy-slots",
    tags=["busy-slots"],
    dependencies=[Depends(require_service_key)],
)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Busy slot not found")


@router.get("", response_model=list[BusySlotPublic])
async def busy_slots(
    from_date: date | None = Query(None, alias="from"),
    session: AsyncSession = Depends(get_session),
) -> list[BusySlotPublic]:
    return [to_public(s) for s in await list_busy_slots(session, from_date)]


@router.post("", response_model=BusySlotPublic, status_code=status.HTTP_201_CREATED)
async def add_busy_slot(
    body: BusySlotWrite,
    session: AsyncSession = Depends(get_session),
) -> BusySlotPublic:
    return to_public(await create_busy_slot(session, body))


@router.put("/{slot_id}", response_model=BusySlotPublic)
async def edit_busy_slot(
    slot_id: str,
    body: BusySlotWrite,
    session: AsyncSession = Depends(get_session),
) -> BusySlotPublic:
    slot = await update_busy_slot(session, slot_id, body)
    if not slot:
        raise _not_found()
    return to_public(slot)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_busy_slot(slot_id: str, session: AsyncSession = Depends(get_session)) -> None:
    if not await delete_busy_slot(session, slot_id):
        raise _not_found()
