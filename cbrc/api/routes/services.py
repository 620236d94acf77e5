from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.deps import get_session
from cbrc.models.service import ServicePublic
from cbrc.services.appointment_service import list_services

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[ServicePublic])
async def active_services(session: AsyncSession = Depends(get_session)) -> list[ServicePublic]:
    """Bookable services with the durations the slot picker needs."""
    services = await list_services(session)
    return [
        ServicePublic(id=s.id, name=s.name, duration_minutes=s.duration_minutes, price_euros=s.price_euros)
        for s in services
    ]
