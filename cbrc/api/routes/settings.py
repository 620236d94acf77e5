from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.deps import get_session, require_service_key
from cbrc.api.schemas.settings import UpdateSettingsRequest
from cbrc.models.site_settings import PublicSettings
from cbrc.services.settings_service import get_public_settings, get_site_settings, update_site_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/public", response_model=PublicSettings)
async def public_settings(session: AsyncSession = Depends(get_session)) -> PublicSettings:
    """Unauthenticated; the site polls this to show its maintenance page."""
    return await get_public_settings(session)


@router.get("", dependencies=[Depends(require_service_key)])
async def read_settings(session: AsyncSession = Depends(get_session)) -> dict:
    row = await get_site_settings(session)
    return {"settings": row.model_dump(mode="json")}


@router.put("", dependencies=[Depends(require_service_key)])
async def write_settings(
    body: UpdateSettingsRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    row = await update_site_settings(session, body.maintenance_mode, body.maintenance_message)
    return {"success": True, "settings": row.model_dump(mode="json")}
