import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.models.appointment import utc_now
from cbrc.models.site_settings import PublicSettings, SiteSettings

logger = logging.getLogger(__name__)


async def get_site_settings(session: AsyncSession) -> SiteSettings:
    """The stored row, or an unsaved row holding the defaults."""
    result = await session.execute(select(SiteSettings).order_by(SiteSettings.id).limit(1))
    return result.scalars().first() or SiteSettings()


async def get_public_settings(session: AsyncSession) -> PublicSettings:
    """Maintenance flag for the public site. A storage failure reads as "not in maintenance"."""
    try:
        row = await get_site_settings(session)
    except SQLAlchemyError as e:
        logger.error("Loading public settings failed, using defaults: %s", e)
        return PublicSettings()
    return PublicSettings(maintenance_mode=row.maintenance_mode, maintenance_message=row.maintenance_message)


async def update_site_settings(
    session: AsyncSession, maintenance_mode: bool, maintenance_message: str
) -> SiteSettings:
    row = await get_site_settings(session)
    row.maintenance_mode = maintenance_mode
    row.maintenance_message = maintenance_message
    row.updated_at = utc_now()
    session.add(row)
    await session.flush()
    await session.refresh(row)
    logger.info("Maintenance mode set to %s", maintenance_mode)
    return row
