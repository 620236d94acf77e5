import logging

import httpx
from fastapi import APIRouter, Depends, Request

from cbrc.api.deps import get_relay_transport
from cbrc.api.schemas.time_slots import TimeSlotsResponse
from cbrc.core.config import settings
from cbrc.core.errors import ConfigurationError, UpstreamError, ValidationError
from cbrc.services.relay import post_json, time_slots_rule

logger = logging.getLogger(__name__)

router = APIRouter(tags=["time-slots"])


@router.post("/time-slots", responses={200: {"model": TimeSlotsResponse}})
async def time_slots(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_relay_transport),
) -> dict:
    """Relay {date, duration} to the availability function; the result is passed through unchanged."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict) or not body.get("date") or not body.get("duration"):
        raise ValidationError("Date and duration are required")
    if not settings.relay_configured:
        logger.error("Time slot relay called but FUNCTIONS_BASE_URL / SERVICE_ROLE_KEY are not set")
        raise ConfigurationError("Server configuration error - availability service not configured")

    status_code, data = await post_json(time_slots_rule(), body, transport=transport)
    if not 200 <= status_code < 300:
        raise UpstreamError(data.get("error") or "Failed to fetch time slots", status_code)
    if not data.get("success"):
        raise ValidationError(data.get("error") or "Failed to fetch time slots")
    return {
        "timeSlots": data.get("timeSlots") or [],
        "date": data.get("date"),
        "duration": data.get("duration"),
    }
