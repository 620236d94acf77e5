import logging
from datetime import date, time

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.deps import get_relay_transport, get_session, require_service_key
from cbrc.api.schemas.appointment import CreateAppointmentResponse, UpdateStatusRequest
from cbrc.core.errors import CBRCError
from cbrc.services.appointment_service import (
    has_conflict,
    list_appointments,
    to_public,
    update_appointment_status,
)
from cbrc.services.relay import create_appointment_rule, post_json

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def _failure(error: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "appointment_id": None},
    )


@router.post("/create", responses={200: {"model": CreateAppointmentResponse}})
async def create_appointment_relay(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_relay_transport),
) -> JSONResponse:
    """Forward the booking form to the create-appointment function."""
    try:
        body = await request.json()
    except ValueError:
        return _failure("Invalid JSON body", status.HTTP_400_BAD_REQUEST)
    try:
        status_code, result = await post_json(create_appointment_rule(), body, transport=transport)
    except CBRCError as e:
        if e.status_code >= 500:
            logger.error("Appointment relay failed: %s", e.message)
        return _failure(e.message, e.status_code)
    if not 200 <= status_code < 300:
        return _failure(result.get("error") or "Edge function error", status_code)
    logger.info("Appointment relayed: id=%s success=%s", result.get("appointment_id"), result.get("success"))
    return JSONResponse(status_code=status.HTTP_200_OK, content=result)


@router.get("", dependencies=[Depends(require_service_key)])
async def list_or_check_appointments(
    date_param: date | None = Query(None, alias="date"),
    time_param: time | None = Query(None, alias="time"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """With date and time: conflict check. Otherwise: every appointment, ordered by start."""
    if date_param and time_param:
        return {"hasConflict": await has_conflict(session, date_param, time_param)}
    appointments = await list_appointments(session)
    return {"appointments": [to_public(a).model_dump(mode="json") for a in appointments]}


@router.put("", dependencies=[Depends(require_service_key)])
async def update_status(
    body: UpdateStatusRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    appointment = await update_appointment_status(session, body.appointment_id, body.status)
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    return {"success": True, "data": to_public(appointment).model_dump(mode="json")}
