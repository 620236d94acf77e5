"""
Function host: the in-process replacements for the managed-database RPCs.
Callers are the relays, authenticated with the service role key.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cbrc.api.deps import get_session, require_service_key
from cbrc.api.schemas.appointment import REQUIRED_APPOINTMENT_FIELDS, CreateAppointmentRequest
from cbrc.services.appointment_service import create_appointment
from cbrc.services.slot_service import get_available_time_slots

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/functions/v1",
    tags=["functions"],
    dependencies=[Depends(require_service_key)],
)


async def _json_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _creation_failure(error: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "appointment_id": None},
    )


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    msg = err.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


@router.post("/get-available-time-slots")
async def available_time_slots(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    """Slots for {date, duration} (p_date / p_duration_minutes also accepted).

    Input problems come back as 200 with success=false; storage failures as 500.
    """
    body = await _json_body(request) or {}
    raw_date = body.get("date", body.get("p_date"))
    raw_duration = body.get("duration", body.get("p_duration_minutes"))
    payload, status_code = await get_available_time_slots(session, raw_date, raw_duration)
    return JSONResponse(status_code=status_code, content=payload)


@router.post("/create-appointment")
async def create_appointment_function(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    body = await _json_body(request)
    if body is None or any(not body.get(name) for name in REQUIRED_APPOINTMENT_FIELDS):
        return _creation_failure("Missing required fields", status.HTTP_400_BAD_REQUEST)
    try:
        data = CreateAppointmentRequest.model_validate(body)
    except PydanticValidationError as e:
        return _creation_failure(_first_error(e), status.HTTP_400_BAD_REQUEST)
    try:
        result = await create_appointment(session, data)
    except SQLAlchemyError as e:
        logger.exception("create_appointment failed: %s", e)
        await session.rollback()
        return _creation_failure(f"Database error: {type(e).__name__}", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status.HTTP_200_OK, content=result)
