"""
Error taxonomy shared by the relay and the function host.
Routes raise these; the handler registered in main.py renders them as {"error": message}.
"""
from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class CBRCError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CBRCError):
    """Malformed or missing input. Never retried."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(CBRCError):
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(CBRCError):
    """Downstream connection settings are absent; the request fails closed."""


class UpstreamError(CBRCError):
    """The upstream function answered, but with a failure."""


class TransportFailure(CBRCError):
    """The upstream function could not be reached (network error or timeout)."""


async def cbrc_error_handler(request: Request, exc: CBRCError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
