import secrets

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cbrc.core.config import settings
from cbrc.core.db import get_session
from cbrc.core.errors import ConfigurationError

__all__ = ["get_session", "get_relay_transport", "require_service_key"]

security = HTTPBearer(auto_error=False)


def get_relay_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound relay calls; None means real network. Overridden in tests."""
    return None


async def require_service_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    if not settings.service_role_key:
        raise ConfigurationError("Server configuration error")
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not secrets.compare_digest(credentials.credentials.encode(), settings.service_role_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid service credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
