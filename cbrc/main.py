import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cbrc.api.routes import appointments, busy_slots, caldav, functions, services, time_slots
from cbrc.api.routes import settings as settings_routes
from cbrc.api.routes.caldav import DAV_METHODS
from cbrc.core.config import settings, _ENV_FILE
from cbrc.core.db import init_db
from cbrc.core.errors import CBRCError, cbrc_error_handler

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    hours = settings.business_hours
    logger.info(
        "Business hours %02d:00-%02d:00, slot granularity %d min",
        settings.business_start_hour,
        settings.business_end_hour,
        hours.granularity,
    )
    if settings.relay_configured:
        logger.info("Relay: forwarding to %s", settings.functions_base_url)
    else:
        logger.warning(
            "Relay: NOT configured. Set FUNCTIONS_BASE_URL and SERVICE_ROLE_KEY in %s; relay routes will return 500",
            _ENV_FILE,
        )
    if settings.auto_create_tables:
        await init_db()
    yield


app = FastAPI(
    title="CBRC Booking API",
    description="Backend for CBRC: time slot availability, appointments, CalDAV relay",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Preflights are answered here and never reach the CalDAV router
CORS_ALLOW_HEADERS = [
    "Authorization",
    "Content-Type",
    "Depth",
    "X-HTTP-Method-Override",
    "X-Client-Info",
    "Apikey",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=DAV_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

app.include_router(time_slots.router, prefix="/api")
app.include_router(appointments.router, prefix="/api")
app.include_router(services.router, prefix="/api")
app.include_router(busy_slots.router, prefix="/api")
app.include_router(settings_routes.router, prefix="/api")
app.include_router(caldav.router, prefix="/api")
app.include_router(functions.router)

app.add_exception_handler(CBRCError, cbrc_error_handler)


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ", ".join(DAV_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = {**_cors_headers(request.headers.get("origin")), **(exc.headers or {})}
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON error; include CORS so 500 responses are not blocked by browser."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
