import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response

from cbrc.api.deps import get_relay_transport
from cbrc.services.relay import caldav_rule, forward

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/caldav-server", tags=["caldav"])

DAV_METHODS = [
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "HEAD",
    "PATCH",
    "OPTIONS",
    "PROPFIND",
    "PROPPATCH",
    "MKCALENDAR",
    "REPORT",
]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, depth, x-http-method-override",
    "Access-Control-Allow-Methods": ", ".join(DAV_METHODS),
}


async def _proxy(request: Request, path: str, transport: httpx.AsyncBaseTransport | None) -> Response:
    # Clients that cannot send WebDAV verbs tunnel them through this header
    method = request.headers.get("X-HTTP-Method-Override") or request.method
    relayed = await forward(
        caldav_rule(),
        method,
        request.headers,
        body=await request.body(),
        path=path,
        query=request.url.query,
        transport=transport,
    )
    return Response(
        content=relayed.content,
        status_code=relayed.status_code,
        headers={**CORS_HEADERS, **relayed.headers},
    )


@router.options("")
async def caldav_preflight() -> Response:
    return Response(status_code=200, headers={**CORS_HEADERS, "Access-Control-Max-Age": "86400"})


@router.api_route("", methods=[m for m in DAV_METHODS if m != "OPTIONS"])
async def caldav_root(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_relay_transport),
) -> Response:
    return await _proxy(request, "/", transport)


@router.api_route("/{path:path}", methods=DAV_METHODS)
async def caldav_path(
    path: str,
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_relay_transport),
) -> Response:
    return await _proxy(request, f"/{path}", transport)
