#  forwards any method to a configured function URL
#  injects the service credential
#  passes through only allow-listed headers, in both directions

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import httpx

from cbrc.core.config import settings
from cbrc.core.errors import ConfigurationError, TransportFailure, UpstreamError

logger = logging.getLogger(__name__)

JSON_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
DAV_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "PROPFIND", "PROPPATCH", "REPORT", "MKCALENDAR"})


@dataclass(frozen=True)
class ForwardingRule:
    target_url: str
    request_headers: tuple[str, ...] = ("Content-Type",)
    response_headers: tuple[str, ...] = ("Content-Type",)
    body_methods: frozenset[str] = JSON_BODY_METHODS
    inject_credentials: bool = True


@dataclass
class RelayedResponse:
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _function_url(name: str) -> str:
    base = settings.functions_base_url.rstrip("/")
    return f"{base}/{name}" if base else ""


def time_slots_rule() -> ForwardingRule:
    return ForwardingRule(target_url=_function_url("get-available-time-slots"))


def create_appointment_rule() -> ForwardingRule:
    return ForwardingRule(target_url=_function_url("create-appointment"))


def caldav_rule() -> ForwardingRule:
    return ForwardingRule(
        target_url=settings.caldav_target_url,
        request_headers=(
            "Authorization",
            "Content-Type",
            "Depth",
            "User-Agent",
            "Accept",
            "Accept-Language",
            "X-HTTP-Method-Override",
        ),
        response_headers=("Content-Type", "ETag", "Last-Modified", "Cache-Control", "WWW-Authenticate"),
        body_methods=DAV_BODY_METHODS,
    )


def build_request_headers(rule: ForwardingRule, incoming: Mapping[str, str]) -> dict[str, str]:
    """Service credential first; an allow-listed client header of the same name wins."""
    incoming = httpx.Headers(incoming)
    out: dict[str, str] = {}
    if rule.inject_credentials:
        out["Authorization"] = f"Bearer {settings.service_role_key}"
    for name in rule.request_headers:
        value = incoming.get(name)
        if value:
            out[name] = value
    return out


async def forward(
    rule: ForwardingRule,
    method: str,
    headers: Mapping[str, str],
    body: bytes = b"",
    path: str = "",
    query: str = "",
    transport: httpx.AsyncBaseTransport | None = None,
) -> RelayedResponse:
    if not rule.target_url or (rule.inject_credentials and not settings.service_role_key):
        # Fail closed: never call out without a target and credential
        raise ConfigurationError("Server configuration error")
    method = method.upper()
    url = f"{rule.target_url}{path}"
    if query:
        url += f"?{query}"
    content = body if method in rule.body_methods else None
    try:
        async with httpx.AsyncClient(timeout=settings.relay_timeout_seconds, transport=transport) as client:
            resp = await client.request(
                method,
                url,
                headers=build_request_headers(rule, headers),
                content=content,
            )
    except httpx.TimeoutException as e:
        logger.warning("Relay %s %s timed out after %ss", method, rule.target_url, settings.relay_timeout_seconds)
        raise TransportFailure("Upstream request timed out") from e
    except httpx.HTTPError as e:
        logger.warning("Relay %s %s failed: %s", method, rule.target_url, e)
        raise TransportFailure("Upstream service unreachable") from e

    if resp.status_code >= 400:
        logger.warning(
            "Relay %s %s returned status=%s body=%s",
            method,
            rule.target_url,
            resp.status_code,
            resp.text[:500],
        )
    kept = {name: resp.headers[name] for name in rule.response_headers if name in resp.headers}
    return RelayedResponse(status_code=resp.status_code, content=resp.content, headers=kept)


async def post_json(
    rule: ForwardingRule,
    payload: object,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[int, dict]:
    """POST a JSON body through the rule; returns (status, decoded object)."""
    relayed = await forward(
        rule,
        "POST",
        {"Content-Type": "application/json"},
        body=json.dumps(payload).encode("utf-8"),
        transport=transport,
    )
    try:
        data = json.loads(relayed.content)
    except ValueError as e:
        raise UpstreamError("Invalid response from upstream service") from e
    if not isinstance(data, dict):
        raise UpstreamError("Invalid response from upstream service")
    return relayed.status_code, data
