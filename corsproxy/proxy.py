# corsproxy/proxy.py
import asyncio
import base64
import logging
import re
from collections.abc import Iterable

import httpx

from errors import ProxyError, UpstreamTimeout
from models import IncomingRequest, OutgoingRequest, RelayResponse
from policy import Policy

logger = logging.getLogger(__name__)

PROXIED_BY = "cors-proxy"

_COPY_RESPONSE_HEADERS = ("content-type", "cache-control", "expires", "etag")
_BODYLESS_METHODS = {"GET", "HEAD"}
_TEXT_CONTENT_TYPE = re.compile(
    r"^(application/json\b|text/|application/xml\b|application/x-www-form-urlencoded\b)",
    re.IGNORECASE,
)


def join_url(base: str, path: str) -> str:
    """Join with exactly one slash. The query string is never carried over."""
    if base.endswith("/"):
        base = base[:-1]
    if path.startswith("/"):
        path = path[1:]
    return f"{base}/{path}"


def select_headers(incoming: IncomingRequest, names: Iterable[str]) -> dict[str, str]:
    """Copy whitelisted headers, matched case-insensitively, under the configured casing."""
    selected: dict[str, str] = {}
    for name in names:
        value = incoming.header(name)
        if value is not None:
            selected[name] = value
    return selected


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set a header, replacing any entry whose name differs only in case."""
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def build_outgoing(incoming: IncomingRequest, policy: Policy) -> OutgoingRequest:
    headers = select_headers(incoming, policy.forward_headers)

    if policy.require_auth_value or (policy.auth_header and policy.auth_value):
        _set_header(headers, policy.auth_header, policy.auth_value)

    # Helps upstream parse the body.
    content_type = incoming.header("content-type")
    if content_type:
        _set_header(headers, "content-type", content_type)

    _set_header(headers, "x-proxied-by", PROXIED_BY)

    content: str | bytes | None = None
    if incoming.method not in _BODYLESS_METHODS:
        if incoming.is_base64_encoded:
            content = base64.b64decode(incoming.body or "")
        else:
            content = incoming.body

    return OutgoingRequest(
        method=incoming.method,
        url=join_url(policy.upstream_base, incoming.path),
        headers=headers,
        content=content,
    )


def is_text_content_type(content_type: str) -> bool:
    return bool(_TEXT_CONTENT_TYPE.match(content_type))


def translate(upstream_resp: httpx.Response) -> RelayResponse:
    headers = {}
    for name in _COPY_RESPONSE_HEADERS:
        value = upstream_resp.headers.get(name)
        if value:
            headers[name] = value

    if is_text_content_type(upstream_resp.headers.get("content-type", "")):
        return RelayResponse(
            upstream_resp.status_code,
            headers,
            upstream_resp.text,
            content=upstream_resp.content,
        )

    return RelayResponse(
        upstream_resp.status_code,
        headers,
        base64.b64encode(upstream_resp.content).decode("ascii"),
        is_base64_encoded=True,
    )


async def send(outgoing: OutgoingRequest, policy: Policy, client: httpx.AsyncClient) -> RelayResponse:
    """Issue the single outbound call, bounded by the policy timeout.

    On expiry the in-flight request task is cancelled, so the connection
    is released back to the pool.
    """
    request = client.build_request(
        method=outgoing.method,
        url=outgoing.url,
        headers=outgoing.headers,
        content=outgoing.content,
        timeout=policy.timeout,
    )
    logger.info("proxying %s %s", outgoing.method, outgoing.url)
    try:
        upstream_resp = await asyncio.wait_for(client.send(request), timeout=policy.timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.error("Upstream timeout after %.1fs for %s", policy.timeout, outgoing.url)
        raise UpstreamTimeout() from exc
    except httpx.HTTPError as exc:
        logger.error("Upstream request failed for %s: %s", outgoing.url, exc)
        raise ProxyError(str(exc) or None) from exc

    if upstream_resp.status_code >= 500:
        logger.error(
            "Upstream error %s for %s %s",
            upstream_resp.status_code, outgoing.method, outgoing.url,
        )

    return translate(upstream_resp)
