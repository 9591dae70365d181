# corsproxy/lambda_handler.py
"""Serverless entry point.

Accepts the platform's proxy event (``httpMethod``, ``path``, ``headers``,
``body``, ``isBase64Encoded``) and returns ``statusCode``/``headers``/``body``/
``isBase64Encoded``. Binary upstream bodies come back base64-encoded with the
flag set so the platform can decode them.
"""

import asyncio
import logging
from typing import Any

import httpx

import pipeline
from config import settings
from models import IncomingRequest
from policy import Policy

# The platform runtime installs the root handler; only the level is ours.
logging.getLogger().setLevel(settings.log_level.upper())
_POLICY = Policy.from_settings(settings)


def incoming_from_event(event: dict[str, Any]) -> IncomingRequest:
    return IncomingRequest(
        method=(event.get("httpMethod") or "").upper(),
        path=event.get("path") or "",
        headers=event.get("headers") or {},
        body=event.get("body"),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
    )


async def handle_event(
    event: dict[str, Any],
    policy: Policy,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    incoming = incoming_from_event(event)
    async with httpx.AsyncClient(transport=transport) as client:
        result = await pipeline.handle(incoming, policy, client)
    return result.to_event()


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return asyncio.run(handle_event(event, _POLICY))
