# corsproxy/pipeline.py
"""The request relay: validate, forward, translate, and tag every response with CORS."""

import json
import logging

import httpx

import cors
import proxy
from errors import (
    ConfigurationError,
    MethodNotAllowed,
    OriginNotAllowed,
    PathNotAllowed,
    ProxyError,
    RelayError,
)
from models import IncomingRequest, RelayResponse
from policy import Policy

logger = logging.getLogger(__name__)


def error_response(exc: RelayError) -> RelayResponse:
    return RelayResponse(
        status_code=exc.status_code,
        headers={"content-type": "application/json"},
        body=json.dumps({"error": exc.message}),
    )


def check_configuration(policy: Policy) -> None:
    if policy.require_auth_value:
        if not policy.auth_value:
            raise ConfigurationError("PEOPLEFORCE_API_KEY / FORWARD_AUTH_VALUE not set")
        if not policy.auth_header:
            raise ConfigurationError("FORWARD_AUTH_HEADER not set")
    if not policy.upstream_base:
        raise ConfigurationError("UPSTREAM_BASE not set")


async def _relay(incoming: IncomingRequest, policy: Policy, client: httpx.AsyncClient) -> RelayResponse:
    # Path is checked first, so a disallowed OPTIONS request is a 403, not a 204.
    if not policy.path_allowed(incoming.path):
        raise PathNotAllowed()

    if policy.checks_origin:
        if not policy.origin_allowed(incoming.origin):
            logger.warning("Origin not permitted: %r", incoming.origin)
            raise OriginNotAllowed()
        logger.debug("Origin matched: %s", incoming.origin)

    if not policy.method_allowed(incoming.method):
        raise MethodNotAllowed()

    if incoming.method == "OPTIONS":
        return cors.preflight(incoming)

    check_configuration(policy)

    outgoing = proxy.build_outgoing(incoming, policy)
    return await proxy.send(outgoing, policy, client)


async def handle(incoming: IncomingRequest, policy: Policy, client: httpx.AsyncClient) -> RelayResponse:
    """Run one invocation. Never raises; errors come back as JSON bodies."""
    logger.info("%s %s", incoming.method, incoming.path)
    try:
        response = await _relay(incoming, policy, client)
    except RelayError as exc:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", incoming.method, incoming.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", incoming.method, incoming.path, exc.message)
        response = error_response(exc)
    except Exception as exc:
        logger.exception("Unexpected error relaying %s %s", incoming.method, incoming.path)
        response = error_response(ProxyError(str(exc) or None))
    return cors.with_cors(response, incoming.origin, policy)
