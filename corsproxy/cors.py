# corsproxy/cors.py
from models import IncomingRequest, RelayResponse
from policy import ALLOWED_METHODS, Policy

DEFAULT_ALLOW_HEADERS = "authorization,content-type"


def merge_vary(existing: str | None, add: str) -> str:
    if not existing:
        return add
    values = dict.fromkeys(v.strip() for v in existing.split(",") if v.strip())
    values[add] = None
    return ", ".join(values)


def with_cors(response: RelayResponse, origin: str, policy: Policy) -> RelayResponse:
    """Attach CORS headers. Must be the last step on every response path.

    A disallowed origin gets no Access-Control-Allow-Origin at all, so the
    browser blocks the response.
    """
    headers = dict(response.headers)
    if not policy.checks_origin:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin in policy.allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = merge_vary(headers.get("Vary"), "Origin")
    headers["Access-Control-Allow-Credentials"] = "false"
    response.headers = headers
    return response


def preflight(incoming: IncomingRequest) -> RelayResponse:
    allow_headers = incoming.header("access-control-request-headers") or DEFAULT_ALLOW_HEADERS
    return RelayResponse(
        status_code=204,
        headers={
            "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
            "Access-Control-Allow-Headers": allow_headers,
        },
        body="",
    )
