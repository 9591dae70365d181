# corsproxy/test_lambda_handler.py
import base64
import json
from unittest.mock import patch

import httpx
import pytest

import lambda_handler
from policy import DelimitedPathMatcher, Policy

PNG_BYTES = b"\x89PNG\r\n\x1a\n"


def _policy(**overrides):
    base = dict(
        allowed_origins=frozenset(),
        path_matcher=DelimitedPathMatcher("/api/v2/employees;/api/v2/photo"),
        forward_headers=("Accept",),
        upstream_base="https://app.peopleforce.io",
        auth_header="X-API-Key",
        auth_value="pf-key",
        timeout=5.0,
    )
    base.update(overrides)
    return Policy(**base)


def _event(**overrides):
    base = {
        "httpMethod": "GET",
        "path": "/api/v2/employees",
        "headers": {"origin": "https://app.example.com", "accept": "application/json"},
        "body": None,
        "isBase64Encoded": False,
    }
    base.update(overrides)
    return base


class _Upstream:
    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/v2/photo":
            return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})
        return httpx.Response(200, json={"data": []})


@pytest.fixture
def upstream():
    return _Upstream()


# ---------------------------------------------------------------------------
# Event parsing
# ---------------------------------------------------------------------------

class TestIncomingFromEvent:
    def test_fields(self):
        req = lambda_handler.incoming_from_event(_event(httpMethod="post", body="x"))
        assert req.method == "POST"
        assert req.path == "/api/v2/employees"
        assert req.body == "x"
        assert req.origin == "https://app.example.com"

    def test_missing_headers(self):
        req = lambda_handler.incoming_from_event({"httpMethod": "GET", "path": "/"})
        assert req.headers == {}
        assert req.origin == ""


# ---------------------------------------------------------------------------
# handle_event
# ---------------------------------------------------------------------------

class TestHandleEvent:
    async def test_json_response_shape(self, upstream):
        result = await lambda_handler.handle_event(_event(), _policy(), httpx.MockTransport(upstream))
        assert result["statusCode"] == 200
        assert result["isBase64Encoded"] is False
        assert json.loads(result["body"]) == {"data": []}
        assert result["headers"]["Access-Control-Allow-Origin"] == "*"
        sent = upstream.requests[0]
        assert str(sent.url) == "https://app.peopleforce.io/api/v2/employees"
        assert sent.headers["X-API-Key"] == "pf-key"

    async def test_binary_response_flagged(self, upstream):
        result = await lambda_handler.handle_event(
            _event(path="/api/v2/photo"), _policy(), httpx.MockTransport(upstream)
        )
        assert result["isBase64Encoded"] is True
        assert base64.b64decode(result["body"]) == PNG_BYTES

    async def test_base64_request_body_decoded(self, upstream):
        event = _event(
            httpMethod="POST",
            body=base64.b64encode(b"raw-bytes").decode(),
            isBase64Encoded=True,
        )
        await lambda_handler.handle_event(event, _policy(), httpx.MockTransport(upstream))
        assert upstream.requests[0].content == b"raw-bytes"

    async def test_rejected_path(self, upstream):
        result = await lambda_handler.handle_event(
            _event(path="/api/v2/employees/1"), _policy(), httpx.MockTransport(upstream)
        )
        assert result["statusCode"] == 403
        assert json.loads(result["body"]) == {"error": "Path not allowed"}
        assert upstream.requests == []


# ---------------------------------------------------------------------------
# handler (synchronous platform entry point)
# ---------------------------------------------------------------------------

class TestHandler:
    def test_preflight(self):
        with patch("lambda_handler._POLICY", _policy()):
            result = lambda_handler.handler(_event(httpMethod="OPTIONS"))
        assert result["statusCode"] == 204
        assert result["body"] == ""
        assert result["headers"]["Access-Control-Allow-Headers"] == "authorization,content-type"

    def test_missing_secret(self):
        with patch("lambda_handler._POLICY", _policy(auth_value="")):
            result = lambda_handler.handler(_event())
        assert result["statusCode"] == 500
