# corsproxy/models.py
"""Request-scoped value types. Nothing here outlives a single invocation."""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup; None when absent, "" when present but empty."""
    want = name.lower()
    for key, value in headers.items():
        if key.lower() == want and value is not None:
            return value
    return None


@dataclass(frozen=True)
class IncomingRequest:
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | bytes | None = None
    is_base64_encoded: bool = False

    def header(self, name: str) -> str | None:
        return get_header(self.headers, name)

    @property
    def origin(self) -> str:
        return self.header("origin") or ""


@dataclass(frozen=True)
class OutgoingRequest:
    method: str
    url: str
    headers: dict[str, str]
    content: str | bytes | None = None


@dataclass
class RelayResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False
    # Upstream bytes for relayed text, so the wire keeps the declared charset.
    content: bytes | None = field(default=None, repr=False)

    def raw_body(self) -> bytes:
        """Bytes to put on the wire."""
        if self.content is not None:
            return self.content
        if self.is_base64_encoded:
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")

    def to_event(self) -> dict:
        """Render in the serverless platform's response shape."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
        }
