# corsproxy/errors.py
"""Exception hierarchy for the relay pipeline.

Every error carries the HTTP status and the message rendered as
``{"error": message}`` at the pipeline boundary.
"""


class RelayError(Exception):
    """Base exception for all relay errors."""

    status_code = 500
    default_message = "Proxy error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class PathNotAllowed(RelayError):
    status_code = 403
    default_message = "Path not allowed"


class OriginNotAllowed(RelayError):
    status_code = 403
    default_message = "Origin not allowed"


class MethodNotAllowed(RelayError):
    status_code = 405
    default_message = "Method Not Allowed"


class ConfigurationError(RelayError):
    """Raised when the secret or upstream base is not configured."""

    status_code = 500
    default_message = "Proxy misconfigured"


class ProxyError(RelayError):
    """Raised when the upstream call fails for any reason."""

    status_code = 502


class UpstreamTimeout(ProxyError):
    """Raised when the upstream call does not settle within the timeout."""

    default_message = "Upstream timeout"
