# corsproxy/config.py
from pydantic import AliasChoices, Field, PrivateAttr
from pydantic_settings import BaseSettings


def _csv_list(value: str, sep: str = ",") -> list[str]:
    return [x.strip() for x in value.split(sep) if x.strip()]


class Settings(BaseSettings):
    # CORS allowlist.
    # ALLOWED_ORIGINS=https://app.example.com,https://admin.example.com
    # Empty or containing "*" disables origin checking.
    allowed_origins: str = ""     # ALLOWED_ORIGINS

    # Endpoint allowlist, semicolon-separated: ALLOWED_PATHS=/api/v2/employees;/api/v2/leaves
    allowed_paths: str = ""       # ALLOWED_PATHS
    path_match: str = "exact"     # PATH_MATCH  ("exact" | "delimited")

    # Upstream
    upstream_base: str = ""       # UPSTREAM_BASE (required)
    require_upstream: bool = True  # REQUIRE_UPSTREAM (declared, not enforced)
    fetch_timeout_ms: int = 10000  # FETCH_TIMEOUT_MS

    # Incoming headers relayed upstream (CSV, casing kept on write).
    forward_headers: str = "Accept"  # FORWARD_HEADERS

    # Server-side secret injection
    forward_auth_header: str = "X-API-Key"  # FORWARD_AUTH_HEADER
    forward_auth_value: str = Field(
        default="",
        validation_alias=AliasChoices("forward_auth_value", "peopleforce_api_key"),
    )                             # FORWARD_AUTH_VALUE / PEOPLEFORCE_API_KEY
    # true: a missing secret is a 500. false: inject only when header and value are both set.
    require_auth_value: bool = True  # REQUIRE_AUTH_VALUE

    # Server
    host: str = "0.0.0.0"         # HOST
    port: int = 8000              # PORT
    log_level: str = "INFO"       # LOG_LEVEL

    # Pre-computed lists — parsed once at startup, not on every request.
    _allowed_origins_set: set[str] = PrivateAttr(default_factory=set)
    _allowed_paths_list: list[str] = PrivateAttr(default_factory=list)
    _forward_headers_list: list[str] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context) -> None:
        self._allowed_origins_set = set(_csv_list(self.allowed_origins))
        self._allowed_paths_list = _csv_list(self.allowed_paths, sep=";")
        self._forward_headers_list = _csv_list(self.forward_headers)

    @property
    def allowed_origins_set(self) -> set[str]:
        return self._allowed_origins_set

    @property
    def allowed_paths_list(self) -> list[str]:
        return self._allowed_paths_list

    @property
    def forward_headers_list(self) -> list[str]:
        return self._forward_headers_list

    model_config = {"env_file": ".env", "case_sensitive": False, "populate_by_name": True}


settings = Settings()
