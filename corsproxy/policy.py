# corsproxy/policy.py
"""Immutable relay policy, built once per process from Settings."""

from dataclasses import dataclass
from typing import Protocol

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class PathMatcher(Protocol):
    def matches(self, path: str) -> bool: ...


@dataclass(frozen=True)
class ExactPathMatcher:
    """Path must be one of the configured entries."""

    paths: frozenset[str]

    def matches(self, path: str) -> bool:
        return path in self.paths


@dataclass(frozen=True)
class DelimitedPathMatcher:
    """Looks for ``;path;`` inside ``;<raw list>;``.

    Matches the same entries as ExactPathMatcher for well-formed lists, but a
    path containing ``;`` can span several entries.
    """

    raw: str

    def matches(self, path: str) -> bool:
        return f";{path};" in f";{self.raw};"


@dataclass(frozen=True)
class Policy:
    allowed_origins: frozenset[str]
    path_matcher: PathMatcher
    forward_headers: tuple[str, ...]
    upstream_base: str
    auth_header: str
    auth_value: str
    require_auth_value: bool = True
    timeout: float = 10.0
    require_upstream: bool = True  # no-op: there is no explicit-target mode

    @classmethod
    def from_settings(cls, settings) -> "Policy":
        if settings.path_match == "delimited":
            matcher: PathMatcher = DelimitedPathMatcher(settings.allowed_paths)
        elif settings.path_match == "exact":
            matcher = ExactPathMatcher(frozenset(settings.allowed_paths_list))
        else:
            raise ValueError(f"Unknown PATH_MATCH mode: {settings.path_match!r}")

        return cls(
            allowed_origins=frozenset(settings.allowed_origins_set),
            path_matcher=matcher,
            forward_headers=tuple(settings.forward_headers_list),
            upstream_base=settings.upstream_base.strip(),
            auth_header=settings.forward_auth_header.strip(),
            auth_value=settings.forward_auth_value,
            require_auth_value=settings.require_auth_value,
            timeout=settings.fetch_timeout_ms / 1000,
            require_upstream=settings.require_upstream,
        )

    @property
    def checks_origin(self) -> bool:
        """False when the allowlist is empty or contains the wildcard."""
        return bool(self.allowed_origins) and "*" not in self.allowed_origins

    def path_allowed(self, path: str) -> bool:
        return self.path_matcher.matches(path)

    def origin_allowed(self, origin: str) -> bool:
        return not self.checks_origin or origin in self.allowed_origins

    def method_allowed(self, method: str) -> bool:
        return method in ALLOWED_METHODS
