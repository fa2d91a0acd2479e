"""Configuration models for the fetch layer."""

from collections.abc import Iterable
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from headfetch.fetch.constants import (
    DEFAULT_ACCEPTED_TAGS,
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_HEADERS,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    HTTP_STATUS_MAX,
    HTTP_STATUS_MIN,
    HTTP_STATUS_OK,
)
from headfetch.fetch.mimes import MimeRegistry, default_registry


class AuthCredentials(BaseModel):
    """HTTP basic authentication credentials."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: Annotated[str, Field(min_length=1)]
    password: str = Field(default="", repr=False)


class RequestConfig(BaseModel):
    """Per-session request settings.

    Frozen; a session swaps in an updated copy between requests and never
    while one is in flight.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    headers: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HEADERS),
        description="Headers sent with every request, in insertion order",
    )
    timeout_ms: Annotated[int, Field(ge=1, le=600_000)] = DEFAULT_TIMEOUT_MS
    connect_timeout_ms: Annotated[int, Field(ge=1, le=600_000)] = (
        DEFAULT_CONNECT_TIMEOUT_MS
    )
    max_redirects: Annotated[int, Field(ge=0, le=100)] = DEFAULT_MAX_REDIRECTS
    follow_redirects: bool = True
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    auth: AuthCredentials | None = None
    cookie_jar_path: Path | None = None
    tls_verify: bool = True

    @field_validator("headers")
    @classmethod
    def validate_header_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject empty or whitespace-bearing header names."""
        for key in v:
            if not key or key != key.strip() or " " in key:
                msg = f"Invalid header name: {key!r}"
                raise ValueError(msg)
        return v

    @property
    def timeout_seconds(self) -> float:
        """Total timeout in seconds."""
        return self.timeout_ms / 1000.0

    @property
    def connect_timeout_seconds(self) -> float:
        """Connect timeout in seconds."""
        return self.connect_timeout_ms / 1000.0

    def with_headers(self, headers: dict[str, str]) -> "RequestConfig":
        """Get a copy with ``headers`` merged over the current ones.

        Args:
            headers: Headers to add or replace.

        Returns:
            New RequestConfig.
        """
        merged = dict(self.headers)
        merged.update(headers)
        return self.model_copy(update={"headers": merged})


def _normalize_selectors(selectors: Iterable[str]) -> frozenset[str]:
    return frozenset(s.strip().lower() for s in selectors)


class PolicyConfig(BaseModel):
    """Acceptance policy applied to probed resources.

    An empty ``accepted_tags`` set accepts no content type at all.
    Selectors are checked against ``default_registry()`` unless a
    ``registry`` is passed in the validation context::

        PolicyConfig.model_validate(data, context={"registry": registry})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    accepted_tags: frozenset[str] = Field(
        default=DEFAULT_ACCEPTED_TAGS,
        description="Tags and/or literal MIME types that are acceptable",
    )
    max_body_bytes: Annotated[int, Field(ge=0)] = DEFAULT_MAX_BODY_BYTES
    accepted_status_codes: frozenset[int] = Field(
        default=frozenset({HTTP_STATUS_OK}),
        description="HTTP status codes that are acceptable",
    )

    @field_validator("accepted_tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: object) -> object:
        """Lower-case and trim selectors before validation."""
        if isinstance(v, str):
            msg = "accepted_tags must be a collection of selectors, not a string"
            raise ValueError(msg)
        if isinstance(v, Iterable):
            return _normalize_selectors(v)
        return v

    @field_validator("accepted_tags")
    @classmethod
    def validate_known_selectors(
        cls, v: frozenset[str], info: ValidationInfo
    ) -> frozenset[str]:
        """Ensure every selector is a registered tag or MIME type."""
        context = info.context or {}
        registry: MimeRegistry = context.get("registry") or default_registry()
        unknown = sorted(s for s in v if not registry.is_known_selector(s))
        if unknown:
            msg = f"Unknown MIME selectors: {', '.join(unknown)}"
            raise ValueError(msg)
        return v

    @field_validator("accepted_status_codes")
    @classmethod
    def validate_status_codes(cls, v: frozenset[int]) -> frozenset[int]:
        """Ensure status codes are within the HTTP range."""
        for code in v:
            if not HTTP_STATUS_MIN <= code <= HTTP_STATUS_MAX:
                msg = f"Invalid HTTP status code: {code}"
                raise ValueError(msg)
        return v
